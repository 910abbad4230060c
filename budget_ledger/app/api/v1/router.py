"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from budget_ledger.app.api.v1.endpoints import auth, tenants, admin, reports, users, projects

router = APIRouter()

router.include_router(auth.router)

# Barangays, balances and transactions
router.include_router(tenants.router)

# Audit log
router.include_router(admin.router)

# Dashboards
router.include_router(reports.router)

router.include_router(users.router)
router.include_router(projects.router)
