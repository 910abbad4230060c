"""
Reporting API endpoints.

Read-only dashboard data for the municipal administrator.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from budget_ledger.app.core.dependencies import get_current_actor
from budget_ledger.app.core.guards import Actor, Operation
from budget_ledger.app.db.session import get_db
from budget_ledger.app.schemas.reporting import BudgetOverview, MonthlySpendReport
from budget_ledger.app.services.container import LedgerServices, get_ledger_services
from budget_ledger.app.services.reporting import ReportingService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/overview", response_model=BudgetOverview)
async def budget_overview(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Overall budget and per-barangay utilization."""
    services.gate.enforce(actor, Operation.REPORT_READ)
    return BudgetOverview(**await ReportingService.overview(db))


@router.get("/monthly-spend", response_model=MonthlySpendReport)
async def monthly_spend(
    year: Optional[int] = Query(None, ge=2000, le=9998, description="Calendar year, defaults to the current one"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    services.gate.enforce(actor, Operation.REPORT_READ)
    return MonthlySpendReport(**await ReportingService.monthly_spend(db, year))
