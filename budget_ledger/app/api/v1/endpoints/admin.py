"""
Admin API endpoints.

Audit log listing for the municipal administrator.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from budget_ledger.app.core.config import settings
from budget_ledger.app.core.dependencies import get_current_actor
from budget_ledger.app.core.guards import Actor, Operation
from budget_ledger.app.db.session import get_db
from budget_ledger.app.schemas.audit import AuditEntryResponse, AuditLogListResponse
from budget_ledger.app.services.audit import AuditRecorder
from budget_ledger.app.services.container import LedgerServices, get_ledger_services

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    limit: int = Query(
        settings.audit_log_default_limit,
        ge=1,
        le=settings.audit_log_max_limit,
        description="Most recent N entries"
    ),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Most recent audit entries first, with actor and barangay names."""
    services.gate.enforce(actor, Operation.AUDIT_READ)
    entries = await AuditRecorder.list_entries(db, limit=limit)
    return AuditLogListResponse(
        entries=[AuditEntryResponse(**entry) for entry in entries],
        total=len(entries)
    )
