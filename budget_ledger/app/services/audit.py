"""
Audit logging service for tracking ledger, membership and project actions.

Entries are appended after the business change has committed, on their own
session, in a background task. A failed append is logged and dropped: the
audit trail never turns a committed change into an error response.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from budget_ledger.app.models.audit_log import AuditLog
from budget_ledger.app.models.tenant import Tenant
from budget_ledger.app.models.user import User

logger = logging.getLogger("budget_ledger.audit")

UNKNOWN_ACTOR = "Unknown"


class AuditAction:
    """Standardized audit action constants."""
    BUDGET_ADD = "budget_add"
    BUDGET_DEDUCT = "budget_deduct"
    BUDGET_RESET = "budget_reset"
    BUDGET_RESET_ALL = "budget_reset_all"

    USER_CREATE = "user_create"
    USER_DELETE = "user_delete"

    PROJECT_CREATE = "project_create"
    PROJECT_ARCHIVE = "project_archive"
    PROJECT_RESTORE = "project_restore"
    PROJECT_DELETE = "project_delete"

    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"


def _jsonable(value: Any) -> Any:
    # Decimal is stored as its exact string
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class AuditRecorder:
    """
    Append-only audit trail.

    ``record`` schedules the write and returns immediately. ``drain`` waits
    for everything scheduled so far (shutdown and tests).
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    def record(
        self,
        action: str,
        table_name: str,
        actor_id: Optional[int] = None,
        record_id: Any = None,
        tenant_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> asyncio.Task:
        entry = {
            "actor_id": actor_id,
            "action": action,
            "table_name": table_name,
            "record_id": None if record_id is None else str(record_id),
            "tenant_id": tenant_id,
            "details": _jsonable(details or {}),
        }
        task = asyncio.create_task(self._append(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _append(self, entry: Dict[str, Any]) -> None:
        try:
            async with self.session_factory() as session:
                session.add(AuditLog(**entry))
                await session.commit()
        except Exception:
            logger.warning(
                "Audit entry dropped",
                exc_info=True,
                extra={"action": entry["action"], "record_id": entry["record_id"]}
            )

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @staticmethod
    async def list_entries(db: AsyncSession, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Most recent entries first, with the actor's name and email and the
        barangay name. Entries of deleted users show ``Unknown``.
        """
        query = (
            select(AuditLog, User.full_name, User.email, Tenant.name)
            .outerjoin(User, User.id == AuditLog.actor_id)
            .outerjoin(Tenant, Tenant.id == AuditLog.tenant_id)
            .order_by(desc(AuditLog.created_at), desc(AuditLog.id))
            .limit(limit)
        )
        result = await db.execute(query)

        entries = []
        for log, full_name, email, tenant_name in result.all():
            entries.append({
                "id": log.id,
                "actor_id": log.actor_id,
                "actor_name": full_name or UNKNOWN_ACTOR,
                "actor_email": email,
                "action": log.action,
                "table_name": log.table_name,
                "record_id": log.record_id,
                "tenant_id": log.tenant_id,
                "tenant_name": tenant_name,
                "details": log.details or {},
                "created_at": log.created_at,
            })
        return entries
