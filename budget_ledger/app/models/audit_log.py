"""
Audit Log Database Model.

Append-only trail of every mutating action, written outside the ledger's
own commit boundary.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking mutating actions.

    Events logged:
    - budget_add / budget_deduct / budget_reset / budget_reset_all
    - user_create / user_delete
    - project_create / project_archive / project_restore / project_delete
    - login_success / login_failed

    actor_id and tenant_id carry no foreign keys: entries outlive the
    users and rows they describe.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for failed logins of unknown users)
    actor_id = Column(Integer, index=True, nullable=True)

    action = Column(String(100), nullable=False, index=True)
    table_name = Column(String(100), nullable=False)
    record_id = Column(String(100), nullable=True)
    tenant_id = Column(Integer, index=True, nullable=True)

    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', table='{self.table_name}', actor={self.actor_id})>"
