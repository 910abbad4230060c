"""
Budget account database model.

One row per barangay holding the total and available balances.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base


class BudgetAccount(Base):
    """
    Budget account model.

    Invariant: 0 <= available_budget <= total_budget.
    Only the ledger store writes to this table.
    """
    __tablename__ = "budget_accounts"
    __table_args__ = (
        CheckConstraint("available_budget >= 0", name="ck_budget_available_non_negative"),
        CheckConstraint("available_budget <= total_budget", name="ck_budget_available_within_total"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Unique: concurrent first access resolves to a single row
    tenant_id = Column(Integer, ForeignKey('tenants.id'), unique=True, nullable=False)

    total_budget = Column(Numeric(15, 2, asdecimal=True), nullable=False, default=0)
    available_budget = Column(Numeric(15, 2, asdecimal=True), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<BudgetAccount(tenant_id={self.tenant_id}, total={self.total_budget}, "
            f"available={self.available_budget})>"
        )
