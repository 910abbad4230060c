"""
Budget transaction database model.

Immutable add/deduct records against one barangay's account.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, Enum, String
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base
from budget_ledger.app.models.enums import TransactionType


class BudgetTransaction(Base):
    """
    Budget transaction model.

    Immutable record of a balance movement.
    NO updates or deletions allowed, a balance reset leaves history intact.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    tenant_id = Column(Integer, ForeignKey('tenants.id'), nullable=False, index=True)

    amount = Column(Numeric(15, 2, asdecimal=True), nullable=False)
    transaction_type = Column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    description = Column(String(500), nullable=True)

    related_project_id = Column(Integer, ForeignKey('projects.id', ondelete="SET NULL"), nullable=True)

    created_by = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<BudgetTransaction(id={self.id}, type='{self.transaction_type.value}', amount={self.amount})>"
