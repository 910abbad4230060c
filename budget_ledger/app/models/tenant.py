"""
Tenant (barangay) database model.

Each barangay owns exactly one budget account and scopes its members.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base


class Tenant(Base):
    """
    Barangay model.

    Created once by provisioning and rarely mutated afterwards.
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    code = Column(String(50), unique=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}', code='{self.code}')>"
