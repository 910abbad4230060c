"""
Project database model.

Tenant-scoped resource with a soft-archive lifecycle:
active -> archived -> (restored | permanently deleted).
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base


class Project(Base):
    """Barangay project model."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    tenant_id = Column(Integer, ForeignKey('tenants.id'), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Soft delete marker; hard delete is only allowed once set
    archived_at = Column(DateTime(timezone=True), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self):
        return f"<Project(id={self.id}, title='{self.title}', tenant={self.tenant_id}, archived={self.is_archived})>"
