"""
User database model.

Council members and administrators. Role and barangay binding are read
from this table on every request, never trusted from the token.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from budget_ledger.app.db.session import Base
from budget_ledger.app.models.enums import UserRole


class User(Base):
    """User model for authentication and council membership."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), default=UserRole.KAGAWAD, nullable=False)

    # Barangay binding (None for main_admin)
    tenant_id = Column(Integer, ForeignKey('tenants.id'), index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}', tenant={self.tenant_id})>"
