"""
User management schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List
from budget_ledger.app.models.enums import UserRole
from budget_ledger.app.schemas.auth import UserResponse


class MemberCreate(BaseModel):
    """Schema for creating a council member bound to a barangay."""
    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=100, description="Unique username")
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    role: UserRole = Field(..., description="kagawad, sk_secretary or sk_chairman")
    tenant_id: int = Field(..., description="Barangay the member belongs to")


class MemberListResponse(BaseModel):
    users: List[UserResponse]
    total: int
