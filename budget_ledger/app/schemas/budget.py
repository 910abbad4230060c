"""
Budget ledger schemas.

Amounts leave the API as two-place decimal strings ("749.50").
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union
from budget_ledger.app.models.enums import TransactionType


class TenantResponse(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class BudgetAccountResponse(BaseModel):
    """Schema for a barangay's balances."""
    tenant_id: int
    total_budget: Decimal
    available_budget: Decimal
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    """
    Schema for submitting an add/deduct transaction.

    ``amount`` accepts a string or a number and is validated by the ledger,
    so malformed amounts come back as a field-scoped amount error.
    """
    transaction_type: TransactionType = Field(..., description="add or deduct")
    amount: Union[str, int, float, None] = Field(None, description="Positive amount with at most 2 decimals")
    description: Optional[str] = Field(None, description="Optional note, at most 500 characters")
    related_project_id: Optional[int] = Field(None, description="Project this movement belongs to")


class TransactionResponse(BaseModel):
    id: int
    tenant_id: int
    amount: Decimal
    transaction_type: TransactionType
    description: Optional[str] = None
    related_project_id: Optional[int] = None
    created_by: int
    created_by_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionResult(BaseModel):
    """Committed transaction together with the balances it produced."""
    transaction: TransactionResponse
    budget: BudgetAccountResponse


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int


class ResetAllResponse(BaseModel):
    budgets: List[BudgetAccountResponse]
    total: int
