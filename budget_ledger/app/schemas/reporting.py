"""
Reporting schemas for the budget dashboards.
"""

from pydantic import BaseModel
from decimal import Decimal
from typing import List


class TenantBudgetStats(BaseModel):
    tenant_id: int
    tenant_name: str
    total_budget: Decimal
    available_budget: Decimal
    spent: Decimal
    utilization: Decimal
    utilization_percent: Decimal


class BudgetOverview(BaseModel):
    overall_budget: Decimal
    overall_available: Decimal
    overall_spent: Decimal
    overall_utilization_percent: Decimal
    tenants: List[TenantBudgetStats]


class TenantMonthlySpend(BaseModel):
    tenant_id: int
    tenant_name: str
    spent: Decimal


class MonthlySpend(BaseModel):
    month: str
    total_spent: Decimal
    tenants: List[TenantMonthlySpend]


class MonthlySpendReport(BaseModel):
    year: int
    months: List[MonthlySpend]
