"""
Reporting Service.

Read-only derived views for the dashboards: per-barangay balances with
utilization, the overall total and monthly spend rollups. Nothing here
creates accounts; a barangay without one reports zeros.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.domain.ledger.amounts import ZERO, to_money
from budget_ledger.app.models.budget_account import BudgetAccount
from budget_ledger.app.models.budget_transaction import BudgetTransaction
from budget_ledger.app.models.enums import TransactionType
from budget_ledger.app.models.tenant import Tenant

FRACTION_PLACES = Decimal("0.0001")
PERCENT_PLACES = Decimal("0.01")


def utilization(total: Decimal, available: Decimal) -> Decimal:
    """(total - available) / total, 0 when nothing was ever budgeted."""
    total = to_money(total)
    if total == 0:
        return Decimal("0.0000")
    return ((total - to_money(available)) / total).quantize(FRACTION_PLACES)


def utilization_percent(total: Decimal, available: Decimal) -> Decimal:
    total = to_money(total)
    if total == 0:
        return Decimal("0.00")
    return ((total - to_money(available)) * 100 / total).quantize(PERCENT_PLACES)


def group_monthly_spend(rows: Iterable[Tuple[int, str, datetime, Decimal, TransactionType]]) -> List[Dict[str, Any]]:
    """
    Group deduct rows by calendar month and barangay.

    Rows are (tenant_id, tenant_name, created_at, amount, transaction_type).
    Adds are capital inflow and never count as spend.
    """
    months: "OrderedDict[str, Dict[int, Dict[str, Any]]]" = OrderedDict()
    for tenant_id, tenant_name, created_at, amount, transaction_type in sorted(rows, key=lambda r: r[2]):
        if transaction_type != TransactionType.DEDUCT:
            continue
        month = created_at.strftime("%Y-%m")
        per_tenant = months.setdefault(month, {})
        bucket = per_tenant.setdefault(tenant_id, {
            "tenant_id": tenant_id,
            "tenant_name": tenant_name,
            "spent": ZERO,
        })
        bucket["spent"] = bucket["spent"] + to_money(amount)

    result = []
    for month, per_tenant in months.items():
        tenants = sorted(per_tenant.values(), key=lambda b: (b["tenant_name"], b["tenant_id"]))
        result.append({
            "month": month,
            "total_spent": sum((b["spent"] for b in tenants), ZERO),
            "tenants": tenants,
        })
    return result


class ReportingService:

    @staticmethod
    async def overview(db: AsyncSession) -> Dict[str, Any]:
        """Balances of every barangay plus the overall totals."""
        query = (
            select(Tenant, BudgetAccount)
            .outerjoin(BudgetAccount, BudgetAccount.tenant_id == Tenant.id)
            .order_by(Tenant.name, Tenant.id)
        )
        result = await db.execute(query)

        tenants = []
        overall_total = ZERO
        overall_available = ZERO
        for tenant, account in result.all():
            total = to_money(account.total_budget) if account else ZERO
            available = to_money(account.available_budget) if account else ZERO
            overall_total += total
            overall_available += available
            tenants.append({
                "tenant_id": tenant.id,
                "tenant_name": tenant.name,
                "total_budget": total,
                "available_budget": available,
                "spent": total - available,
                "utilization": utilization(total, available),
                "utilization_percent": utilization_percent(total, available),
            })

        return {
            "overall_budget": overall_total,
            "overall_available": overall_available,
            "overall_spent": overall_total - overall_available,
            "overall_utilization_percent": utilization_percent(overall_total, overall_available),
            "tenants": tenants,
        }

    @staticmethod
    async def monthly_spend(db: AsyncSession, year: Optional[int] = None) -> Dict[str, Any]:
        """Deduct totals by month and barangay for one calendar year (UTC)."""
        year = year or datetime.now(timezone.utc).year
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)

        query = (
            select(
                BudgetTransaction.tenant_id,
                Tenant.name,
                BudgetTransaction.created_at,
                BudgetTransaction.amount,
                BudgetTransaction.transaction_type,
            )
            .join(Tenant, Tenant.id == BudgetTransaction.tenant_id)
            .where(
                BudgetTransaction.transaction_type == TransactionType.DEDUCT,
                BudgetTransaction.created_at >= start,
                BudgetTransaction.created_at < end,
            )
        )
        result = await db.execute(query)
        return {"year": year, "months": group_monthly_spend(result.all())}
