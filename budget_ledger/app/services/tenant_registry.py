"""
Tenant Registry.

Read-only lookup of barangays. Barangays are provisioned by the seed
script; nothing in the API creates or edits them.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.core.exceptions import ResourceNotFoundError
from budget_ledger.app.models.tenant import Tenant


class TenantRegistry:

    @staticmethod
    async def list_tenants(db: AsyncSession) -> List[Tenant]:
        """All barangays ordered by name."""
        result = await db.execute(select(Tenant).order_by(Tenant.name, Tenant.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_tenant(db: AsyncSession, tenant_id: int) -> Tenant:
        """Fetch one barangay or raise ResourceNotFoundError."""
        tenant = await db.get(Tenant, tenant_id)
        if tenant is None:
            raise ResourceNotFoundError("Barangay", tenant_id)
        return tenant

    @staticmethod
    async def list_tenant_ids(db: AsyncSession) -> List[int]:
        result = await db.execute(select(Tenant.id).order_by(Tenant.id))
        return list(result.scalars().all())
