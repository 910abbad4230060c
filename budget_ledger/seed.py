"""
Database seeding script for barangays and the first administrator.

Creates the barangay directory, one zeroed budget account per barangay and
the main_admin account. Safe to run repeatedly.

Usage:
    python -m budget_ledger.seed
"""

import asyncio
import os

from sqlalchemy import select

from budget_ledger.app.core.security import get_password_hash
from budget_ledger.app.db.session import AsyncSessionLocal, Base, engine
from budget_ledger.app.domain.ledger.amounts import ZERO
from budget_ledger.app.models.audit_log import AuditLog  # noqa: F401
from budget_ledger.app.models.budget_account import BudgetAccount
from budget_ledger.app.models.budget_transaction import BudgetTransaction  # noqa: F401
from budget_ledger.app.models.enums import UserRole
from budget_ledger.app.models.project import Project  # noqa: F401
from budget_ledger.app.models.tenant import Tenant
from budget_ledger.app.models.user import User

BARANGAYS = [
    ("Poblacion", "POB"),
    ("San Isidro", "SIS"),
    ("Santa Cruz", "STC"),
    ("San Roque", "SRQ"),
    ("Bagong Silang", "BGS"),
]


async def seed_tenants(db) -> int:
    """Insert missing barangays and their budget accounts."""
    created = 0
    for name, code in BARANGAYS:
        result = await db.execute(select(Tenant).where(Tenant.code == code))
        tenant = result.scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=name, code=code)
            db.add(tenant)
            await db.flush()
            created += 1
            print(f"Created barangay {name} ({code})")

        account = await db.execute(select(BudgetAccount.id).where(BudgetAccount.tenant_id == tenant.id))
        if account.first() is None:
            db.add(BudgetAccount(tenant_id=tenant.id, total_budget=ZERO, available_budget=ZERO))
    return created


async def seed_admin(db) -> bool:
    username = os.getenv("SEED_ADMIN_USERNAME", "admin")
    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none():
        print(f"main_admin '{username}' already exists, skipping")
        return False

    db.add(User(
        email=os.getenv("SEED_ADMIN_EMAIL", "admin@budget-ledger.local"),
        username=username,
        full_name=os.getenv("SEED_ADMIN_FULL_NAME", "Municipal Administrator"),
        hashed_password=get_password_hash(os.getenv("SEED_ADMIN_PASSWORD", "admin123")),
        role=UserRole.MAIN_ADMIN,
        tenant_id=None,
        is_active=True,
    ))
    print(f"Created main_admin '{username}'")
    return True


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        try:
            created = await seed_tenants(db)
            await seed_admin(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    print(f"Seeding complete ({created} new barangays)")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
