"""
Ledger Store.

Owns the one BudgetAccount per barangay and applies balance mutations.

Serialization: every read-check-write of an account runs while holding
that barangay's lock from ``TenantLockRegistry`` and after loading the row
``FOR UPDATE`` (a row lock on PostgreSQL). The in-process lock keeps
concurrent requests of one worker from interleaving; the row lock does
the same across workers. Different barangays never share a lock.

Store methods flush but never commit. The caller owns the commit so the
balance change and the transaction row land together or not at all.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, AsyncExitStack
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.core.exceptions import InsufficientFundsError, InvalidAmountError
from budget_ledger.app.domain.ledger.amounts import ZERO, to_money
from budget_ledger.app.models.budget_account import BudgetAccount
from budget_ledger.app.models.budget_transaction import BudgetTransaction
from budget_ledger.app.models.user import User
from budget_ledger.app.services.tenant_registry import TenantRegistry

logger = logging.getLogger("budget_ledger.ledger")


class TenantLockRegistry:
    """One asyncio.Lock per barangay, created on first use."""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}

    def lock_for(self, tenant_id: int) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, tenant_id: int):
        async with self.lock_for(tenant_id):
            yield

    @asynccontextmanager
    async def hold_all(self, tenant_ids: Iterable[int]):
        """Acquire several barangay locks in ascending id order (no lock-order deadlocks)."""
        async with AsyncExitStack() as stack:
            for tenant_id in sorted(set(tenant_ids)):
                await stack.enter_async_context(self.hold(tenant_id))
            yield


def _touch(account: BudgetAccount) -> None:
    account.updated_at = datetime.now(timezone.utc)


class LedgerStore:
    """Balance storage for barangay budget accounts."""

    def __init__(self, locks: TenantLockRegistry = None):
        self.locks = locks or TenantLockRegistry()

    async def _load(self, db: AsyncSession, tenant_id: int, for_update: bool) -> BudgetAccount | None:
        stmt = select(BudgetAccount).where(BudgetAccount.tenant_id == tenant_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, tenant_id: int, for_update: bool = False) -> BudgetAccount:
        """
        Return the barangay's account, creating a zeroed one if absent.

        The insert runs in a savepoint: if another worker wins the race
        only that savepoint is rolled back, earlier writes of the caller's
        unit of work survive and the winning row is re-read.

        Raises:
            ResourceNotFoundError: unknown barangay
        """
        account = await self._load(db, tenant_id, for_update)
        if account is not None:
            return account

        await TenantRegistry.get_tenant(db, tenant_id)

        account = BudgetAccount(
            tenant_id=tenant_id,
            total_budget=ZERO,
            available_budget=ZERO,
        )
        try:
            async with db.begin_nested():
                db.add(account)
                await db.flush()
        except IntegrityError:
            # Lost the race; the unique constraint kept one row
            account = await self._load(db, tenant_id, for_update)
            if account is None:
                raise
            return account

        await db.refresh(account)
        logger.info("Budget account initialized", extra={"tenant_id": tenant_id})
        return account

    async def fetch(self, db: AsyncSession, tenant_id: int) -> BudgetAccount:
        """Read path for getBudget: lazily creates and commits a missing account."""
        async with self.locks.hold(tenant_id):
            account = await self.get_or_create(db, tenant_id)
            await db.commit()
            return account

    async def apply_add(self, db: AsyncSession, tenant_id: int, amount: Decimal) -> BudgetAccount:
        """total += amount; available += amount. Caller holds the barangay lock."""
        _require_positive(amount)
        account = await self.get_or_create(db, tenant_id, for_update=True)
        account.total_budget = to_money(account.total_budget) + amount
        account.available_budget = to_money(account.available_budget) + amount
        _touch(account)
        await db.flush()
        return account

    async def apply_deduct(self, db: AsyncSession, tenant_id: int, amount: Decimal) -> BudgetAccount:
        """
        available -= amount. Caller holds the barangay lock.

        Raises:
            InsufficientFundsError: amount exceeds the available budget
        """
        _require_positive(amount)
        account = await self.get_or_create(db, tenant_id, for_update=True)
        available = to_money(account.available_budget)
        if amount > available:
            raise InsufficientFundsError()
        account.available_budget = available - amount
        _touch(account)
        await db.flush()
        return account

    async def reset(self, db: AsyncSession, tenant_id: int) -> Tuple[BudgetAccount, Decimal, Decimal]:
        """
        Zero both balances without writing a transaction.

        Returns:
            (account, previous_total, previous_available)
        """
        account = await self.get_or_create(db, tenant_id, for_update=True)
        previous = (to_money(account.total_budget), to_money(account.available_budget))
        account.total_budget = ZERO
        account.available_budget = ZERO
        _touch(account)
        await db.flush()
        return account, previous[0], previous[1]

    async def reset_all(self, db: AsyncSession, tenant_ids: Iterable[int]) -> List[Tuple[BudgetAccount, Decimal, Decimal]]:
        """Reset every listed barangay inside the caller's single unit of work."""
        return [await self.reset(db, tenant_id) for tenant_id in tenant_ids]

    async def list_transactions(self, db: AsyncSession, tenant_id: int, limit: int) -> List[Tuple[BudgetTransaction, str | None]]:
        """Most recent transactions of a barangay with the creator's display name."""
        stmt = (
            select(BudgetTransaction, User.full_name)
            .outerjoin(User, User.id == BudgetTransaction.created_by)
            .where(BudgetTransaction.tenant_id == tenant_id)
            .order_by(desc(BudgetTransaction.created_at), desc(BudgetTransaction.id))
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]


def _require_positive(amount: Decimal) -> None:
    if not isinstance(amount, Decimal) or amount <= 0:
        raise InvalidAmountError("Amount must be positive")
