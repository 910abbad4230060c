"""
Transaction Processor (Domain Logic).

Validates and applies add/deduct operations against the ledger store.

Flow:
1. Validating: amount, then description, then authorization
2. Applying: under the barangay lock, mutate the account and insert the
   immutable transaction row in one unit of work
3. Committed | Rejected

The audit entry is scheduled only after the commit and never affects the
outcome.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.core.config import settings
from budget_ledger.app.core.exceptions import AppException, ResourceNotFoundError, StorageFailureError
from budget_ledger.app.core.guards import Actor, AuthorizationGate, Operation
from budget_ledger.app.domain.ledger.amounts import normalize_description, parse_amount
from budget_ledger.app.models.budget_account import BudgetAccount
from budget_ledger.app.models.budget_transaction import BudgetTransaction
from budget_ledger.app.models.enums import TransactionType
from budget_ledger.app.models.project import Project
from budget_ledger.app.services.audit import AuditAction, AuditRecorder
from budget_ledger.app.services.ledger_store import LedgerStore
from budget_ledger.app.services.tenant_registry import TenantRegistry

logger = logging.getLogger("budget_ledger.ledger")

AUDIT_ACTIONS = {
    TransactionType.ADD: AuditAction.BUDGET_ADD,
    TransactionType.DEDUCT: AuditAction.BUDGET_DEDUCT,
}


class TransactionState(str, Enum):
    VALIDATING = "validating"
    APPLYING = "applying"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass
class TransactionRequest:
    """Raw caller input; amount is parsed by the processor."""
    tenant_id: int
    transaction_type: TransactionType
    amount: Any
    description: Optional[str] = None
    related_project_id: Optional[int] = None


class TransactionProcessor:

    def __init__(
        self,
        store: LedgerStore,
        audit: AuditRecorder,
        gate: AuthorizationGate,
        max_amount: Decimal = None,
        max_description_length: int = None
    ):
        self.store = store
        self.audit = audit
        self.gate = gate
        self.max_amount = max_amount if max_amount is not None else settings.max_transaction_amount
        self.max_description_length = max_description_length or settings.max_description_length

    def _transition(self, state: TransactionState, request: TransactionRequest, **extra) -> None:
        logger.debug(
            "Transaction %s",
            state.value,
            extra={"tenant_id": request.tenant_id, "transaction_type": request.transaction_type.value, **extra}
        )

    async def submit(self, db: AsyncSession, actor: Actor, request: TransactionRequest) -> Tuple[BudgetTransaction, BudgetAccount]:
        """
        Submit an add or deduct transaction.

        Returns:
            (transaction, account after the change)

        Raises:
            InvalidAmountError, InvalidDescriptionError: malformed input
            ForbiddenError: actor may not transact on this barangay
            ResourceNotFoundError: unknown barangay or project
            InsufficientFundsError: deduct above the available budget
            StorageFailureError: database fault; nothing was applied
        """
        self._transition(TransactionState.VALIDATING, request)
        try:
            amount = parse_amount(request.amount, self.max_amount)
            description = normalize_description(request.description, self.max_description_length)
            self.gate.enforce(actor, Operation.BUDGET_TRANSACT, request.tenant_id)
        except AppException as exc:
            self._transition(TransactionState.REJECTED, request, reason=exc.error_code)
            raise

        self._transition(TransactionState.APPLYING, request, amount=str(amount))
        async with self.store.locks.hold(request.tenant_id):
            try:
                # No reads after the commit
                tenant_name = (await TenantRegistry.get_tenant(db, request.tenant_id)).name
                if request.related_project_id is not None:
                    await _require_project_of(db, request.related_project_id, request.tenant_id)

                if request.transaction_type == TransactionType.ADD:
                    account = await self.store.apply_add(db, request.tenant_id, amount)
                else:
                    account = await self.store.apply_deduct(db, request.tenant_id, amount)

                transaction = BudgetTransaction(
                    tenant_id=request.tenant_id,
                    amount=amount,
                    transaction_type=request.transaction_type,
                    description=description,
                    related_project_id=request.related_project_id,
                    created_by=actor.user_id,
                )
                db.add(transaction)
                await db.flush()
                await db.refresh(transaction)
                await db.refresh(account)
                await db.commit()
            except AppException as exc:
                await db.rollback()
                self._transition(TransactionState.REJECTED, request, reason=exc.error_code)
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error(
                    "Transaction storage failure",
                    exc_info=exc,
                    extra={"tenant_id": request.tenant_id}
                )
                raise StorageFailureError() from exc
            except BaseException:
                # Cancellation: leave the account as it was
                await db.rollback()
                raise

        self._transition(TransactionState.COMMITTED, request, transaction_id=transaction.id)

        self.audit.record(
            action=AUDIT_ACTIONS[request.transaction_type],
            table_name="transactions",
            actor_id=actor.user_id,
            record_id=transaction.id,
            tenant_id=request.tenant_id,
            details={
                "amount": amount,
                "description": description,
                "transaction_type": request.transaction_type.value,
                "barangay": tenant_name,
            }
        )
        return transaction, account

    async def reset(self, db: AsyncSession, actor: Actor, tenant_id: int) -> BudgetAccount:
        """Zero one barangay's balances. History is left untouched."""
        self.gate.enforce(actor, Operation.BUDGET_RESET, tenant_id)

        async with self.store.locks.hold(tenant_id):
            try:
                account, previous_total, previous_available = await self.store.reset(db, tenant_id)
                await db.commit()
            except AppException:
                await db.rollback()
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Budget reset storage failure", exc_info=exc, extra={"tenant_id": tenant_id})
                raise StorageFailureError() from exc
            except BaseException:
                await db.rollback()
                raise

        logger.info("Budget reset", extra={"tenant_id": tenant_id, "actor_id": actor.user_id})
        self.audit.record(
            action=AuditAction.BUDGET_RESET,
            table_name="budget_accounts",
            actor_id=actor.user_id,
            record_id=account.id,
            tenant_id=tenant_id,
            details={"previous_total": previous_total, "previous_available": previous_available}
        )
        return account

    async def reset_all(self, db: AsyncSession, actor: Actor) -> List[BudgetAccount]:
        """
        Zero every barangay's balances as one all-or-nothing unit of work.

        Locks are taken in ascending barangay id order.
        """
        self.gate.enforce(actor, Operation.BUDGET_RESET_ALL)

        tenant_ids = await TenantRegistry.list_tenant_ids(db)
        async with self.store.locks.hold_all(tenant_ids):
            try:
                results = await self.store.reset_all(db, tenant_ids)
                await db.commit()
            except AppException:
                await db.rollback()
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Reset-all storage failure", exc_info=exc)
                raise StorageFailureError() from exc
            except BaseException:
                await db.rollback()
                raise

        logger.info("All budgets reset", extra={"tenant_count": len(results), "actor_id": actor.user_id})
        self.audit.record(
            action=AuditAction.BUDGET_RESET_ALL,
            table_name="budget_accounts",
            actor_id=actor.user_id,
            details={
                "tenant_count": len(results),
                "previous_total": sum((total for _, total, _ in results), Decimal("0.00")),
            }
        )
        return [account for account, _, _ in results]


async def _require_project_of(db: AsyncSession, project_id: int, tenant_id: int) -> Project:
    project = await db.get(Project, project_id)
    if project is None or project.tenant_id != tenant_id:
        raise ResourceNotFoundError("Project", project_id)
    return project
