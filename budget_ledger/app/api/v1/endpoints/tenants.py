"""
Barangay and budget ledger endpoints.

Balances and transactions of one barangay. Every mutation goes through
the transaction processor, which consults the authorization gate.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from budget_ledger.app.core.config import settings
from budget_ledger.app.core.dependencies import get_current_actor
from budget_ledger.app.core.guards import Actor, Operation
from budget_ledger.app.db.session import get_db
from budget_ledger.app.domain.ledger.transaction_processor import TransactionRequest
from budget_ledger.app.schemas.budget import (
    TenantResponse, BudgetAccountResponse, TransactionCreate, TransactionResponse,
    TransactionResult, TransactionListResponse, ResetAllResponse
)
from budget_ledger.app.services.container import LedgerServices, get_ledger_services
from budget_ledger.app.services.tenant_registry import TenantRegistry
from typing import List

router = APIRouter(tags=["Budget Ledger"])


def _transaction_response(transaction, created_by_name=None) -> TransactionResponse:
    response = TransactionResponse.model_validate(transaction)
    response.created_by_name = created_by_name
    return response


@router.get("/tenants", response_model=List[TenantResponse])
async def list_tenants(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """All barangays ordered by name."""
    tenants = await TenantRegistry.list_tenants(db)
    return [TenantResponse.model_validate(t) for t in tenants]


@router.get("/tenants/{tenant_id}/budget", response_model=BudgetAccountResponse)
async def get_budget(
    tenant_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """
    Balances of one barangay.

    The account is created with zero balances on first access.
    """
    services.gate.enforce(actor, Operation.BUDGET_READ, tenant_id)
    account = await services.store.fetch(db, tenant_id)
    return BudgetAccountResponse.model_validate(account)


@router.post(
    "/tenants/{tenant_id}/budget/transactions",
    response_model=TransactionResult,
    status_code=status.HTTP_201_CREATED
)
async def submit_transaction(
    tenant_id: int,
    payload: TransactionCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """
    Add to or deduct from a barangay's budget (main_admin or its chairman).

    Errors:
    - 400 ERR_LEDGER_AMOUNT / ERR_LEDGER_DESCRIPTION
    - 403 when the actor may not transact on this barangay
    - 409 ERR_LEDGER_FUNDS when a deduct exceeds the available budget
    """
    transaction, account = await services.processor.submit(
        db,
        actor,
        TransactionRequest(
            tenant_id=tenant_id,
            transaction_type=payload.transaction_type,
            amount=payload.amount,
            description=payload.description,
            related_project_id=payload.related_project_id,
        )
    )
    return TransactionResult(
        transaction=_transaction_response(transaction, actor.full_name),
        budget=BudgetAccountResponse.model_validate(account)
    )


@router.get("/tenants/{tenant_id}/budget/transactions", response_model=TransactionListResponse)
async def list_transactions(
    tenant_id: int,
    limit: int = Query(settings.transaction_list_limit, ge=1, le=100, description="Most recent N"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Most recent transactions of a barangay, newest first."""
    services.gate.enforce(actor, Operation.BUDGET_READ, tenant_id)
    await TenantRegistry.get_tenant(db, tenant_id)

    rows = await services.store.list_transactions(db, tenant_id, limit)
    return TransactionListResponse(
        transactions=[_transaction_response(txn, name) for txn, name in rows],
        total=len(rows)
    )


@router.post("/tenants/{tenant_id}/budget/reset", response_model=BudgetAccountResponse)
async def reset_budget(
    tenant_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Zero a barangay's balances (main_admin only). Transaction history is kept."""
    account = await services.processor.reset(db, actor, tenant_id)
    return BudgetAccountResponse.model_validate(account)


@router.post("/budgets/reset", response_model=ResetAllResponse)
async def reset_all_budgets(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Zero every barangay's balances in one unit of work (main_admin only)."""
    accounts = await services.processor.reset_all(db, actor)
    return ResetAllResponse(
        budgets=[BudgetAccountResponse.model_validate(a) for a in accounts],
        total=len(accounts)
    )
