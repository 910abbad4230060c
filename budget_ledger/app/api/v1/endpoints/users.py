"""
User management endpoints.

main_admin manages chairmen and members of any barangay; a chairman
manages the kagawad and secretary of their own barangay.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from budget_ledger.app.core.dependencies import get_current_actor
from budget_ledger.app.core.guards import Actor
from budget_ledger.app.core.redis_client import get_redis
from budget_ledger.app.db.session import get_db
from budget_ledger.app.schemas.auth import UserResponse
from budget_ledger.app.schemas.users import MemberCreate, MemberListResponse
from budget_ledger.app.services.container import LedgerServices, get_ledger_services

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=MemberListResponse)
async def list_members(
    tenant_id: Optional[int] = Query(None, description="Restrict to one barangay"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    users = await services.members.list_members(db, actor, tenant_id)
    return MemberListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users)
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    payload: MemberCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    services: LedgerServices = Depends(get_ledger_services)
):
    """
    Create a council member.

    Creating an sk_chairman also initializes the barangay's budget account.
    """
    user = await services.members.create_member(
        db,
        redis,
        actor,
        email=payload.email,
        username=payload.username,
        full_name=payload.full_name,
        password=payload.password,
        role=payload.role,
        tenant_id=payload.tenant_id,
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    user_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Delete a council member and revoke their tokens. Self-deletion is refused."""
    await services.members.delete_member(db, redis, actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
