"""
Membership service.

Creates and deletes council members. The authorization gate decides who
may manage which role; this module enforces the data rules around it.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.core.exceptions import (
    DuplicateResourceError,
    ForbiddenError,
    InvalidStateError,
    ResourceNotFoundError,
)
from budget_ledger.app.core.guards import Actor, AuthorizationGate
from budget_ledger.app.core.security import get_password_hash
from budget_ledger.app.core.token_revocation import clear_user_token_revocation, revoke_all_user_tokens
from budget_ledger.app.models.budget_transaction import BudgetTransaction
from budget_ledger.app.models.enums import UserRole
from budget_ledger.app.models.project import Project
from budget_ledger.app.models.user import User
from budget_ledger.app.services.audit import AuditAction, AuditRecorder
from budget_ledger.app.services.ledger_store import LedgerStore
from budget_ledger.app.services.tenant_registry import TenantRegistry

logger = logging.getLogger("budget_ledger.membership")


class MembershipService:

    def __init__(self, store: LedgerStore, audit: AuditRecorder, gate: AuthorizationGate):
        self.store = store
        self.audit = audit
        self.gate = gate

    async def list_members(self, db: AsyncSession, actor: Actor, tenant_id: Optional[int] = None) -> List[User]:
        """
        main_admin sees everyone (optionally one barangay); others see
        their own barangay only.
        """
        query = select(User).order_by(User.full_name, User.id)
        if not actor.is_main_admin:
            if tenant_id is not None and not actor.belongs_to(tenant_id):
                raise ForbiddenError()
            tenant_id = actor.tenant_id
        if tenant_id is not None:
            query = query.where(User.tenant_id == tenant_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create_member(
        self,
        db: AsyncSession,
        redis,
        actor: Actor,
        *,
        email: str,
        username: str,
        full_name: str,
        password: str,
        role: UserRole,
        tenant_id: int
    ) -> User:
        """
        Create a kagawad, sk_secretary or sk_chairman bound to a barangay.

        - one sk_secretary per barangay
        - a new sk_chairman gets the barangay's budget account initialized
        """
        self.gate.enforce_manage_user(actor, role, tenant_id)
        await TenantRegistry.get_tenant(db, tenant_id)

        existing = await db.execute(
            select(User).where(or_(User.username == username, User.email == email))
        )
        existing_user = existing.scalars().first()
        if existing_user:
            if existing_user.username == username:
                raise DuplicateResourceError("Username already registered", field="username")
            raise DuplicateResourceError("Email already registered", field="email")

        if role == UserRole.SK_SECRETARY:
            secretary = await db.execute(
                select(User.id).where(User.tenant_id == tenant_id, User.role == UserRole.SK_SECRETARY)
            )
            if secretary.first() is not None:
                raise InvalidStateError(
                    "This barangay already has a secretary",
                    details={"field": "role"}
                )

        user = User(
            email=email,
            username=username,
            full_name=full_name,
            hashed_password=get_password_hash(password),
            role=role,
            tenant_id=tenant_id,
            is_active=True,
        )
        async with self.store.locks.hold(tenant_id):
            if role == UserRole.SK_CHAIRMAN:
                await self.store.get_or_create(db, tenant_id)

            db.add(user)
            try:
                await db.flush()
                await db.refresh(user)
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise DuplicateResourceError("Username or email already registered", field="username")

        # Ids can be reused after deletion on some backends
        await clear_user_token_revocation(redis, user.id)

        logger.info("Member created", extra={"user_id": user.id, "role": role.value, "tenant_id": tenant_id})
        self.audit.record(
            action=AuditAction.USER_CREATE,
            table_name="users",
            actor_id=actor.user_id,
            record_id=user.id,
            tenant_id=tenant_id,
            details={"role": role.value, "username": username, "created_by_role": actor.role.value}
        )
        return user

    async def delete_member(self, db: AsyncSession, redis, actor: Actor, user_id: int) -> None:
        """
        Delete a council member.

        Records they created are reassigned to the requester, then their
        tokens are revoked.
        """
        target = await db.get(User, user_id)
        if target is None:
            raise ResourceNotFoundError("User", user_id)

        self.gate.enforce_manage_user(actor, target.role, target.tenant_id, target_user_id=target.id)

        deleted_role = target.role
        tenant_id = target.tenant_id

        await db.execute(
            update(BudgetTransaction)
            .where(BudgetTransaction.created_by == user_id)
            .values(created_by=actor.user_id)
        )
        await db.execute(
            update(Project)
            .where(Project.created_by == user_id)
            .values(created_by=actor.user_id)
        )
        await db.delete(target)
        await db.commit()

        await revoke_all_user_tokens(redis, user_id)

        logger.info("Member deleted", extra={"user_id": user_id, "actor_id": actor.user_id})
        self.audit.record(
            action=AuditAction.USER_DELETE,
            table_name="users",
            actor_id=actor.user_id,
            record_id=user_id,
            tenant_id=tenant_id,
            details={"deleted_role": deleted_role.value, "deleted_by_role": actor.role.value}
        )
