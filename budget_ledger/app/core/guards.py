"""
Authorization gate for role-based and barangay-scoped access control.

Every mutating entry point asks the gate before touching storage. The rules
live in one table keyed by operation, so adding a role or tightening a rule
is a one-line change here instead of a hunt through endpoints.

Decisions are made against an ``Actor`` built from the users table on the
current request, so a role change applies on the very next request.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from budget_ledger.app.core.exceptions import ForbiddenError, InvalidStateError
from budget_ledger.app.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing a request."""
    user_id: int
    username: str
    full_name: str
    role: UserRole
    tenant_id: Optional[int] = None

    @property
    def is_main_admin(self) -> bool:
        return self.role == UserRole.MAIN_ADMIN

    def belongs_to(self, tenant_id: Optional[int]) -> bool:
        return self.tenant_id is not None and self.tenant_id == tenant_id


class TenantScopedResource(Protocol):
    """Anything owned by a barangay, created by a user and soft-archivable."""
    tenant_id: int
    created_by: int
    archived_at: Optional[datetime]


class Operation(str, Enum):
    """Operations guarded by the gate."""
    BUDGET_TRANSACT = "budget_transact"
    BUDGET_READ = "budget_read"
    BUDGET_RESET = "budget_reset"
    BUDGET_RESET_ALL = "budget_reset_all"
    MANAGE_MEMBER = "manage_member"
    MANAGE_CHAIRMAN = "manage_chairman"
    RESOURCE_CREATE = "resource_create"
    AUDIT_READ = "audit_read"
    REPORT_READ = "report_read"


def _main_admin(actor: Actor, tenant_id: Optional[int]) -> bool:
    return actor.is_main_admin


def _main_admin_or_chairman_of(actor: Actor, tenant_id: Optional[int]) -> bool:
    if actor.is_main_admin:
        return True
    return actor.role == UserRole.SK_CHAIRMAN and actor.belongs_to(tenant_id)


def _main_admin_or_member_of(actor: Actor, tenant_id: Optional[int]) -> bool:
    return actor.is_main_admin or actor.belongs_to(tenant_id)


# Operation -> predicate(actor, tenant_id)
RULES: Dict[Operation, Callable[[Actor, Optional[int]], bool]] = {
    Operation.BUDGET_TRANSACT: _main_admin_or_chairman_of,
    Operation.BUDGET_READ: _main_admin_or_member_of,
    Operation.BUDGET_RESET: _main_admin,
    Operation.BUDGET_RESET_ALL: _main_admin,
    Operation.MANAGE_MEMBER: _main_admin_or_chairman_of,
    Operation.MANAGE_CHAIRMAN: _main_admin,
    Operation.RESOURCE_CREATE: _main_admin_or_member_of,
    Operation.AUDIT_READ: _main_admin,
    Operation.REPORT_READ: _main_admin,
}

# Roles that are managed per barangay by its chairman
MEMBER_ROLES = (UserRole.KAGAWAD, UserRole.SK_SECRETARY)


class AuthorizationGate:
    """
    Resolves actor role + barangay scope into allow/deny decisions.

    ``is_allowed`` answers, ``enforce`` raises ``ForbiddenError``. Messages
    never mention the target barangay.
    """

    def __init__(self, rules: Dict[Operation, Callable[[Actor, Optional[int]], bool]] = None):
        self.rules = rules if rules is not None else RULES

    def is_allowed(self, actor: Actor, operation: Operation, tenant_id: Optional[int] = None) -> bool:
        rule = self.rules.get(operation)
        if rule is None:
            return False
        return rule(actor, tenant_id)

    def enforce(self, actor: Actor, operation: Operation, tenant_id: Optional[int] = None) -> None:
        if not self.is_allowed(actor, operation, tenant_id):
            raise ForbiddenError()

    def can_manage_user(
        self,
        actor: Actor,
        target_role: UserRole,
        target_tenant_id: Optional[int],
        target_user_id: Optional[int] = None
    ) -> bool:
        """
        Create/delete rules for council members.

        - kagawad / sk_secretary: main_admin, or the chairman of that barangay
        - sk_chairman: main_admin only
        - main_admin accounts are never managed through the API
        - nobody deletes themselves
        """
        if target_user_id is not None and target_user_id == actor.user_id:
            return False
        if target_role in MEMBER_ROLES:
            return self.is_allowed(actor, Operation.MANAGE_MEMBER, target_tenant_id)
        if target_role == UserRole.SK_CHAIRMAN:
            return self.is_allowed(actor, Operation.MANAGE_CHAIRMAN, target_tenant_id)
        return False

    def enforce_manage_user(
        self,
        actor: Actor,
        target_role: UserRole,
        target_tenant_id: Optional[int],
        target_user_id: Optional[int] = None
    ) -> None:
        if target_user_id is not None and target_user_id == actor.user_id:
            raise ForbiddenError("You cannot delete your own account")
        if not self.can_manage_user(actor, target_role, target_tenant_id, target_user_id):
            raise ForbiddenError()

    def can_change_lifecycle(self, actor: Actor, resource: TenantScopedResource) -> bool:
        """Archive and restore: the resource creator or main_admin."""
        return actor.is_main_admin or resource.created_by == actor.user_id

    def enforce_lifecycle(self, actor: Actor, resource: TenantScopedResource) -> None:
        if not self.can_change_lifecycle(actor, resource):
            raise ForbiddenError()

    def enforce_hard_delete(self, actor: Actor, resource: TenantScopedResource) -> None:
        """Hard delete: same actors as archive, and only from the archived state."""
        self.enforce_lifecycle(actor, resource)
        if resource.archived_at is None:
            raise InvalidStateError(
                "Only archived items can be permanently deleted",
                details={"state": "active"}
            )


authorization_gate = AuthorizationGate()
