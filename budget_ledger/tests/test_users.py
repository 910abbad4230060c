"""
Integration tests for authentication and user management.

Tests login, token revocation, role-scoped member creation and deletion.
"""

import asyncio

import pytest
from sqlalchemy import select

from budget_ledger.app.models.audit_log import AuditLog
from budget_ledger.app.models.budget_account import BudgetAccount
from budget_ledger.app.models.budget_transaction import BudgetTransaction
from budget_ledger.app.models.enums import UserRole
from budget_ledger.app.models.tenant import Tenant


def member(username, role, tenant_id, **overrides):
    body = {
        "email": f"{username}@test.com",
        "username": username,
        "full_name": username.title(),
        "password": "password123",
        "role": role,
        "tenant_id": tenant_id,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_login_and_me(client, users):
    response = await client.post("/v1/auth/login", json={"username": "chairman.a@test.com", "password": "password123"})
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "sk_chairman"
    assert data["token_type"] == "bearer"

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert response.status_code == 200
    assert response.json()["username"] == "chairman.a"
    assert response.json()["tenant_id"] == users["chairman_a"].tenant_id
    assert "hashed_password" not in response.json()


async def test_login_with_wrong_password_is_audited(client, services, session_factory, users):
    response = await client.post("/v1/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"

    await services.audit.drain()
    async with session_factory() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == "login_failed"))
        entry = result.scalar_one()
    assert entry.details["reason"] == "Invalid password"


async def test_role_change_applies_on_next_request(client, db_session, tenants, users, auth_headers):
    """Role is read from the database per request, not from the token."""
    tenant_a, _ = tenants
    url = f"/v1/tenants/{tenant_a.id}/budget/transactions"
    response = await client.post(url, json={"transaction_type": "add", "amount": "5.00"}, headers=auth_headers["chairman_a"])
    assert response.status_code == 201

    chairman = users["chairman_a"]
    chairman.role = UserRole.KAGAWAD
    db_session.add(chairman)
    await db_session.commit()

    response = await client.post(url, json={"transaction_type": "add", "amount": "5.00"}, headers=auth_headers["chairman_a"])
    assert response.status_code == 403


async def test_chairman_creates_kagawad_in_own_barangay(client, tenants, auth_headers):
    tenant_a, tenant_b = tenants

    response = await client.post("/v1/users", json=member("kagawad.two", "kagawad", tenant_a.id), headers=auth_headers["chairman_a"])
    assert response.status_code == 201
    assert response.json()["role"] == "kagawad"
    assert response.json()["tenant_id"] == tenant_a.id

    response = await client.post("/v1/users", json=member("kagawad.three", "kagawad", tenant_b.id), headers=auth_headers["chairman_a"])
    assert response.status_code == 403

    response = await client.post("/v1/users", json=member("chair.new", "sk_chairman", tenant_a.id), headers=auth_headers["chairman_a"])
    assert response.status_code == 403


async def test_duplicate_username_is_rejected(client, tenants, auth_headers):
    tenant_a, _ = tenants
    response = await client.post("/v1/users", json=member("kagawad.a", "kagawad", tenant_a.id, email="other@test.com"), headers=auth_headers["admin"])
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_DUPLICATE_001"
    assert response.json()["details"]["field"] == "username"


async def test_one_secretary_per_barangay(client, tenants, auth_headers):
    tenant_a, _ = tenants
    response = await client.post("/v1/users", json=member("secretary.one", "sk_secretary", tenant_a.id), headers=auth_headers["chairman_a"])
    assert response.status_code == 201

    response = await client.post("/v1/users", json=member("secretary.two", "sk_secretary", tenant_a.id), headers=auth_headers["chairman_a"])
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STATE_001"


async def test_creating_chairman_initializes_budget(client, session_factory, auth_headers):
    async with session_factory() as session:
        tenant = Tenant(name="Santa Cruz", code="STC")
        session.add(tenant)
        await session.commit()
        await session.refresh(tenant)

    response = await client.post("/v1/users", json=member("chair.stc", "sk_chairman", tenant.id), headers=auth_headers["admin"])
    assert response.status_code == 201

    async with session_factory() as session:
        result = await session.execute(select(BudgetAccount).where(BudgetAccount.tenant_id == tenant.id))
        assert result.scalar_one().total_budget == 0


async def test_chairman_creation_waits_for_barangay_lock(services, session_factory, redis_client, tenants, actors):
    _, tenant_b = tenants

    async def create_chairman():
        async with session_factory() as session:
            return await services.members.create_member(
                session,
                redis_client,
                actors["admin"],
                email="second.chair@test.com",
                username="second.chair",
                full_name="Second Chair",
                password="password123",
                role=UserRole.SK_CHAIRMAN,
                tenant_id=tenant_b.id,
            )

    async with services.store.locks.hold(tenant_b.id):
        task = asyncio.create_task(create_chairman())
        await asyncio.sleep(0.05)
        assert not task.done()

    user = await task
    assert user.tenant_id == tenant_b.id
    async with session_factory() as session:
        result = await session.execute(select(BudgetAccount).where(BudgetAccount.tenant_id == tenant_b.id))
        assert result.scalar_one().available_budget == 0


async def test_delete_member_reassigns_records_and_revokes_tokens(
    client, services, session_factory, tenants, users, auth_headers, redis_client
):
    tenant_a, _ = tenants
    kagawad = users["kagawad_a"]

    response = await client.post(
        f"/v1/tenants/{tenant_a.id}/projects",
        json={"title": "Clean-up drive"},
        headers=auth_headers["kagawad_a"]
    )
    assert response.status_code == 201
    project_id = response.json()["id"]

    response = await client.delete(f"/v1/users/{kagawad.id}", headers=auth_headers["chairman_a"])
    assert response.status_code == 204

    response = await client.get("/v1/auth/me", headers=auth_headers["kagawad_a"])
    assert response.status_code == 401
    assert await redis_client.exists(f"user:tokens:{kagawad.id}:revoked") == 1

    response = await client.get(f"/v1/tenants/{tenant_a.id}/projects", headers=auth_headers["chairman_a"])
    project = next(p for p in response.json()["projects"] if p["id"] == project_id)
    assert project["created_by"] == users["chairman_a"].id

    await services.audit.drain()
    async with session_factory() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == "user_delete"))
        entry = result.scalar_one()
    assert entry.details == {"deleted_role": "kagawad", "deleted_by_role": "sk_chairman"}


async def test_delete_reassigns_transactions(client, session_factory, tenants, users, auth_headers):
    tenant_a, _ = tenants
    chairman = users["chairman_a"]
    response = await client.post(
        f"/v1/tenants/{tenant_a.id}/budget/transactions",
        json={"transaction_type": "add", "amount": "10.00"},
        headers=auth_headers["chairman_a"]
    )
    assert response.status_code == 201

    response = await client.delete(f"/v1/users/{chairman.id}", headers=auth_headers["admin"])
    assert response.status_code == 204

    async with session_factory() as session:
        result = await session.execute(select(BudgetTransaction.created_by))
        assert result.scalars().all() == [users["admin"].id]


async def test_self_delete_is_forbidden(client, users, auth_headers):
    response = await client.delete(f"/v1/users/{users['chairman_a'].id}", headers=auth_headers["chairman_a"])
    assert response.status_code == 403
    assert response.json()["message"] == "You cannot delete your own account"

    response = await client.delete(f"/v1/users/{users['admin'].id}", headers=auth_headers["admin"])
    assert response.status_code == 403


async def test_chairman_cannot_delete_other_chairman(client, users, auth_headers):
    response = await client.delete(f"/v1/users/{users['chairman_b'].id}", headers=auth_headers["chairman_a"])
    assert response.status_code == 403


async def test_delete_unknown_user_is_404(client, users, auth_headers):
    response = await client.delete("/v1/users/9999", headers=auth_headers["admin"])
    assert response.status_code == 404


async def test_list_members_is_scoped(client, tenants, users, auth_headers):
    tenant_a, tenant_b = tenants
    response = await client.get("/v1/users", headers=auth_headers["kagawad_a"])
    assert response.status_code == 200
    assert {u["username"] for u in response.json()["users"]} == {"chairman.a", "kagawad.a"}

    response = await client.get(f"/v1/users?tenant_id={tenant_b.id}", headers=auth_headers["kagawad_a"])
    assert response.status_code == 403

    response = await client.get("/v1/users", headers=auth_headers["admin"])
    assert response.json()["total"] == 4
