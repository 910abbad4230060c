"""
Integration tests for the budget ledger HTTP API.

Tests balances, transactions, resets, audit listing and reports through
the v1 endpoints, including error codes and access control.
"""

import pytest

from budget_ledger.app.core.guards import RULES, AuthorizationGate, Operation
from budget_ledger.app.models.enums import UserRole


def tx(kind, amount, description=None):
    body = {"transaction_type": kind, "amount": amount}
    if description is not None:
        body["description"] = description
    return body


@pytest.mark.asyncio
async def test_get_budget_lazily_creates_zero_account(client, tenants, auth_headers):
    tenant_a, _ = tenants
    response = await client.get(f"/v1/tenants/{tenant_a.id}/budget", headers=auth_headers["kagawad_a"])

    assert response.status_code == 200
    data = response.json()
    assert data["tenant_id"] == tenant_a.id
    assert data["total_budget"] == "0.00"
    assert data["available_budget"] == "0.00"


async def test_list_tenants_ordered_by_name(client, tenants, auth_headers):
    response = await client.get("/v1/tenants", headers=auth_headers["kagawad_a"])
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["Poblacion", "San Isidro"]


async def test_requests_without_token_are_rejected(client, tenants):
    tenant_a, _ = tenants
    response = await client.get(f"/v1/tenants/{tenant_a.id}/budget")
    assert response.status_code in (401, 403)


async def test_invalid_token_is_unauthorized(client, tenants):
    response = await client.get("/v1/tenants", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


@pytest.mark.asyncio
async def test_chairman_add_and_deduct_flow(client, services, tenants, auth_headers):
    tenant_a, _ = tenants
    headers = auth_headers["chairman_a"]
    url = f"/v1/tenants/{tenant_a.id}/budget/transactions"

    response = await client.post(url, json=tx("add", "1000.00", "Annual allocation"), headers=headers)
    assert response.status_code == 201
    data = response.json()
    assert data["transaction"]["amount"] == "1000.00"
    assert data["transaction"]["transaction_type"] == "add"
    assert data["transaction"]["created_by_name"] == "Chairman A"
    assert data["budget"]["total_budget"] == "1000.00"
    assert data["budget"]["available_budget"] == "1000.00"

    response = await client.post(url, json=tx("deduct", 250.5), headers=headers)
    assert response.status_code == 201
    assert response.json()["budget"]["available_budget"] == "749.50"

    response = await client.post(url, json=tx("deduct", "10000.00"), headers=headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_LEDGER_FUNDS"
    assert body["message"] == "Insufficient funds"
    assert body["details"] == {"field": "amount"}

    response = await client.get(url, headers=headers)
    assert response.status_code == 200
    transactions = response.json()["transactions"]
    assert [t["transaction_type"] for t in transactions] == ["deduct", "add"]
    assert transactions[1]["description"] == "Annual allocation"

    await services.audit.drain()


@pytest.mark.parametrize("amount, message", [
    ("abc", "Amount must be a number"),
    ("-10", "Amount must be positive"),
    ("0", "Amount must be positive"),
    ("12.345", "Amount can have at most 2 decimal places"),
    ("1000000000", "Amount too large"),
    (None, "Amount is required"),
])
async def test_invalid_amount_is_field_scoped(client, tenants, auth_headers, amount, message):
    tenant_a, _ = tenants
    response = await client.post(
        f"/v1/tenants/{tenant_a.id}/budget/transactions",
        json=tx("add", amount),
        headers=auth_headers["chairman_a"]
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_LEDGER_AMOUNT"
    assert body["message"] == message
    assert body["details"]["field"] == "amount"


async def test_description_too_long(client, tenants, auth_headers):
    tenant_a, _ = tenants
    response = await client.post(
        f"/v1/tenants/{tenant_a.id}/budget/transactions",
        json=tx("add", "10.00", "x" * 501),
        headers=auth_headers["chairman_a"]
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_LEDGER_DESCRIPTION"
    assert response.json()["details"]["field"] == "description"


async def test_unknown_transaction_type_is_validation_error(client, tenants, auth_headers):
    tenant_a, _ = tenants
    response = await client.post(
        f"/v1/tenants/{tenant_a.id}/budget/transactions",
        json=tx("transfer", "10.00"),
        headers=auth_headers["chairman_a"]
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


async def test_cross_barangay_access_is_forbidden(client, tenants, auth_headers):
    tenant_a, tenant_b = tenants
    await client.post(
        f"/v1/tenants/{tenant_b.id}/budget/transactions",
        json=tx("add", "300.00"),
        headers=auth_headers["admin"]
    )

    response = await client.post(
        f"/v1/tenants/{tenant_b.id}/budget/transactions",
        json=tx("deduct", "10.00"),
        headers=auth_headers["chairman_a"]
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"
    assert str(tenant_b.id) not in response.json()["message"]

    response = await client.get(f"/v1/tenants/{tenant_b.id}/budget", headers=auth_headers["kagawad_a"])
    assert response.status_code == 403

    response = await client.get(f"/v1/tenants/{tenant_b.id}/budget", headers=auth_headers["chairman_b"])
    assert response.json()["available_budget"] == "300.00"


async def test_unknown_barangay_is_404_for_admin(client, tenants, auth_headers):
    response = await client.get("/v1/tenants/9999/budget", headers=auth_headers["admin"])
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


async def test_reset_is_admin_only_and_keeps_history(client, tenants, auth_headers):
    tenant_a, _ = tenants
    url = f"/v1/tenants/{tenant_a.id}/budget"
    await client.post(f"{url}/transactions", json=tx("add", "500.00"), headers=auth_headers["chairman_a"])

    response = await client.post(f"{url}/reset", headers=auth_headers["chairman_a"])
    assert response.status_code == 403

    response = await client.post(f"{url}/reset", headers=auth_headers["admin"])
    assert response.status_code == 200
    assert response.json()["total_budget"] == "0.00"
    assert response.json()["available_budget"] == "0.00"

    response = await client.get(f"{url}/transactions", headers=auth_headers["admin"])
    assert response.json()["total"] == 1


async def test_reset_all(client, tenants, auth_headers):
    tenant_a, tenant_b = tenants
    for tenant in (tenant_a, tenant_b):
        await client.post(
            f"/v1/tenants/{tenant.id}/budget/transactions",
            json=tx("add", "10.00"),
            headers=auth_headers["admin"]
        )

    response = await client.post("/v1/budgets/reset", headers=auth_headers["chairman_a"])
    assert response.status_code == 403

    response = await client.post("/v1/budgets/reset", headers=auth_headers["admin"])
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert all(b["total_budget"] == "0.00" and b["available_budget"] == "0.00" for b in data["budgets"])


async def test_audit_log_listing(client, services, tenants, auth_headers):
    tenant_a, _ = tenants
    await client.post(
        f"/v1/tenants/{tenant_a.id}/budget/transactions",
        json=tx("add", "42.00", "Seed money"),
        headers=auth_headers["chairman_a"]
    )
    await services.audit.drain()

    response = await client.get("/v1/admin/audit-logs", headers=auth_headers["chairman_a"])
    assert response.status_code == 403

    response = await client.get("/v1/admin/audit-logs?limit=50", headers=auth_headers["admin"])
    assert response.status_code == 200
    entries = response.json()["entries"]
    budget_entries = [e for e in entries if e["action"] == "budget_add"]
    assert len(budget_entries) == 1
    entry = budget_entries[0]
    assert entry["actor_name"] == "Chairman A"
    assert entry["tenant_name"] == "Poblacion"
    assert entry["details"]["amount"] == "42.00"
    assert entries[0]["id"] == max(e["id"] for e in entries)

    response = await client.get("/v1/admin/audit-logs?limit=0", headers=auth_headers["admin"])
    assert response.status_code == 422


async def test_reports_overview_and_monthly_spend(client, tenants, auth_headers):
    tenant_a, _ = tenants
    url = f"/v1/tenants/{tenant_a.id}/budget/transactions"
    await client.post(url, json=tx("add", "1000.00"), headers=auth_headers["admin"])
    await client.post(url, json=tx("deduct", "250.50"), headers=auth_headers["admin"])

    response = await client.get("/v1/reports/overview", headers=auth_headers["kagawad_a"])
    assert response.status_code == 403

    response = await client.get("/v1/reports/overview", headers=auth_headers["admin"])
    assert response.status_code == 200
    overview = response.json()
    assert overview["overall_budget"] == "1000.00"
    poblacion = next(t for t in overview["tenants"] if t["tenant_name"] == "Poblacion")
    assert poblacion["utilization_percent"] == "25.05"

    response = await client.get("/v1/reports/monthly-spend", headers=auth_headers["admin"])
    assert response.status_code == 200
    months = response.json()["months"]
    assert len(months) == 1
    assert months[0]["total_spent"] == "250.50"


async def test_audit_and_report_endpoints_consult_the_gate(client, tenants, auth_headers, services, monkeypatch):
    def chairman_only(actor, tenant_id):
        return actor.role == UserRole.SK_CHAIRMAN

    rules = dict(RULES)
    rules[Operation.AUDIT_READ] = chairman_only
    rules[Operation.REPORT_READ] = chairman_only
    monkeypatch.setattr(services, "gate", AuthorizationGate(rules))

    for url in ("/v1/admin/audit-logs", "/v1/reports/overview", "/v1/reports/monthly-spend"):
        response = await client.get(url, headers=auth_headers["chairman_a"])
        assert response.status_code == 200, url
        response = await client.get(url, headers=auth_headers["admin"])
        assert response.status_code == 403, url


async def test_health_and_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "abc-123"
