"""
Ledger services container.

The ledger store holds the per-barangay locks, so exactly one store must
serve an application instance. The container is built in the lifespan
hook and handed to endpoints through ``get_ledger_services``.
"""

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from budget_ledger.app.core.guards import AuthorizationGate, authorization_gate
from budget_ledger.app.db.session import get_session_factory
from budget_ledger.app.domain.ledger.transaction_processor import TransactionProcessor
from budget_ledger.app.services.audit import AuditRecorder
from budget_ledger.app.services.ledger_store import LedgerStore
from budget_ledger.app.services.membership import MembershipService
from budget_ledger.app.services.projects import ProjectService


@dataclass
class LedgerServices:
    store: LedgerStore
    audit: AuditRecorder
    gate: AuthorizationGate
    processor: TransactionProcessor
    members: MembershipService
    projects: ProjectService


def build_ledger_services(session_factory: async_sessionmaker, gate: AuthorizationGate = None) -> LedgerServices:
    gate = gate or authorization_gate
    store = LedgerStore()
    audit = AuditRecorder(session_factory)
    return LedgerServices(
        store=store,
        audit=audit,
        gate=gate,
        processor=TransactionProcessor(store, audit, gate),
        members=MembershipService(store, audit, gate),
        projects=ProjectService(audit, gate),
    )


def get_ledger_services(request: Request) -> LedgerServices:
    """FastAPI dependency; builds the container on first use if the lifespan did not."""
    services = getattr(request.app.state, "ledger_services", None)
    if services is None:
        services = build_ledger_services(get_session_factory())
        request.app.state.ledger_services = services
    return services
