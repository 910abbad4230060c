"""
Project service.

Barangay projects follow a soft-archive lifecycle:
active -> archived -> restored (active) | permanently deleted.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.app.core.exceptions import InvalidStateError, ResourceNotFoundError
from budget_ledger.app.core.guards import Actor, AuthorizationGate, Operation
from budget_ledger.app.models.project import Project
from budget_ledger.app.services.audit import AuditAction, AuditRecorder
from budget_ledger.app.services.tenant_registry import TenantRegistry

logger = logging.getLogger("budget_ledger.projects")


class ProjectService:

    def __init__(self, audit: AuditRecorder, gate: AuthorizationGate):
        self.audit = audit
        self.gate = gate

    async def _get(self, db: AsyncSession, project_id: int) -> Project:
        project = await db.get(Project, project_id)
        if project is None:
            raise ResourceNotFoundError("Project", project_id)
        return project

    async def create(self, db: AsyncSession, actor: Actor, tenant_id: int, title: str, description: Optional[str] = None) -> Project:
        self.gate.enforce(actor, Operation.RESOURCE_CREATE, tenant_id)
        await TenantRegistry.get_tenant(db, tenant_id)

        project = Project(
            tenant_id=tenant_id,
            created_by=actor.user_id,
            title=title,
            description=description,
        )
        db.add(project)
        await db.commit()
        await db.refresh(project)

        self.audit.record(
            action=AuditAction.PROJECT_CREATE,
            table_name="projects",
            actor_id=actor.user_id,
            record_id=project.id,
            tenant_id=tenant_id,
            details={"title": title}
        )
        return project

    async def list_for_tenant(self, db: AsyncSession, actor: Actor, tenant_id: int, archived: bool = False) -> List[Project]:
        """Active projects by default; ``archived=True`` lists the archive."""
        self.gate.enforce(actor, Operation.BUDGET_READ, tenant_id)
        await TenantRegistry.get_tenant(db, tenant_id)

        query = select(Project).where(Project.tenant_id == tenant_id)
        if archived:
            query = query.where(Project.archived_at.is_not(None)).order_by(desc(Project.archived_at), desc(Project.id))
        else:
            query = query.where(Project.archived_at.is_(None)).order_by(desc(Project.created_at), desc(Project.id))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def archive(self, db: AsyncSession, actor: Actor, project_id: int) -> Project:
        project = await self._get(db, project_id)
        self.gate.enforce_lifecycle(actor, project)
        if project.is_archived:
            raise InvalidStateError("Project is already archived", details={"state": "archived"})

        now = datetime.now(timezone.utc)
        project.archived_at = now
        project.updated_at = now
        await db.commit()
        await db.refresh(project)

        self._record(AuditAction.PROJECT_ARCHIVE, actor, project)
        return project

    async def restore(self, db: AsyncSession, actor: Actor, project_id: int) -> Project:
        project = await self._get(db, project_id)
        self.gate.enforce_lifecycle(actor, project)
        if not project.is_archived:
            raise InvalidStateError("Project is not archived", details={"state": "active"})

        project.archived_at = None
        project.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(project)

        self._record(AuditAction.PROJECT_RESTORE, actor, project)
        return project

    async def delete(self, db: AsyncSession, actor: Actor, project_id: int) -> None:
        """Permanent delete, allowed from the archived state only."""
        project = await self._get(db, project_id)
        self.gate.enforce_hard_delete(actor, project)

        tenant_id, title = project.tenant_id, project.title
        await db.delete(project)
        await db.commit()
        logger.info("Project deleted", extra={"project_id": project_id, "actor_id": actor.user_id})

        self.audit.record(
            action=AuditAction.PROJECT_DELETE,
            table_name="projects",
            actor_id=actor.user_id,
            record_id=project_id,
            tenant_id=tenant_id,
            details={"title": title}
        )

    def _record(self, action: str, actor: Actor, project: Project) -> None:
        self.audit.record(
            action=action,
            table_name="projects",
            actor_id=actor.user_id,
            record_id=project.id,
            tenant_id=project.tenant_id,
            details={"title": project.title}
        )
