"""
Project endpoints.

Barangay projects with archive, restore and permanent delete.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from budget_ledger.app.core.dependencies import get_current_actor
from budget_ledger.app.core.guards import Actor
from budget_ledger.app.db.session import get_db
from budget_ledger.app.schemas.project import ProjectCreate, ProjectResponse, ProjectListResponse
from budget_ledger.app.services.container import LedgerServices, get_ledger_services

router = APIRouter(tags=["Projects"])


@router.post("/tenants/{tenant_id}/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    tenant_id: int,
    payload: ProjectCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    project = await services.projects.create(db, actor, tenant_id, payload.title, payload.description)
    return ProjectResponse.model_validate(project)


@router.get("/tenants/{tenant_id}/projects", response_model=ProjectListResponse)
async def list_projects(
    tenant_id: int,
    archived: bool = Query(False, description="List the archive instead of active projects"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    projects = await services.projects.list_for_tenant(db, actor, tenant_id, archived=archived)
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(p) for p in projects],
        total=len(projects)
    )


@router.post("/projects/{project_id}/archive", response_model=ProjectResponse)
async def archive_project(
    project_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Soft delete (creator or main_admin)."""
    project = await services.projects.archive(db, actor, project_id)
    return ProjectResponse.model_validate(project)


@router.post("/projects/{project_id}/restore", response_model=ProjectResponse)
async def restore_project(
    project_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    project = await services.projects.restore(db, actor, project_id)
    return ProjectResponse.model_validate(project)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    services: LedgerServices = Depends(get_ledger_services)
):
    """Permanent delete; the project must be archived first (409 otherwise)."""
    await services.projects.delete(db, actor, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
