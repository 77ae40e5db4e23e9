"""
API endpoints for projects.

All routes require the ``PROJECT_MANAGER`` role.  Changing a project,
staffing it or listing its tasks additionally requires being that
project's manager, which the service layer checks.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from project_manager_api.app.api.v1.filters import query_filters
from project_manager_api.app.core.db import get_db
from project_manager_api.app.core.security import Principal, require_roles
from project_manager_api.app.models.enums import UserRole
from project_manager_api.app.schemas.project import (
    AddTeamMembersRequest,
    AddTeamMembersResponse,
    ProjectCreate,
    ProjectFilter,
    ProjectRead,
    ProjectUpdate,
)
from project_manager_api.app.schemas.task import TaskRead
from project_manager_api.app.services.project_service import ProjectService
from project_manager_api.app.services.task_service import TaskService


router = APIRouter()

manager_only = require_roles(UserRole.PROJECT_MANAGER)


@router.post("/projects", response_model=ProjectRead, status_code=status.HTTP_201_CREATED, summary="Create a project")
async def create_project(
    data: ProjectCreate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> ProjectRead:
    """Create a project managed by the caller."""
    project = await ProjectService.create_project(db, principal.user_id, data)
    return ProjectRead.model_validate(project)


@router.get("/projects", response_model=List[ProjectRead], summary="List projects")
async def list_projects(
    filters: ProjectFilter = Depends(query_filters(ProjectFilter)),
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> List[ProjectRead]:
    """List projects.

    Query parameters: ``id``, ``name`` (partial match), ``status``,
    ``manager_id``, ``start_date_after`` and ``end_date_before``
    (``YYYY-MM-DD``, inclusive).
    """
    projects = await ProjectService.list_projects(db, filters)
    return [ProjectRead.model_validate(p) for p in projects]


@router.get("/projects/{project_id}", response_model=ProjectRead, summary="Get a project")
async def get_project(
    project_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> ProjectRead:
    project = await ProjectService.get_project(db, project_id)
    return ProjectRead.model_validate(project)


@router.put("/projects/{project_id}", response_model=ProjectRead, summary="Update a project")
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> ProjectRead:
    project = await ProjectService.update_project(db, principal.user_id, project_id, data)
    return ProjectRead.model_validate(project)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project")
async def delete_project(
    project_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> Response:
    await ProjectService.delete_project(db, principal.user_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/projects/{project_id}/members",
    response_model=AddTeamMembersResponse,
    summary="Add team members",
)
async def add_team_members(
    project_id: int,
    data: AddTeamMembersRequest,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> AddTeamMembersResponse:
    """Add users to the project team.

    Eligible users are added even when others are rejected; rejected
    ids and reasons are listed in the response.  If no user is eligible
    the request fails with 400.
    """
    count, rejected = await ProjectService.add_team_members(db, principal.user_id, project_id, data.user_ids)
    return AddTeamMembersResponse(
        project_id=project_id,
        assigned_count=count,
        failed_user_ids=rejected.user_ids if rejected else [],
        errors=[str(f) for f in rejected.failures] if rejected else [],
    )


@router.get("/projects/{project_id}/tasks", response_model=List[TaskRead], summary="Tasks of a project")
async def list_project_tasks(
    project_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> List[TaskRead]:
    tasks = await TaskService.find_tasks_by_project_id(db, principal.user_id, project_id)
    return [TaskRead.model_validate(t) for t in tasks]
