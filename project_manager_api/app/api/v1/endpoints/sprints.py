"""API endpoints for sprints.  All routes require the ``PROJECT_MANAGER`` role."""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from project_manager_api.app.api.v1.filters import query_filters
from project_manager_api.app.core.db import get_db
from project_manager_api.app.core.security import Principal, require_roles
from project_manager_api.app.models.enums import UserRole
from project_manager_api.app.schemas.sprint import SprintCreate, SprintFilter, SprintRead, SprintUpdate
from project_manager_api.app.services.sprint_service import SprintService


router = APIRouter()

manager_only = require_roles(UserRole.PROJECT_MANAGER)


@router.post("/sprints", response_model=SprintRead, status_code=status.HTTP_201_CREATED, summary="Create a sprint")
async def create_sprint(
    data: SprintCreate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> SprintRead:
    """Create a sprint in ``data.project_id``.

    The sprint must not start before the project or after the project's
    end date.  Only the project's manager may create it.
    """
    sprint = await SprintService.create_sprint(db, principal.user_id, data.project_id, data)
    return SprintRead.model_validate(sprint)


@router.get("/sprints", response_model=List[SprintRead], summary="List sprints")
async def list_sprints(
    filters: SprintFilter = Depends(query_filters(SprintFilter)),
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> List[SprintRead]:
    sprints = await SprintService.list_sprints(db, filters)
    return [SprintRead.model_validate(s) for s in sprints]


@router.get("/sprints/{sprint_id}", response_model=SprintRead, summary="Get a sprint")
async def get_sprint(
    sprint_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> SprintRead:
    sprint = await SprintService.get_sprint(db, principal.user_id, sprint_id)
    return SprintRead.model_validate(sprint)


@router.put("/sprints/{sprint_id}", response_model=SprintRead, summary="Update a sprint")
async def update_sprint(
    sprint_id: int,
    data: SprintUpdate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> SprintRead:
    sprint = await SprintService.update_sprint(db, principal.user_id, sprint_id, data)
    return SprintRead.model_validate(sprint)


@router.delete("/sprints/{sprint_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a sprint")
async def delete_sprint(
    sprint_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> Response:
    await SprintService.delete_sprint(db, principal.user_id, sprint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
