"""
API endpoints for tasks.

Creating, listing, changing, assigning and deleting tasks requires the
``PROJECT_MANAGER`` role and, per task, managing its project.  Reading
a single task is open to any authenticated user who manages the task's
project or is its assignee.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from project_manager_api.app.api.v1.filters import query_filters
from project_manager_api.app.core.db import get_db
from project_manager_api.app.core.security import Principal, get_current_user, require_roles
from project_manager_api.app.models.enums import UserRole
from project_manager_api.app.schemas.task import TaskAssignRequest, TaskCreate, TaskFilter, TaskRead, TaskUpdate
from project_manager_api.app.services.task_service import TaskService


router = APIRouter()

manager_only = require_roles(UserRole.PROJECT_MANAGER)


@router.post("/tasks", response_model=TaskRead, status_code=status.HTTP_201_CREATED, summary="Create a task")
async def create_task(
    data: TaskCreate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> TaskRead:
    """Create a task in ``data.sprint_id``; its project is the sprint's project."""
    task = await TaskService.create_task(db, principal.user_id, data.sprint_id, data)
    return TaskRead.model_validate(task)


@router.get("/tasks", response_model=List[TaskRead], summary="List tasks")
async def list_tasks(
    filters: TaskFilter = Depends(query_filters(TaskFilter)),
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> List[TaskRead]:
    """List tasks.

    Query parameters: ``id``, ``title`` (partial match), ``status``,
    ``priority``, ``project_id``, ``sprint_id``, ``assignee_id`` and
    ``due_date_before`` (``YYYY-MM-DD``, inclusive).
    """
    tasks = await TaskService.find_tasks(db, filters)
    return [TaskRead.model_validate(t) for t in tasks]


@router.get("/tasks/{task_id}", response_model=TaskRead, summary="Get a task")
async def get_task(
    task_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskRead:
    task = await TaskService.get_task(db, principal.user_id, task_id)
    return TaskRead.model_validate(task)


@router.put("/tasks/{task_id}", response_model=TaskRead, summary="Update a task")
async def update_task(
    task_id: int,
    data: TaskUpdate,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> TaskRead:
    task = await TaskService.update_task(db, principal.user_id, task_id, data)
    return TaskRead.model_validate(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a task")
async def delete_task(
    task_id: int,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> Response:
    await TaskService.delete_task(db, principal.user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks/{task_id}/assign", response_model=TaskRead, summary="Assign a task")
async def assign_task(
    task_id: int,
    data: TaskAssignRequest,
    principal: Principal = Depends(manager_only),
    db: Session = Depends(get_db),
) -> TaskRead:
    """Assign the task to a member of its project's team."""
    task = await TaskService.assign_task_to_user(db, principal.user_id, task_id, data.user_id)
    return TaskRead.model_validate(task)
