"""
Business logic for tasks.

Tasks are created inside a sprint and inherit that sprint's project:
``task.project_id`` is copied from the resolved sprint and never taken
from the client.  Changing a task requires managing its project;
reading one is also allowed to its assignee.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from project_manager_api.app.core.errors import (
    SprintNotExistError,
    TaskNotExistError,
    UserNotManageProjectError,
    UserNotPartProjectError,
)
from project_manager_api.app.models.models import Task
from project_manager_api.app.repositories.task import TaskRepository
from project_manager_api.app.schemas.task import TaskCreate, TaskFilter, TaskUpdate
from project_manager_api.app.services.authorization import (
    PROJECT_CHAIN,
    SPRINT_CHAIN,
    TASK_CHAIN,
    resolve_managed_entity,
    resolve_visible_task,
)
from project_manager_api.app.services.user_service import UserService
from project_manager_api.app.services.validators import validate_task_priority, validate_task_status


_CLEARABLE_FIELDS = {"due_date", "description"}


class TaskService:
    """Create, query, change, assign and delete tasks."""

    @classmethod
    async def _check_assignee(cls, db: Session, user_id: int, project_id: int, context: str) -> None:
        user = await UserService.require_user(db, user_id, context)
        if user.current_project_id != project_id:
            raise UserNotPartProjectError(f"{context}: user {user_id} is not part of project {project_id}")

    @classmethod
    async def create_task(cls, db: Session, principal_id: int, sprint_id: int, data: TaskCreate) -> Task:
        """Create a task in a sprint whose project the caller manages.

        The task's ``sprint_id`` and ``project_id`` come from the
        resolved sprint.  An optional assignee must be on the project's
        team.

        Raises
        ------
        SprintNotExistError
            The sprint does not exist.
        UserNotManageProjectError
            The caller does not manage the sprint's project.
        UserNotExistError, UserNotPartProjectError
            The requested assignee cannot take the task.
        """
        logger = logging.getLogger(__name__)
        logger.debug("User %s creating task '%s' in sprint %s", principal_id, data.title, sprint_id)
        try:
            sprint = resolve_managed_entity(db, SPRINT_CHAIN, principal_id, sprint_id)
        except SprintNotExistError as exc:
            raise SprintNotExistError(f"cannot create task: sprint {sprint_id} does not exist") from exc
        except UserNotManageProjectError as exc:
            raise UserNotManageProjectError(f"cannot create task: {exc.message}") from exc

        if data.assignee_id is not None:
            await cls._check_assignee(db, data.assignee_id, sprint.project_id, "cannot create task")

        task = Task(
            title=data.title,
            description=data.description or "",
            status=validate_task_status(data.status),
            priority=validate_task_priority(data.priority),
            due_date=data.due_date,
            sprint_id=sprint.id,
            project_id=sprint.project_id,
            assignee_id=data.assignee_id,
        )
        repo = TaskRepository(db)
        task = repo.create(task)
        logger.info(
            "User %s created task %s in sprint %s (project %s)",
            principal_id, task.id, sprint.id, sprint.project_id,
        )
        return repo.get(task.id)

    @classmethod
    async def get_task(cls, db: Session, principal_id: int, task_id: int) -> Task:
        """Return a task to its project's manager or to its assignee."""
        return resolve_visible_task(db, principal_id, task_id)

    @classmethod
    async def update_task(cls, db: Session, principal_id: int, task_id: int, data: TaskUpdate) -> Task:
        logger = logging.getLogger(__name__)
        task = resolve_managed_entity(db, TASK_CHAIN, principal_id, task_id)
        fields = {
            k: v
            for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k in _CLEARABLE_FIELDS
        }
        if not fields:
            logger.debug("Nothing to update for task %s", task_id)
            return task
        if "description" in fields and fields["description"] is None:
            fields["description"] = ""
        if "status" in fields:
            fields["status"] = validate_task_status(fields["status"])
        if "priority" in fields:
            fields["priority"] = validate_task_priority(fields["priority"])

        try:
            updated = TaskRepository(db).update(task_id, fields)
        except TaskNotExistError as exc:
            raise TaskNotExistError(f"cannot update task {task_id}: it no longer exists") from exc
        logger.info("User %s updated task %s (%s)", principal_id, task_id, ", ".join(sorted(fields)))
        return updated

    @classmethod
    async def delete_task(cls, db: Session, principal_id: int, task_id: int) -> None:
        """Soft delete a task whose project the caller manages.

        A task deleted concurrently after authorization yields
        :class:`TaskNotExistError`.
        """
        logger = logging.getLogger(__name__)
        resolve_managed_entity(db, TASK_CHAIN, principal_id, task_id)
        try:
            TaskRepository(db).delete(task_id)
        except TaskNotExistError as exc:
            logger.warning("Task %s vanished before it could be deleted", task_id)
            raise TaskNotExistError(f"cannot delete task {task_id}: it no longer exists") from exc
        logger.info("User %s deleted task %s", principal_id, task_id)

    @classmethod
    async def assign_task_to_user(cls, db: Session, principal_id: int, task_id: int, assignee_id: int) -> Task:
        """Assign a task to a member of its project's team.

        Raises
        ------
        UserNotExistError
            The assignee does not exist.
        UserNotPartProjectError
            The assignee is not on the task's project team.
        """
        logger = logging.getLogger(__name__)
        task = resolve_managed_entity(db, TASK_CHAIN, principal_id, task_id)
        context = f"cannot assign task {task_id}"
        await cls._check_assignee(db, assignee_id, task.project_id, context)
        try:
            updated = TaskRepository(db).assign_to_user(task_id, assignee_id)
        except TaskNotExistError as exc:
            raise TaskNotExistError(f"{context}: it no longer exists") from exc
        logger.info("User %s assigned task %s to user %s", principal_id, task_id, assignee_id)
        return updated

    @classmethod
    async def find_tasks_by_project_id(cls, db: Session, principal_id: int, project_id: int) -> List[Task]:
        """List the tasks of a project the caller manages."""
        resolve_managed_entity(db, PROJECT_CHAIN, principal_id, project_id)
        return TaskRepository(db).find_by_project(project_id)

    @classmethod
    async def find_tasks_by_user_id(cls, db: Session, user_id: int) -> List[Task]:
        return TaskRepository(db).find_by_assignee(user_id)

    @classmethod
    async def find_tasks(cls, db: Session, filters: Optional[TaskFilter] = None) -> List[Task]:
        return TaskRepository(db).find(filters)
