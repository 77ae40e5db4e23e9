"""
Ownership-based authorization.

Projects, sprints and tasks are owned by the manager of the project
they belong to.  Instead of one "fetch then compare manager" routine
per entity type, an :class:`OwnershipChain` describes how to load an
entity and how to walk from it to its owning :class:`Project`;
:func:`resolve_managed_entity` does the fetch and the comparison in one
step and hands the loaded entity back so the caller does not query it
again.

Role gates (admin only, owner or admin) need no entity and live in
:mod:`project_manager_api.app.core.security`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from project_manager_api.app.core.errors import (
    NotFoundError,
    ProjectNotExistError,
    UserNotAuthorizedForTaskError,
    UserNotManageProjectError,
)
from project_manager_api.app.models.models import Project, Task
from project_manager_api.app.repositories.project import ProjectRepository
from project_manager_api.app.repositories.sprint import SprintRepository
from project_manager_api.app.repositories.task import TaskRepository


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnershipChain:
    """How to load one kind of entity and reach the project that owns it."""

    entity_name: str
    fetch: Callable[[Session, int], Any]
    project_of: Callable[[Any], Project]


PROJECT_CHAIN = OwnershipChain(
    entity_name="project",
    fetch=lambda db, entity_id: ProjectRepository(db).get(entity_id),
    project_of=lambda project: project,
)

SPRINT_CHAIN = OwnershipChain(
    entity_name="sprint",
    fetch=lambda db, entity_id: SprintRepository(db).get(entity_id),
    project_of=lambda sprint: sprint.project,
)

# Tasks carry their own project_id, so the chain skips the sprint.
TASK_CHAIN = OwnershipChain(
    entity_name="task",
    fetch=lambda db, entity_id: TaskRepository(db).get(entity_id),
    project_of=lambda task: task.project,
)


def _load_with_project(db: Session, chain: OwnershipChain, entity_id: int):
    try:
        entity = chain.fetch(db, entity_id)
    except NotFoundError:
        logger.warning("%s %s not found", chain.entity_name.capitalize(), entity_id)
        raise
    project = chain.project_of(entity)
    if project is None or project.deleted_at is not None:
        logger.warning("%s %s belongs to a deleted project", chain.entity_name.capitalize(), entity_id)
        raise ProjectNotExistError(f"{chain.entity_name} {entity_id} belongs to a project that does not exist")
    return entity, project


def resolve_managed_entity(db: Session, chain: OwnershipChain, principal_id: int, entity_id: int):
    """Fetch an entity and check that ``principal_id`` manages its project.

    Parameters
    ----------
    db : Session
        Request session.
    chain : OwnershipChain
        ``PROJECT_CHAIN``, ``SPRINT_CHAIN`` or ``TASK_CHAIN``.
    principal_id : int
        Id of the authenticated caller.
    entity_id : int
        Id of the entity to load.

    Returns
    -------
    Any
        The loaded entity with its owning project attached.

    Raises
    ------
    NotFoundError
        The entity kind's not-found error, or ``ProjectNotExistError``
        when the owning project has been deleted.
    UserNotManageProjectError
        If the caller is not the owning project's manager.
    DatabaseFailError
        On any other store failure.  Nothing is retried.
    """
    entity, project = _load_with_project(db, chain, entity_id)
    if project.manager_id != principal_id:
        logger.warning(
            "User %s denied on %s %s: project %s is managed by %s",
            principal_id, chain.entity_name, entity_id, project.id, project.manager_id,
        )
        raise UserNotManageProjectError(f"user {principal_id} does not manage project {project.id}")
    logger.debug("User %s authorized on %s %s", principal_id, chain.entity_name, entity_id)
    return entity


def resolve_visible_task(db: Session, principal_id: int, task_id: int) -> Task:
    """Fetch a task the caller may read: its project's manager or its assignee."""
    task, project = _load_with_project(db, TASK_CHAIN, task_id)
    if project.manager_id != principal_id and task.assignee_id != principal_id:
        logger.warning("User %s denied read of task %s", principal_id, task_id)
        raise UserNotAuthorizedForTaskError(
            f"user {principal_id} is neither the manager of project {project.id} nor the assignee of task {task_id}"
        )
    return task
