"""
Business logic for projects.

The caller who creates a project becomes its manager; every later
change goes through :func:`resolve_managed_entity` so only that manager
may make it.  Team membership is stored on the user
(``current_project_id``) and changed through :class:`UserService`.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from project_manager_api.app.core.errors import (
    NoValidUserStatusError,
    ProjectNotExistError,
    TeamAssignmentError,
)
from project_manager_api.app.models.models import Project
from project_manager_api.app.repositories.project import ProjectRepository
from project_manager_api.app.repositories.sprint import SprintRepository
from project_manager_api.app.schemas.project import ProjectCreate, ProjectFilter, ProjectUpdate
from project_manager_api.app.schemas.sprint import SprintFilter
from project_manager_api.app.services.authorization import PROJECT_CHAIN, resolve_managed_entity
from project_manager_api.app.services.user_service import UserService
from project_manager_api.app.services.validators import (
    validate_date_order,
    validate_project_end,
    validate_project_status,
)


# Nullable columns a client may clear by sending ``null``.
_CLEARABLE_FIELDS = {"end_date", "description"}


def _sparse_fields(data) -> dict:
    fields = data.model_dump(exclude_unset=True)
    return {k: v for k, v in fields.items() if v is not None or k in _CLEARABLE_FIELDS}


class ProjectService:
    """Create, query, change and staff projects."""

    @classmethod
    async def create_project(cls, db: Session, principal_id: int, data: ProjectCreate) -> Project:
        """Create a project managed by ``principal_id``.

        Raises
        ------
        EndDateBeforeStartDateError
            If ``end_date`` precedes ``start_date``.
        InvalidStatusError
            If ``status`` is not a project status.
        """
        logger = logging.getLogger(__name__)
        validate_date_order(data.start_date, data.end_date)
        project = Project(
            name=data.name,
            description=data.description or "",
            start_date=data.start_date,
            end_date=data.end_date,
            status=validate_project_status(data.status),
            manager_id=principal_id,
        )
        repo = ProjectRepository(db)
        project = repo.create(project)
        logger.info("User %s created project %s '%s'", principal_id, project.id, project.name)
        return repo.get(project.id)

    @classmethod
    async def list_projects(cls, db: Session, filters: Optional[ProjectFilter] = None) -> List[Project]:
        return ProjectRepository(db).find(filters)

    @classmethod
    async def get_project(cls, db: Session, project_id: int) -> Project:
        return ProjectRepository(db).get(project_id)

    @classmethod
    async def update_project(cls, db: Session, principal_id: int, project_id: int, data: ProjectUpdate) -> Project:
        """Apply a partial update to a project the caller manages.

        A new end date must not precede the project's start, nor the
        start of any of its active sprints.  An update without fields
        returns the project without writing.

        Raises
        ------
        EndDateBeforeStartDateError
            The new end date is before the project's start date.
        SprintDateInvalidError
            An existing sprint would start after the new end date.
        """
        logger = logging.getLogger(__name__)
        project = resolve_managed_entity(db, PROJECT_CHAIN, principal_id, project_id)
        fields = _sparse_fields(data)
        if not fields:
            logger.debug("Nothing to update for project %s", project_id)
            return project
        if fields.get("description", "") is None:
            fields["description"] = ""

        if fields.get("end_date") is not None:
            validate_date_order(project.start_date, fields["end_date"])
            sprints = SprintRepository(db).find(SprintFilter(project_id=project_id))
            validate_project_end(fields["end_date"], project, sprints)
        if "status" in fields:
            fields["status"] = validate_project_status(fields["status"])

        try:
            updated = ProjectRepository(db).update(project_id, fields)
        except ProjectNotExistError as exc:
            raise ProjectNotExistError(f"cannot update project {project_id}: it no longer exists") from exc
        logger.info("User %s updated project %s (%s)", principal_id, project_id, ", ".join(sorted(fields)))
        return updated

    @classmethod
    async def delete_project(cls, db: Session, principal_id: int, project_id: int) -> None:
        """Soft delete a project the caller manages.

        Its sprints and tasks are left in place.  Its team is released:
        every member's ``current_project_id`` is cleared so they can
        join another project.
        """
        logger = logging.getLogger(__name__)
        resolve_managed_entity(db, PROJECT_CHAIN, principal_id, project_id)
        try:
            ProjectRepository(db).delete(project_id)
        except ProjectNotExistError as exc:
            raise ProjectNotExistError(f"cannot delete project {project_id}: it no longer exists") from exc
        released = await UserService.release_project_members(db, project_id)
        logger.info("User %s deleted project %s, released %d team members", principal_id, project_id, released)

    @classmethod
    async def add_team_members(
        cls,
        db: Session,
        principal_id: int,
        project_id: int,
        user_ids: List[int],
    ) -> Tuple[int, Optional[TeamAssignmentError]]:
        """Add eligible users to the team of a project the caller manages.

        Eligible candidates are assigned even if others are rejected.

        Returns
        -------
        Tuple[int, Optional[TeamAssignmentError]]
            Number of users assigned, and the rejections if there were
            any.

        Raises
        ------
        NoValidUserStatusError
            If not a single candidate is eligible.
        """
        logger = logging.getLogger(__name__)
        resolve_managed_entity(db, PROJECT_CHAIN, principal_id, project_id)

        valid_ids, rejected = await UserService.find_valid_team_members_for_assignment(db, user_ids)
        if not valid_ids:
            reason = rejected.message if rejected else "no users given"
            logger.warning("No eligible users for project %s: %s", project_id, reason)
            raise NoValidUserStatusError(f"no valid users to add to project {project_id}: {reason}")

        count = await UserService.assign_users_to_project(db, project_id, valid_ids)
        if rejected is not None:
            logger.warning(
                "Project %s: assigned %d users, rejected %s", project_id, count, rejected.user_ids,
            )
        return count, rejected
