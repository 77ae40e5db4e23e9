"""
Business logic for sprints.

A sprint always belongs to the project it was created under; the
project id sent by the client only selects which project to resolve,
and the stored value is taken from the resolved project.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from project_manager_api.app.core.errors import ProjectNotExistError, SprintNotExistError, UserNotManageProjectError
from project_manager_api.app.models.models import Sprint
from project_manager_api.app.repositories.sprint import SprintRepository
from project_manager_api.app.schemas.sprint import SprintCreate, SprintFilter, SprintUpdate
from project_manager_api.app.services.authorization import PROJECT_CHAIN, SPRINT_CHAIN, resolve_managed_entity
from project_manager_api.app.services.validators import validate_date_order, validate_sprint_dates


class SprintService:
    """Create, query, change and delete sprints."""

    @classmethod
    async def create_sprint(cls, db: Session, principal_id: int, project_id: int, data: SprintCreate) -> Sprint:
        """Create a sprint in a project the caller manages.

        Parameters
        ----------
        db : Session
            Request session.
        principal_id : int
            Authenticated caller; must manage the project.
        project_id : int
            Project the sprint is created in.
        data : SprintCreate
            Sprint fields.  ``data.project_id`` is ignored in favour of
            the resolved project.

        Returns
        -------
        Sprint
            The persisted sprint.

        Raises
        ------
        ProjectNotExistError
            The project does not exist.
        UserNotManageProjectError
            The caller does not manage the project.
        EndDateBeforeStartDateError
            The sprint ends before it starts.
        SprintDateInvalidError
            The sprint starts outside the project's date range.
        DatabaseFailError
            The store failed.
        """
        logger = logging.getLogger(__name__)
        logger.debug("User %s creating sprint '%s' in project %s", principal_id, data.name, project_id)
        try:
            project = resolve_managed_entity(db, PROJECT_CHAIN, principal_id, project_id)
        except ProjectNotExistError as exc:
            raise ProjectNotExistError(f"cannot create sprint: project {project_id} does not exist") from exc
        except UserNotManageProjectError as exc:
            raise UserNotManageProjectError(f"cannot create sprint: {exc.message}") from exc

        validate_sprint_dates(data.start_date, project)
        validate_date_order(data.start_date, data.end_date)

        sprint = Sprint(
            name=data.name,
            start_date=data.start_date,
            end_date=data.end_date,
            goal=data.goal or "",
            project_id=project.id,
        )
        repo = SprintRepository(db)
        sprint = repo.create(sprint)
        logger.info("User %s created sprint %s in project %s", principal_id, sprint.id, project.id)
        return repo.get(sprint.id)

    @classmethod
    async def get_sprint(cls, db: Session, principal_id: int, sprint_id: int) -> Sprint:
        return resolve_managed_entity(db, SPRINT_CHAIN, principal_id, sprint_id)

    @classmethod
    async def list_sprints(cls, db: Session, filters: Optional[SprintFilter] = None) -> List[Sprint]:
        return SprintRepository(db).find(filters)

    @classmethod
    async def update_sprint(cls, db: Session, principal_id: int, sprint_id: int, data: SprintUpdate) -> Sprint:
        """Apply a partial update to a sprint the caller manages.

        The merged dates must stay ordered, and a new start date must
        still fall inside the project's range.
        """
        logger = logging.getLogger(__name__)
        sprint = resolve_managed_entity(db, SPRINT_CHAIN, principal_id, sprint_id)
        fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if not fields:
            logger.debug("Nothing to update for sprint %s", sprint_id)
            return sprint

        start = fields.get("start_date", sprint.start_date)
        validate_date_order(start, fields.get("end_date", sprint.end_date))
        if "start_date" in fields:
            validate_sprint_dates(start, sprint.project)

        try:
            updated = SprintRepository(db).update(sprint_id, fields)
        except SprintNotExistError as exc:
            raise SprintNotExistError(f"cannot update sprint {sprint_id}: it no longer exists") from exc
        logger.info("User %s updated sprint %s (%s)", principal_id, sprint_id, ", ".join(sorted(fields)))
        return updated

    @classmethod
    async def delete_sprint(cls, db: Session, principal_id: int, sprint_id: int) -> None:
        """Soft delete a sprint the caller manages.

        If the sprint disappears between the authorization read and the
        delete, :class:`SprintNotExistError` is raised.
        """
        logger = logging.getLogger(__name__)
        resolve_managed_entity(db, SPRINT_CHAIN, principal_id, sprint_id)
        try:
            SprintRepository(db).delete(sprint_id)
        except SprintNotExistError as exc:
            logger.warning("Sprint %s vanished before it could be deleted", sprint_id)
            raise SprintNotExistError(f"cannot delete sprint {sprint_id}: it no longer exists") from exc
        logger.info("User %s deleted sprint %s", principal_id, sprint_id)
