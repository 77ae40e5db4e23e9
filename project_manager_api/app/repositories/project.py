from sqlalchemy import Select
from sqlalchemy.orm import selectinload

from project_manager_api.app.core.errors import ProjectNotExistError
from project_manager_api.app.models.models import Project
from project_manager_api.app.repositories.base import BaseRepository
from project_manager_api.app.schemas.project import ProjectFilter


class ProjectRepository(BaseRepository):
    """Projects, loaded together with their current team."""

    model = Project
    not_found_error = ProjectNotExistError

    def _load_options(self) -> list:
        return [selectinload(Project.team_members)]

    def _apply_filters(self, stmt: Select, filters: ProjectFilter) -> Select:
        if filters.id is not None:
            stmt = stmt.where(Project.id == filters.id)
        if filters.name:
            stmt = stmt.where(Project.name.ilike(f"%{filters.name}%"))
        if filters.status is not None:
            stmt = stmt.where(Project.status == filters.status)
        if filters.manager_id is not None:
            stmt = stmt.where(Project.manager_id == filters.manager_id)
        if filters.start_date_after is not None:
            stmt = stmt.where(Project.start_date >= filters.start_date_after)
        if filters.end_date_before is not None:
            stmt = stmt.where(Project.end_date <= filters.end_date_before)
        return stmt
