from sqlalchemy import Select
from sqlalchemy.orm import joinedload

from project_manager_api.app.core.errors import SprintNotExistError
from project_manager_api.app.models.models import Sprint
from project_manager_api.app.repositories.base import BaseRepository
from project_manager_api.app.schemas.sprint import SprintFilter


class SprintRepository(BaseRepository):
    model = Sprint
    not_found_error = SprintNotExistError

    def _load_options(self) -> list:
        return [joinedload(Sprint.project)]

    def _apply_filters(self, stmt: Select, filters: SprintFilter) -> Select:
        if filters.id is not None:
            stmt = stmt.where(Sprint.id == filters.id)
        if filters.name:
            stmt = stmt.where(Sprint.name.ilike(f"%{filters.name}%"))
        if filters.project_id is not None:
            stmt = stmt.where(Sprint.project_id == filters.project_id)
        if filters.start_date_after is not None:
            stmt = stmt.where(Sprint.start_date >= filters.start_date_after)
        if filters.end_date_before is not None:
            stmt = stmt.where(Sprint.end_date <= filters.end_date_before)
        return stmt
