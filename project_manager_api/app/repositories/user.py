import logging
from typing import Iterable, List, Optional

from sqlalchemy import update

from project_manager_api.app.core.errors import UserNotExistError
from project_manager_api.app.models.models import User
from project_manager_api.app.repositories.base import BaseRepository, utcnow


logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):
    model = User
    not_found_error = UserNotExistError

    def find_by_email(self, email: str) -> Optional[User]:
        rows = self._scalars(self._active().where(User.email == email))
        return rows[0] if rows else None

    def find_by_ids(self, user_ids: Iterable[int]) -> List[User]:
        ids = list(user_ids)
        if not ids:
            return []
        return self._scalars(self._active().where(User.id.in_(ids)).order_by(User.id))

    def assign_users_to_project(self, project_id: int, user_ids: Iterable[int]) -> int:
        """Point ``current_project_id`` of every active, unassigned user in ``user_ids`` at the project.

        Users already on a team are left where they are.  Returns the
        number of rows changed.
        """
        ids = list(user_ids)
        if not ids:
            return 0
        stmt = (
            update(User)
            .where(
                User.id.in_(ids),
                User.deleted_at.is_(None),
                User.current_project_id.is_(None),
            )
            .values(current_project_id=project_id, updated_at=utcnow())
        )
        count = self._execute_write(stmt, "assign")
        logger.debug("Pointed %d users at project %s", count, project_id)
        return count

    def release_project_members(self, project_id: int) -> int:
        """Clear ``current_project_id`` of every user on the project's team."""
        stmt = (
            update(User)
            .where(User.current_project_id == project_id)
            .values(current_project_id=None, updated_at=utcnow())
        )
        return self._execute_write(stmt, "release")
