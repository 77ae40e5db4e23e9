from typing import List

from sqlalchemy import Select, update
from sqlalchemy.orm import joinedload

from project_manager_api.app.core.errors import TaskNotExistError
from project_manager_api.app.models.models import Task
from project_manager_api.app.repositories.base import BaseRepository, utcnow
from project_manager_api.app.schemas.task import TaskFilter


class TaskRepository(BaseRepository):
    model = Task
    not_found_error = TaskNotExistError

    def _load_options(self) -> list:
        return [joinedload(Task.project)]

    def _apply_filters(self, stmt: Select, filters: TaskFilter) -> Select:
        if filters.id is not None:
            stmt = stmt.where(Task.id == filters.id)
        if filters.title:
            stmt = stmt.where(Task.title.ilike(f"%{filters.title}%"))
        if filters.status is not None:
            stmt = stmt.where(Task.status == filters.status)
        if filters.priority is not None:
            stmt = stmt.where(Task.priority == filters.priority)
        if filters.project_id is not None:
            stmt = stmt.where(Task.project_id == filters.project_id)
        if filters.sprint_id is not None:
            stmt = stmt.where(Task.sprint_id == filters.sprint_id)
        if filters.assignee_id is not None:
            stmt = stmt.where(Task.assignee_id == filters.assignee_id)
        if filters.due_date_before is not None:
            stmt = stmt.where(Task.due_date <= filters.due_date_before)
        return stmt

    def find_by_project(self, project_id: int) -> List[Task]:
        return self.find(TaskFilter(project_id=project_id))

    def find_by_assignee(self, user_id: int) -> List[Task]:
        return self.find(TaskFilter(assignee_id=user_id))

    def assign_to_user(self, task_id: int, user_id: int) -> Task:
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.deleted_at.is_(None))
            .values(assignee_id=user_id, updated_at=utcnow())
        )
        if self._execute_write(stmt, "assign") == 0:
            raise self._not_found(task_id)
        return self.get(task_id)
