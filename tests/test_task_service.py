from datetime import date
from unittest.mock import patch

import pytest

from project_manager_api.app.core.errors import (
    SprintNotExistError,
    TaskNotExistError,
    UserNotAuthorizedForTaskError,
    UserNotExistError,
    UserNotManageProjectError,
    UserNotPartProjectError,
)
from project_manager_api.app.models.enums import TaskPriority, TaskStatus
from project_manager_api.app.repositories.task import TaskRepository
from project_manager_api.app.schemas.task import TaskCreate, TaskFilter, TaskUpdate
from project_manager_api.app.services.task_service import TaskService


@pytest.fixture
def project(manager, make_project):
    return make_project(manager)


@pytest.fixture
def sprint(project, make_sprint):
    return make_sprint(project)


@pytest.fixture
def member(project, make_user):
    return make_user(current_project_id=project.id)


def _draft(title="Write docs", sprint_id=0, **kwargs):
    return TaskCreate(title=title, sprint_id=sprint_id, **kwargs)


@pytest.mark.asyncio
async def test_task_inherits_sprint_and_project(db, manager, project, sprint):
    task = await TaskService.create_task(db, manager.id, sprint.id, _draft())
    assert task.sprint_id == sprint.id
    assert task.project_id == project.id
    assert task.status == TaskStatus.TO_DO
    assert task.priority == TaskPriority.MEDIUM


@pytest.mark.asyncio
async def test_create_task_uses_path_sprint_not_payload(db, manager, project, sprint, make_sprint):
    other_sprint = make_sprint(project, name="Other")
    task = await TaskService.create_task(db, manager.id, sprint.id, _draft(sprint_id=other_sprint.id))
    assert task.sprint_id == sprint.id


@pytest.mark.asyncio
async def test_create_task_requires_manager_and_existing_sprint(db, manager, other_manager, sprint):
    with pytest.raises(UserNotManageProjectError):
        await TaskService.create_task(db, other_manager.id, sprint.id, _draft())
    with pytest.raises(SprintNotExistError):
        await TaskService.create_task(db, manager.id, 999, _draft())


@pytest.mark.asyncio
async def test_create_task_with_assignee_checks_team(db, manager, sprint, member, make_user):
    task = await TaskService.create_task(db, manager.id, sprint.id, _draft(assignee_id=member.id))
    assert task.assignee_id == member.id

    outsider = make_user()
    with pytest.raises(UserNotPartProjectError):
        await TaskService.create_task(db, manager.id, sprint.id, _draft(assignee_id=outsider.id))


@pytest.mark.asyncio
async def test_mutations_require_manager(db, other_manager, sprint, make_task, member):
    task = make_task(sprint)
    with pytest.raises(UserNotManageProjectError):
        await TaskService.update_task(db, other_manager.id, task.id, TaskUpdate(title="x"))
    with pytest.raises(UserNotManageProjectError):
        await TaskService.delete_task(db, other_manager.id, task.id)
    with pytest.raises(UserNotManageProjectError):
        await TaskService.assign_task_to_user(db, other_manager.id, task.id, member.id)


@pytest.mark.asyncio
async def test_assign_task_to_team_member(db, manager, sprint, member, make_task):
    task = make_task(sprint)
    assigned = await TaskService.assign_task_to_user(db, manager.id, task.id, member.id)
    assert assigned.assignee_id == member.id


@pytest.mark.asyncio
async def test_assign_task_rejects_missing_or_outside_user(db, manager, sprint, make_task, make_user):
    task = make_task(sprint)
    with pytest.raises(UserNotExistError):
        await TaskService.assign_task_to_user(db, manager.id, task.id, 999)
    with pytest.raises(UserNotPartProjectError):
        await TaskService.assign_task_to_user(db, manager.id, task.id, make_user().id)


@pytest.mark.asyncio
async def test_get_task_for_manager_and_assignee(db, manager, other_manager, sprint, member, make_task):
    task = make_task(sprint, assignee=member)
    assert (await TaskService.get_task(db, manager.id, task.id)).id == task.id
    assert (await TaskService.get_task(db, member.id, task.id)).id == task.id
    with pytest.raises(UserNotAuthorizedForTaskError):
        await TaskService.get_task(db, other_manager.id, task.id)


@pytest.mark.asyncio
async def test_update_task_is_partial(db, manager, sprint, make_task):
    task = make_task(sprint, title="Original", priority=TaskPriority.LOW)
    updated = await TaskService.update_task(
        db, manager.id, task.id, TaskUpdate(status=TaskStatus.DONE, due_date=date(2024, 5, 1))
    )
    assert updated.status == TaskStatus.DONE
    assert updated.due_date == date(2024, 5, 1)
    assert updated.title == "Original"
    assert updated.priority == TaskPriority.LOW


@pytest.mark.asyncio
async def test_delete_task_and_concurrent_delete(db, manager, sprint, make_task):
    task = make_task(sprint)
    await TaskService.delete_task(db, manager.id, task.id)
    with pytest.raises(TaskNotExistError):
        await TaskService.get_task(db, manager.id, task.id)

    other = make_task(sprint, title="Other")
    with patch.object(TaskRepository, "_update_active", return_value=0):
        with pytest.raises(TaskNotExistError):
            await TaskService.delete_task(db, manager.id, other.id)


@pytest.mark.asyncio
async def test_find_tasks_by_project_requires_manager(db, manager, other_manager, project, sprint, make_task):
    make_task(sprint, title="A")
    make_task(sprint, title="B")
    tasks = await TaskService.find_tasks_by_project_id(db, manager.id, project.id)
    assert [t.title for t in tasks] == ["A", "B"]

    with pytest.raises(UserNotManageProjectError):
        await TaskService.find_tasks_by_project_id(db, other_manager.id, project.id)


@pytest.mark.asyncio
async def test_find_tasks_by_user_and_filters(db, sprint, member, make_task):
    make_task(sprint, title="Mine", assignee=member, status=TaskStatus.IN_PROGRESS, due_date=date(2024, 1, 15))
    make_task(sprint, title="Unassigned", status=TaskStatus.TO_DO, due_date=date(2024, 3, 1))
    deleted = make_task(sprint, title="Mine but deleted", assignee=member)
    TaskRepository(db).delete(deleted.id)

    assert [t.title for t in await TaskService.find_tasks_by_user_id(db, member.id)] == ["Mine"]
    assert [t.title for t in await TaskService.find_tasks(db, TaskFilter(status=TaskStatus.TO_DO))] == ["Unassigned"]
    assert [t.title for t in await TaskService.find_tasks(db, TaskFilter(title="mine"))] == ["Mine"]
    assert [t.title for t in await TaskService.find_tasks(db, TaskFilter(due_date_before="2024-02-01"))] == ["Mine"]
