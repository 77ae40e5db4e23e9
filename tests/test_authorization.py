from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from project_manager_api.app.core.errors import (
    DatabaseFailError,
    ProjectNotExistError,
    SprintNotExistError,
    TaskNotExistError,
    UserNotAuthorizedForTaskError,
    UserNotManageProjectError,
)
from project_manager_api.app.repositories.project import ProjectRepository
from project_manager_api.app.services.authorization import (
    PROJECT_CHAIN,
    SPRINT_CHAIN,
    TASK_CHAIN,
    resolve_managed_entity,
    resolve_visible_task,
)


@pytest.fixture
def tree(manager, make_user, make_project, make_sprint, make_task):
    member = make_user()
    project = make_project(manager)
    sprint = make_sprint(project)
    task = make_task(sprint, assignee=member)
    return project, sprint, task, member


def test_manager_resolves_every_entity_with_its_project(db, manager, tree):
    project, sprint, task, _ = tree

    assert resolve_managed_entity(db, PROJECT_CHAIN, manager.id, project.id).id == project.id

    resolved_sprint = resolve_managed_entity(db, SPRINT_CHAIN, manager.id, sprint.id)
    assert resolved_sprint.project.manager_id == manager.id

    resolved_task = resolve_managed_entity(db, TASK_CHAIN, manager.id, task.id)
    assert resolved_task.project.id == project.id


@pytest.mark.parametrize("chain_name", ["project", "sprint", "task"])
def test_other_principal_is_denied_on_every_chain(db, other_manager, tree, chain_name):
    project, sprint, task, _ = tree
    chain, entity_id = {
        "project": (PROJECT_CHAIN, project.id),
        "sprint": (SPRINT_CHAIN, sprint.id),
        "task": (TASK_CHAIN, task.id),
    }[chain_name]

    with pytest.raises(UserNotManageProjectError):
        resolve_managed_entity(db, chain, other_manager.id, entity_id)


@pytest.mark.parametrize(
    "chain, error",
    [
        (PROJECT_CHAIN, ProjectNotExistError),
        (SPRINT_CHAIN, SprintNotExistError),
        (TASK_CHAIN, TaskNotExistError),
    ],
)
def test_missing_entity_raises_its_own_kind(db, manager, chain, error):
    with pytest.raises(error):
        resolve_managed_entity(db, chain, manager.id, 999)


def test_tombstoned_entity_is_not_found(db, manager, tree):
    project, _, _, _ = tree
    ProjectRepository(db).delete(project.id)
    with pytest.raises(ProjectNotExistError):
        resolve_managed_entity(db, PROJECT_CHAIN, manager.id, project.id)


def test_sprint_of_deleted_project_is_reported_as_missing_project(db, manager, tree):
    project, sprint, _, _ = tree
    ProjectRepository(db).delete(project.id)
    with pytest.raises(ProjectNotExistError):
        resolve_managed_entity(db, SPRINT_CHAIN, manager.id, sprint.id)


def test_store_failure_surfaces_as_database_fail(db, manager):
    boom = OperationalError("SELECT", {}, Exception("connection lost"))
    with patch.object(db, "execute", side_effect=boom):
        with pytest.raises(DatabaseFailError):
            resolve_managed_entity(db, PROJECT_CHAIN, manager.id, 1)


def test_task_is_visible_to_manager_and_assignee_only(db, manager, other_manager, tree):
    _, _, task, member = tree

    assert resolve_visible_task(db, manager.id, task.id).id == task.id
    assert resolve_visible_task(db, member.id, task.id).id == task.id
    with pytest.raises(UserNotAuthorizedForTaskError):
        resolve_visible_task(db, other_manager.id, task.id)
