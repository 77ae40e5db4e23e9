from datetime import date

import pytest

from project_manager_api.app.core.errors import (
    EndDateBeforeStartDateError,
    NoValidUserStatusError,
    ProjectNotExistError,
    SprintDateInvalidError,
    UserNotManageProjectError,
)
from project_manager_api.app.models.enums import ProjectStatus, UserRole
from project_manager_api.app.repositories.user import UserRepository
from project_manager_api.app.schemas.project import ProjectCreate, ProjectFilter, ProjectUpdate
from project_manager_api.app.services.project_service import ProjectService


@pytest.mark.asyncio
async def test_create_project_makes_caller_the_manager(db, manager):
    project = await ProjectService.create_project(
        db, manager.id, ProjectCreate(name="Apollo", start_date=date(2024, 1, 1))
    )
    assert project.manager_id == manager.id
    assert project.status == ProjectStatus.ACTIVE
    assert project.end_date is None
    assert project.team_members == []


@pytest.mark.asyncio
async def test_create_project_rejects_end_before_start(db, manager):
    with pytest.raises(EndDateBeforeStartDateError):
        await ProjectService.create_project(
            db, manager.id, ProjectCreate(name="Bad", start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))
        )


@pytest.mark.asyncio
async def test_update_project_partial_and_guarded(db, manager, other_manager, make_project):
    project = make_project(manager, start=date(2024, 1, 1))

    with pytest.raises(UserNotManageProjectError):
        await ProjectService.update_project(db, other_manager.id, project.id, ProjectUpdate(name="Hijack"))

    updated = await ProjectService.update_project(
        db, manager.id, project.id, ProjectUpdate(status=ProjectStatus.ON_HOLD, end_date=date(2024, 12, 31))
    )
    assert updated.status == ProjectStatus.ON_HOLD
    assert updated.end_date == date(2024, 12, 31)
    assert updated.name == "Apollo"

    with pytest.raises(EndDateBeforeStartDateError):
        await ProjectService.update_project(db, manager.id, project.id, ProjectUpdate(end_date=date(2023, 1, 1)))


@pytest.mark.asyncio
async def test_completed_project_can_be_reactivated(db, manager, make_project):
    project = make_project(manager, status=ProjectStatus.COMPLETED)
    updated = await ProjectService.update_project(db, manager.id, project.id, ProjectUpdate(status=ProjectStatus.ACTIVE))
    assert updated.status == ProjectStatus.ACTIVE


@pytest.mark.asyncio
async def test_empty_project_update_returns_current_record(db, manager, make_project):
    project = make_project(manager)
    before = project.updated_at
    unchanged = await ProjectService.update_project(db, manager.id, project.id, ProjectUpdate())
    assert unchanged.id == project.id
    assert unchanged.updated_at == before


@pytest.mark.asyncio
async def test_delete_project_hides_it_but_keeps_sprints(db, manager, make_project, make_sprint):
    project = make_project(manager)
    sprint = make_sprint(project)

    await ProjectService.delete_project(db, manager.id, project.id)

    with pytest.raises(ProjectNotExistError):
        await ProjectService.get_project(db, project.id)
    assert await ProjectService.list_projects(db, ProjectFilter()) == []
    db.refresh(sprint)
    assert sprint.deleted_at is None


@pytest.mark.asyncio
async def test_project_end_cannot_cut_off_a_sprint(db, manager, make_project, make_sprint):
    project = make_project(manager, start=date(2024, 1, 1))
    make_sprint(project, start=date(2024, 3, 1), end=date(2024, 3, 14))

    with pytest.raises(SprintDateInvalidError):
        await ProjectService.update_project(db, manager.id, project.id, ProjectUpdate(end_date=date(2024, 2, 1)))
    db.refresh(project)
    assert project.end_date is None

    updated = await ProjectService.update_project(db, manager.id, project.id, ProjectUpdate(end_date=date(2024, 3, 1)))
    assert updated.end_date == date(2024, 3, 1)


def test_project_start_date_is_not_updatable():
    assert "start_date" not in ProjectUpdate.model_fields
    assert ProjectUpdate(start_date=date(2030, 1, 1)).model_dump(exclude_unset=True) == {}


@pytest.mark.asyncio
async def test_delete_project_releases_its_team(db, manager, make_project, make_user):
    project = make_project(manager)
    member = make_user(current_project_id=project.id)
    other = make_project(manager, name="Gemini")
    bystander = make_user(current_project_id=other.id)

    await ProjectService.delete_project(db, manager.id, project.id)

    db.refresh(member)
    db.refresh(bystander)
    assert member.current_project_id is None
    assert bystander.current_project_id == other.id

    count, rejected = await ProjectService.add_team_members(db, manager.id, other.id, [member.id])
    assert count == 1
    assert rejected is None


@pytest.mark.asyncio
async def test_add_team_members_partial_success(db, manager, make_project, make_user):
    project = make_project(manager)
    elsewhere = make_project(manager, name="Elsewhere")
    valid1 = make_user()
    wrong_role = make_user(role=UserRole.PROJECT_MANAGER)
    busy = make_user(current_project_id=elsewhere.id)
    valid2 = make_user()

    count, rejected = await ProjectService.add_team_members(
        db, manager.id, project.id, [valid1.id, 999, wrong_role.id, busy.id, valid2.id]
    )

    assert count == 2
    assert rejected is not None
    assert rejected.user_ids == [999, wrong_role.id, busy.id]
    for user_id in (999, wrong_role.id, busy.id):
        assert f"user {user_id}" in rejected.message

    members = UserRepository(db).find_by_ids([valid1.id, valid2.id])
    assert {u.current_project_id for u in members} == {project.id}
    refreshed = await ProjectService.get_project(db, project.id)
    assert [u.id for u in refreshed.team_members] == [valid1.id, valid2.id]


@pytest.mark.asyncio
async def test_add_team_members_with_no_valid_user_fails(db, manager, make_project, make_user):
    project = make_project(manager)
    admin_user = make_user(role=UserRole.ADMIN)
    with pytest.raises(NoValidUserStatusError) as excinfo:
        await ProjectService.add_team_members(db, manager.id, project.id, [admin_user.id, 12345])
    assert "user 12345 not found" in excinfo.value.message


@pytest.mark.asyncio
async def test_add_team_members_requires_manager(db, manager, other_manager, make_project, make_user):
    project = make_project(manager)
    with pytest.raises(UserNotManageProjectError):
        await ProjectService.add_team_members(db, other_manager.id, project.id, [make_user().id])


@pytest.mark.asyncio
async def test_list_projects_filters(db, manager, other_manager, make_project):
    make_project(manager, name="Apollo", start=date(2024, 1, 1), end=date(2024, 3, 1))
    make_project(manager, name="Gemini", start=date(2024, 4, 1), status=ProjectStatus.ON_HOLD)
    make_project(other_manager, name="Apollo II", start=date(2024, 6, 1), end=date(2024, 9, 1))

    names = lambda projects: [p.name for p in projects]  # noqa: E731
    assert names(await ProjectService.list_projects(db, ProjectFilter(name="apollo"))) == ["Apollo", "Apollo II"]
    assert names(await ProjectService.list_projects(db, ProjectFilter(status=ProjectStatus.ON_HOLD))) == ["Gemini"]
    assert names(await ProjectService.list_projects(db, ProjectFilter(manager_id=other_manager.id))) == ["Apollo II"]
    assert names(await ProjectService.list_projects(db, ProjectFilter(start_date_after="2024-04-01"))) == ["Gemini", "Apollo II"]
    assert names(await ProjectService.list_projects(db, ProjectFilter(end_date_before="2024-06-30"))) == ["Apollo"]
