from datetime import date

import pytest

from project_manager_api.app.core.errors import (
    EndDateBeforeStartDateError,
    InvalidStatusError,
    SprintDateInvalidError,
    ValidationFailedError,
)
from project_manager_api.app.models.enums import ProjectStatus, TaskPriority, TaskStatus, UserRole
from project_manager_api.app.models.models import Project, Sprint, User
from project_manager_api.app.services.validators import (
    partition_team_candidates,
    validate_date_order,
    validate_project_end,
    validate_project_status,
    validate_sprint_dates,
    validate_task_priority,
    validate_task_status,
)


def _project(start, end=None):
    return Project(id=1, name="p", start_date=start, end_date=end, manager_id=1)


def _user(user_id, role=UserRole.TEAM_MEMBER, current_project_id=None):
    return User(id=user_id, email=f"u{user_id}@example.com", password="x", role=role, current_project_id=current_project_id)


# ---------------------------------------------------------------------------
# Sprint dates
# ---------------------------------------------------------------------------

def test_sprint_before_open_ended_project_start_is_invalid():
    project = _project(date(2024, 1, 1))
    with pytest.raises(SprintDateInvalidError):
        validate_sprint_dates(date(2023, 12, 31), project)


def test_sprint_after_open_ended_project_start_is_valid():
    validate_sprint_dates(date(2024, 2, 1), _project(date(2024, 1, 1)))


def test_sprint_starting_on_project_bounds_is_valid():
    project = _project(date(2024, 1, 1), date(2024, 3, 31))
    validate_sprint_dates(date(2024, 1, 1), project)
    validate_sprint_dates(date(2024, 3, 31), project)


def test_sprint_starting_after_project_end_is_invalid():
    project = _project(date(2024, 1, 1), date(2024, 3, 31))
    with pytest.raises(SprintDateInvalidError) as excinfo:
        validate_sprint_dates(date(2024, 4, 1), project)
    assert "after project 1 end" in excinfo.value.message


@pytest.mark.parametrize(
    "project_end, sprint_start, ok",
    [
        (None, date(2030, 1, 1), True),
        (date(2024, 6, 30), date(2024, 6, 30), True),
        (date(2024, 6, 30), date(2024, 7, 1), False),
        (None, date(2023, 1, 1), False),
    ],
)
def test_sprint_start_containment(project_end, sprint_start, ok):
    project = _project(date(2024, 1, 1), project_end)
    if ok:
        validate_sprint_dates(sprint_start, project)
    else:
        with pytest.raises(SprintDateInvalidError):
            validate_sprint_dates(sprint_start, project)


def test_project_end_must_not_precede_any_sprint_start():
    project = _project(date(2024, 1, 1))
    sprints = [
        Sprint(id=7, name="s1", start_date=date(2024, 1, 1), end_date=date(2024, 1, 14), project_id=1),
        Sprint(id=8, name="s2", start_date=date(2024, 3, 1), end_date=date(2024, 3, 14), project_id=1),
    ]
    validate_project_end(None, project, sprints)
    validate_project_end(date(2024, 3, 1), project, sprints)
    with pytest.raises(SprintDateInvalidError) as excinfo:
        validate_project_end(date(2024, 2, 29), project, sprints)
    assert "sprint 8" in excinfo.value.message


def test_date_order():
    validate_date_order(date(2024, 1, 1), date(2024, 1, 1))
    validate_date_order(date(2024, 1, 1), None)
    with pytest.raises(EndDateBeforeStartDateError):
        validate_date_order(date(2024, 1, 2), date(2024, 1, 1))


def test_validation_errors_share_a_family():
    assert issubclass(SprintDateInvalidError, ValidationFailedError)
    assert issubclass(EndDateBeforeStartDateError, ValidationFailedError)
    assert issubclass(InvalidStatusError, ValidationFailedError)


# ---------------------------------------------------------------------------
# Status membership
# ---------------------------------------------------------------------------

def test_status_membership_accepts_every_member_in_any_order():
    for status in ProjectStatus:
        assert validate_project_status(status.value) is status
    # No transition table: going back from COMPLETED is accepted.
    assert validate_project_status("ACTIVE") is ProjectStatus.ACTIVE
    assert validate_task_status(TaskStatus.BLOCKED) is TaskStatus.BLOCKED
    assert validate_task_priority("CRITICAL") is TaskPriority.CRITICAL


@pytest.mark.parametrize(
    "validator, value",
    [
        (validate_project_status, "ARCHIVED"),
        (validate_task_status, "todo"),
        (validate_task_priority, "URGENT"),
    ],
)
def test_status_membership_rejects_unknown_values(validator, value):
    with pytest.raises(InvalidStatusError) as excinfo:
        validator(value)
    assert value in excinfo.value.message


# ---------------------------------------------------------------------------
# Team candidates
# ---------------------------------------------------------------------------

def test_partition_reports_every_failure_and_keeps_request_order():
    users = [
        _user(1),
        _user(3, role=UserRole.PROJECT_MANAGER),
        _user(4, current_project_id=9),
        _user(5),
    ]
    valid, failures = partition_team_candidates([5, 2, 3, 4, 1], users)

    assert valid == [5, 1]
    reasons = [str(f) for f in failures]
    assert reasons == [
        "user 2 not found",
        "user 3 has incorrect role 'PROJECT_MANAGER' (required: 'TEAM_MEMBER')",
        "user 4 is already assigned to project 9",
    ]


def test_partition_reports_both_role_and_assignment_for_one_user():
    users = [_user(7, role=UserRole.ADMIN, current_project_id=2)]
    valid, failures = partition_team_candidates([7], users)
    assert valid == []
    assert [f.user_id for f in failures] == [7, 7]


def test_partition_ignores_duplicate_ids():
    valid, failures = partition_team_candidates([1, 1, 1], [_user(1)])
    assert valid == [1]
    assert failures == []
