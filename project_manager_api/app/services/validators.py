"""
Domain validators.

Pure functions over values the caller has already fetched.  Each
either returns normally (possibly with a normalised value) or raises a
:class:`~project_manager_api.app.core.errors.ValidationFailedError`
kind.  None of them touches the database.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from project_manager_api.app.core.errors import (
    AssignmentFailure,
    EndDateBeforeStartDateError,
    InvalidStatusError,
    SprintDateInvalidError,
)
from project_manager_api.app.models.enums import ProjectStatus, TaskPriority, TaskStatus, UserRole
from project_manager_api.app.models.models import Project, Sprint, User


def validate_sprint_dates(sprint_start: date, project: Project) -> None:
    """Check that a sprint starts inside its project's date range.

    The sprint must not start before the project does and, when the
    project has an end date, must not start after it.  The sprint's own
    end date is not compared with the project's end.

    Raises
    ------
    SprintDateInvalidError
        If either bound is violated.
    """
    if sprint_start < project.start_date:
        raise SprintDateInvalidError(
            f"sprint start {sprint_start.isoformat()} is before project {project.id} "
            f"start {project.start_date.isoformat()}"
        )
    if project.end_date is not None and sprint_start > project.end_date:
        raise SprintDateInvalidError(
            f"sprint start {sprint_start.isoformat()} is after project {project.id} "
            f"end {project.end_date.isoformat()}"
        )


def validate_project_end(project_end: Optional[date], project: Project, sprints: Iterable[Sprint]) -> None:
    """Check that a new project end date leaves room for every existing sprint.

    Each active sprint must still start on or before ``project_end``;
    an open end (``None``) always does.

    Raises
    ------
    SprintDateInvalidError
        Naming the first sprint that would start after the new end.
    """
    if project_end is None:
        return
    for sprint in sprints:
        if sprint.start_date > project_end:
            raise SprintDateInvalidError(
                f"project {project.id} cannot end on {project_end.isoformat()}: "
                f"sprint {sprint.id} starts {sprint.start_date.isoformat()}"
            )


def validate_date_order(start: Optional[date], end: Optional[date]) -> None:
    """Raise :class:`EndDateBeforeStartDateError` if ``end`` precedes ``start``.

    A missing bound is never an error.
    """
    if start is None or end is None:
        return
    if end < start:
        raise EndDateBeforeStartDateError(
            f"end date {end.isoformat()} is before start date {start.isoformat()}"
        )


def _member_of(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidStatusError(f"{label} '{value}' is not one of: {allowed}") from None


# Any member may follow any other; only membership is checked.
def validate_project_status(value) -> ProjectStatus:
    return _member_of(ProjectStatus, value, "project status")


def validate_task_status(value) -> TaskStatus:
    return _member_of(TaskStatus, value, "task status")


def validate_task_priority(value) -> TaskPriority:
    return _member_of(TaskPriority, value, "task priority")


def partition_team_candidates(
    requested_ids: Iterable[int],
    users: Sequence[User],
) -> Tuple[List[int], List[AssignmentFailure]]:
    """Split candidate ids into those that may join a team and those that may not.

    A candidate is eligible when the user exists, has the
    ``TEAM_MEMBER`` role and is not on any project team yet.  Every
    reason a candidate fails is reported, so one user can produce two
    failures (wrong role and already assigned).

    Parameters
    ----------
    requested_ids : Iterable[int]
        Candidate user ids in request order.  Duplicates are ignored.
    users : Sequence[User]
        The active users found for those ids.

    Returns
    -------
    Tuple[List[int], List[AssignmentFailure]]
        Eligible ids in request order, and one failure per reason.
    """
    by_id: Dict[int, User] = {u.id: u for u in users}
    valid: List[int] = []
    failures: List[AssignmentFailure] = []
    seen = set()
    for user_id in requested_ids:
        if user_id in seen:
            continue
        seen.add(user_id)

        user = by_id.get(user_id)
        if user is None:
            failures.append(AssignmentFailure(user_id, f"user {user_id} not found"))
            continue

        ok = True
        role = UserRole(user.role)
        if role != UserRole.TEAM_MEMBER:
            failures.append(
                AssignmentFailure(
                    user_id,
                    f"user {user_id} has incorrect role '{role.value}' (required: '{UserRole.TEAM_MEMBER.value}')",
                )
            )
            ok = False
        if user.current_project_id is not None:
            failures.append(
                AssignmentFailure(
                    user_id,
                    f"user {user_id} is already assigned to project {user.current_project_id}",
                )
            )
            ok = False
        if ok:
            valid.append(user_id)
    return valid, failures
