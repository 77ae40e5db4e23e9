"""
Domain error kinds.

Every failure the service layer can report is a subclass of
``DomainError``.  Errors are grouped into families (not found,
authorization denied, validation failed, constraint violation,
credential invalid, internal) so that the transport layer can map a
whole family to one HTTP status while callers can still branch on the
precise kind with ``except SprintDateInvalidError``.

Services add context by raising the *same* kind with a more specific
message, chaining the original exception::

    raise ProjectNotExistError(f"cannot create sprint: project {pid} does not exist") from exc
"""

from dataclasses import dataclass
from typing import List, Optional


class DomainError(Exception):
    """Base class for all domain errors."""

    default_message = "domain error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(DomainError):
    default_message = "resource does not exist"


class UserNotExistError(NotFoundError):
    default_message = "user does not exist"


class ProjectNotExistError(NotFoundError):
    default_message = "project does not exist"


class SprintNotExistError(NotFoundError):
    default_message = "sprint does not exist"


class TaskNotExistError(NotFoundError):
    default_message = "task does not exist"


class EmailNotExistError(NotFoundError):
    default_message = "email does not exist"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

class AuthorizationDeniedError(DomainError):
    default_message = "not authorized"


class UserNotManageProjectError(AuthorizationDeniedError):
    default_message = "user does not manage this project"


class UserNotAuthorizedForTaskError(AuthorizationDeniedError):
    default_message = "user is neither the project manager nor the task assignee"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationFailedError(DomainError):
    default_message = "validation failed"


class SprintDateInvalidError(ValidationFailedError):
    default_message = "sprint date is invalid"


class EndDateBeforeStartDateError(ValidationFailedError):
    default_message = "end date must be after start date"


class InvalidStatusError(ValidationFailedError):
    default_message = "status is not valid"


class PasswordTooLongError(ValidationFailedError):
    default_message = "password is too long"


class NoValidUserStatusError(ValidationFailedError):
    default_message = "no user has valid status"


class UserNotPartProjectError(ValidationFailedError):
    default_message = "user is not part of the project"


@dataclass(frozen=True)
class AssignmentFailure:
    """Why one candidate could not join a project team."""

    user_id: int
    reason: str

    def __str__(self) -> str:
        return self.reason


class TeamAssignmentError(ValidationFailedError):
    """Aggregated failures of a bulk team-member assignment.

    Carries one :class:`AssignmentFailure` per rejected reason.  The
    message joins every reason so that it mentions each offending id.
    """

    default_message = "validation failed for some users"

    def __init__(self, failures: List[AssignmentFailure]) -> None:
        self.failures = list(failures)
        joined = "; ".join(str(f) for f in self.failures)
        super().__init__(f"{self.default_message}: {joined}")

    @property
    def user_ids(self) -> List[int]:
        seen: List[int] = []
        for failure in self.failures:
            if failure.user_id not in seen:
                seen.append(failure.user_id)
        return seen


# ---------------------------------------------------------------------------
# Constraints, credentials, internal
# ---------------------------------------------------------------------------

class ConstraintViolationError(DomainError):
    default_message = "data violates database constraints"


class DataViolateConstraintError(ConstraintViolationError):
    pass


class CredentialInvalidError(DomainError):
    default_message = "credentials are invalid"


class PasswordIncorrectError(CredentialInvalidError):
    default_message = "password is incorrect"


class InternalError(DomainError):
    default_message = "internal server error"


class DatabaseFailError(InternalError):
    default_message = "internal database fail"


class InternalServerError(InternalError):
    pass


class TokenCanNotBeSignedError(InternalError):
    default_message = "can not sign the token"


class CacheUnavailableError(InternalError):
    default_message = "rate limiter store query failed"
