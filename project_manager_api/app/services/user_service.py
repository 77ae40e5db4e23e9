"""
Business logic for users.

Covers signup, login, profile reads and updates, soft deletion and the
two operations other services use to build project teams: validating
candidates and pointing them at a project.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from project_manager_api.app.core.errors import (
    DataViolateConstraintError,
    EmailNotExistError,
    PasswordIncorrectError,
    TeamAssignmentError,
    TokenCanNotBeSignedError,
    UserNotExistError,
)
from project_manager_api.app.core.security import (
    create_access_token,
    hash_password,
    principal_claims,
    verify_password,
)
from project_manager_api.app.models.models import User
from project_manager_api.app.repositories.user import UserRepository
from project_manager_api.app.schemas.user import UserCreate, UserUpdate
from project_manager_api.app.services.validators import partition_team_candidates


class UserService:
    """Operations on users."""

    @classmethod
    async def create_user(cls, db: Session, data: UserCreate) -> User:
        """Register a new user.

        The password is hashed before it is stored.

        Raises
        ------
        PasswordTooLongError
            If the password exceeds 72 bytes.
        DataViolateConstraintError
            If the email is already registered.
        """
        logger = logging.getLogger(__name__)
        logger.info("Registering user %s with role %s", data.email, data.role.value)
        hashed = hash_password(data.password)
        user = User(
            email=data.email,
            password=hashed,
            role=data.role,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        try:
            user = UserRepository(db).create(user)
        except DataViolateConstraintError as exc:
            logger.warning("Signup rejected, email %s already registered", data.email)
            raise DataViolateConstraintError(f"cannot create user: email {data.email} is already registered") from exc
        logger.info("Created user %s", user.id)
        return user

    @classmethod
    async def login(cls, db: Session, email: str, password: str) -> str:
        """Check credentials and return a signed access token.

        The token carries ``user_id``, ``role`` and ``email`` and
        expires after ``settings.access_token_expire_minutes``.

        Raises
        ------
        EmailNotExistError
            No active user has this email.
        PasswordIncorrectError
            The password does not match.
        TokenCanNotBeSignedError
            The token could not be produced.
        """
        logger = logging.getLogger(__name__)
        user = UserRepository(db).find_by_email(email)
        if user is None:
            logger.warning("Login failed: unknown email %s", email)
            raise EmailNotExistError(f"no user with email {email}")
        if not verify_password(password, user.password):
            logger.warning("Login failed: wrong password for user %s", user.id)
            raise PasswordIncorrectError(f"password mismatch for user {user.id}")
        try:
            token = create_access_token(principal_claims(user.id, user.role, user.email))
        except (TypeError, ValueError) as exc:
            logger.error("Could not sign token for user %s: %s", user.id, exc)
            raise TokenCanNotBeSignedError(f"cannot sign token for user {user.id}") from exc
        logger.info("User %s logged in", user.id)
        return token

    @classmethod
    async def get_user(cls, db: Session, user_id: int) -> User:
        return UserRepository(db).get(user_id)

    @classmethod
    async def list_users(cls, db: Session) -> List[User]:
        return UserRepository(db).find()

    @classmethod
    async def update_user(cls, db: Session, user_id: int, data: UserUpdate) -> User:
        """Write the supplied name fields; with none supplied return the user unchanged."""
        logger = logging.getLogger(__name__)
        fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        repo = UserRepository(db)
        if not fields:
            logger.debug("Nothing to update for user %s", user_id)
            return repo.get(user_id)
        user = repo.update(user_id, fields)
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)))
        return user

    @classmethod
    async def delete_user(cls, db: Session, user_id: int) -> None:
        logger = logging.getLogger(__name__)
        UserRepository(db).delete(user_id)
        logger.info("Deleted user %s", user_id)

    @classmethod
    async def find_valid_team_members_for_assignment(
        cls,
        db: Session,
        user_ids: List[int],
    ) -> Tuple[List[int], Optional[TeamAssignmentError]]:
        """Check which candidates may join a project team.

        This is a partial-success operation: eligible ids are returned
        together with an error describing every rejected candidate.
        The caller decides whether a partial team is acceptable.

        Parameters
        ----------
        db : Session
            Request session.
        user_ids : List[int]
            Candidate ids, in the order the client sent them.

        Returns
        -------
        Tuple[List[int], Optional[TeamAssignmentError]]
            The eligible ids, and ``None`` or an error naming each
            rejected id with its reason.
        """
        logger = logging.getLogger(__name__)
        users = UserRepository(db).find_by_ids(user_ids)
        valid_ids, failures = partition_team_candidates(user_ids, users)
        if not failures:
            return valid_ids, None
        err = TeamAssignmentError(failures)
        logger.warning("Team candidates rejected: %s", err.message)
        return valid_ids, err

    @classmethod
    async def assign_users_to_project(cls, db: Session, project_id: int, user_ids: List[int]) -> int:
        logger = logging.getLogger(__name__)
        count = UserRepository(db).assign_users_to_project(project_id, user_ids)
        if count != len(set(user_ids)):
            logger.warning(
                "Assigned %d of %d users to project %s; the rest were deleted or joined another team meanwhile",
                count, len(set(user_ids)), project_id,
            )
        else:
            logger.info("Assigned users %s to project %s", user_ids, project_id)
        return count

    @classmethod
    async def release_project_members(cls, db: Session, project_id: int) -> int:
        """Take every member off the team of ``project_id``; return how many were released."""
        logger = logging.getLogger(__name__)
        count = UserRepository(db).release_project_members(project_id)
        logger.info("Released %d users from project %s", count, project_id)
        return count

    @classmethod
    async def require_user(cls, db: Session, user_id: int, context: str) -> User:
        """Fetch a user, rewording not-found with what the caller was doing."""
        try:
            return UserRepository(db).get(user_id)
        except UserNotExistError as exc:
            raise UserNotExistError(f"{context}: user {user_id} does not exist") from exc
