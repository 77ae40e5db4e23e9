"""
API endpoints for users and authentication.

Signup and login are public.  Listing all users is reserved to
administrators; a single user's record can be read, changed or deleted
by that user or an administrator.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from project_manager_api.app.core.db import get_db
from project_manager_api.app.core.security import (
    Principal,
    get_current_user,
    require_owner_or_roles,
    require_roles,
)
from project_manager_api.app.models.enums import UserRole
from project_manager_api.app.schemas.task import TaskRead
from project_manager_api.app.schemas.user import LoginRequest, Token, UserCreate, UserRead, UserUpdate
from project_manager_api.app.services.task_service import TaskService
from project_manager_api.app.services.user_service import UserService


router = APIRouter()


@router.post(
    "/users",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
)
async def create_user(data: UserCreate, db: Session = Depends(get_db)) -> UserRead:
    """Register a new user.

    Returns 409 if the email is taken and 400 if the password is longer
    than 72 bytes.
    """
    user = await UserService.create_user(db, data)
    return UserRead.model_validate(user)


@router.post("/login", response_model=Token, summary="Obtain an access token")
async def login(data: LoginRequest, db: Session = Depends(get_db)) -> Token:
    """Exchange email and password for a bearer token valid for about an hour.

    Any credential mistake is answered with the same 401 response.
    """
    token = await UserService.login(db, data.email, data.password)
    return Token(access_token=token)


@router.get("/me", response_model=UserRead, summary="Current user")
async def read_me(
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserRead:
    user = await UserService.get_user(db, principal.user_id)
    return UserRead.model_validate(user)


@router.get("/users", response_model=List[UserRead], summary="List users")
async def list_users(
    principal: Principal = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> List[UserRead]:
    users = await UserService.list_users(db)
    return [UserRead.model_validate(u) for u in users]


@router.get("/users/{user_id}", response_model=UserRead, summary="Get a user")
async def get_user(
    user_id: int,
    principal: Principal = Depends(require_owner_or_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> UserRead:
    user = await UserService.get_user(db, user_id)
    return UserRead.model_validate(user)


@router.put("/users/{user_id}", response_model=UserRead, summary="Update a user's name")
async def update_user(
    user_id: int,
    data: UserUpdate,
    principal: Principal = Depends(require_owner_or_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> UserRead:
    """Change first and/or last name.  Omitted fields keep their value."""
    user = await UserService.update_user(db, user_id, data)
    return UserRead.model_validate(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user")
async def delete_user(
    user_id: int,
    principal: Principal = Depends(require_owner_or_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> Response:
    await UserService.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/tasks", response_model=List[TaskRead], summary="Tasks assigned to a user")
async def list_user_tasks(
    user_id: int,
    principal: Principal = Depends(require_owner_or_roles(UserRole.PROJECT_MANAGER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> List[TaskRead]:
    tasks = await TaskService.find_tasks_by_user_id(db, user_id)
    return [TaskRead.model_validate(t) for t in tasks]
