"""
Pydantic models for user data.

Defines schemas for signing up, authenticating, updating and reading
users.  Password hashes are never part of a response model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from project_manager_api.app.models.enums import UserRole


class UserBase(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, examples=["jane@example.com"])
    first_name: Optional[str] = Field(None, max_length=100, examples=["Jane"])
    last_name: Optional[str] = Field(None, max_length=100, examples=["Doe"])


class UserCreate(UserBase):
    """Schema for signing up.

    The email must be a well-formed address and both names are
    required.  ``role`` defaults to ``TEAM_MEMBER``.  The length limit of the
    password hash input (72 bytes) is enforced by the service, not
    here, so that it is reported as its own error kind.
    """

    email: EmailStr = Field(..., examples=["jane@example.com"])
    first_name: str = Field(..., min_length=2, max_length=100, examples=["Jane"])
    last_name: str = Field(..., min_length=2, max_length=100, examples=["Doe"])
    password: str = Field(..., min_length=8, examples=["password123"])
    role: UserRole = Field(UserRole.TEAM_MEMBER, examples=["TEAM_MEMBER"])


class UserUpdate(BaseModel):
    """Profile update.  Only names can be changed; absent fields are left untouched."""

    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    role: UserRole
    current_project_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class UserSummary(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class LoginRequest(BaseModel):
    email: str = Field(..., examples=["jane@example.com"])
    password: str = Field(..., examples=["password123"])


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
