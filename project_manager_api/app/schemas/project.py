"""
Pydantic models for project data.

``ProjectCreate`` carries no manager: the authenticated caller becomes
the manager.  ``ProjectRead`` embeds the current team, i.e. the active
users whose ``current_project_id`` points at the project.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from project_manager_api.app.models.enums import ProjectStatus
from project_manager_api.app.schemas.common import QueryDate
from project_manager_api.app.schemas.user import UserSummary


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Website relaunch"])
    description: Optional[str] = Field("", examples=["Rebuild the marketing site"])
    start_date: date = Field(..., examples=["2024-01-01"])
    end_date: Optional[date] = Field(None, examples=["2024-06-30"])


class ProjectCreate(ProjectBase):
    status: ProjectStatus = ProjectStatus.ACTIVE


class ProjectUpdate(BaseModel):
    """Schema for updating a project.

    All fields are optional; only provided fields will be updated.  The
    start date is fixed at creation, since existing sprints are
    validated against it.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None


class ProjectRead(ProjectBase):
    id: int
    status: ProjectStatus
    manager_id: int
    team_members: List[UserSummary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ProjectFilter(BaseModel):
    """Query-string filters for listing projects.

    ``name`` matches partially and case-insensitively; date bounds are
    inclusive.
    """

    id: Optional[int] = None
    name: Optional[str] = None
    status: Optional[ProjectStatus] = None
    manager_id: Optional[int] = None
    start_date_after: QueryDate = None
    end_date_before: QueryDate = None


class AddTeamMembersRequest(BaseModel):
    user_ids: List[int] = Field(..., alias="userIds", min_length=1, examples=[[3, 4]])

    model_config = {
        "populate_by_name": True,
    }


class AddTeamMembersResponse(BaseModel):
    """Outcome of a bulk team assignment.

    ``assigned_count`` users joined the team; every rejected candidate
    is listed in ``failed_user_ids`` with its reason in ``errors``.
    """

    project_id: int
    assigned_count: int
    failed_user_ids: List[int] = []
    errors: List[str] = []
