"""Pydantic models for sprint data."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from project_manager_api.app.schemas.common import QueryDate


class SprintBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Sprint 1"])
    start_date: date = Field(..., examples=["2024-02-01"])
    end_date: date = Field(..., examples=["2024-02-14"])
    goal: Optional[str] = Field("", examples=["Ship the landing page"])


class SprintCreate(SprintBase):
    project_id: int = Field(..., examples=[1])


class SprintUpdate(BaseModel):
    """All fields optional; the owning project cannot be changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    goal: Optional[str] = None


class SprintRead(SprintBase):
    id: int
    project_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class SprintFilter(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    project_id: Optional[int] = None
    start_date_after: QueryDate = None
    end_date_before: QueryDate = None
