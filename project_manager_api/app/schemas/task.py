"""
Pydantic models for task data.

A task is created inside a sprint; its ``project_id`` is taken from
that sprint by the service and is therefore absent from
``TaskCreate``.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from project_manager_api.app.models.enums import TaskPriority, TaskStatus
from project_manager_api.app.schemas.common import QueryDate


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, examples=["Write copy for hero section"])
    description: Optional[str] = Field("", examples=["Two variants for A/B testing"])
    status: TaskStatus = TaskStatus.TO_DO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = Field(None, examples=["2024-02-10"])


class TaskCreate(TaskBase):
    sprint_id: int = Field(..., examples=[1])
    assignee_id: Optional[int] = Field(None, examples=[3])


class TaskUpdate(BaseModel):
    """Schema for updating a task.

    All fields are optional; only provided fields will be updated.
    Reassignment goes through ``POST /tasks/{task_id}/assign``.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class TaskRead(TaskBase):
    id: int
    project_id: int
    sprint_id: Optional[int] = None
    assignee_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class TaskAssignRequest(BaseModel):
    user_id: int = Field(..., alias="userId", examples=[3])

    model_config = {
        "populate_by_name": True,
    }


class TaskFilter(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    project_id: Optional[int] = None
    sprint_id: Optional[int] = None
    assignee_id: Optional[int] = None
    due_date_before: QueryDate = None
