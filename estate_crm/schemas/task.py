"""
Pydantic schemas for Task API.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from estate_crm.models.task import TaskStatus


class TaskCreate(BaseModel):
    task_name: str = Field(..., min_length=1, max_length=256)
    task_description: Optional[str] = None
    due_date: datetime
    assigned_to_id: int
    status: TaskStatus = TaskStatus.PENDING
    lead_id: Optional[int] = None
    deal_id: Optional[int] = None


class TaskUpdate(BaseModel):
    task_name: Optional[str] = Field(None, min_length=1, max_length=256)
    task_description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    task_name: str
    task_description: Optional[str]
    due_date: datetime
    status: TaskStatus
    assigned_to_id: int
    lead_id: Optional[int]
    deal_id: Optional[int]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
