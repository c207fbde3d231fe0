from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from tasktracker.core.constants import TaskStatus

# Schemas sous-tâches

class SubtaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    time_taken: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[datetime] = None
    is_recurring: bool = False
    recurrence_interval: Optional[int] = None

class SubtaskUpdate(BaseModel):
    """Mise à jour partielle (exclude_unset)"""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[int] = None
    due_date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    recurrence_interval: Optional[int] = None
    time_taken: Optional[str] = None

class SubtaskResponse(BaseModel):
    id: int
    parent_task_id: int
    title: str
    description: Optional[str]
    status: str
    priority: Optional[int]
    due_date: Optional[datetime]
    is_recurring: bool
    recurrence_interval: Optional[int]
    time_taken: Optional[str]
    archived: bool
    archived_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
