"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List, Union

from tasktracker.core.constants import TaskStatus


class UserSummary(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class ProjectSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class TaskCreate(BaseModel):
    # title/project_id restent optionnels ici : le service renvoie
    # TitleRequired / ProjectRequired dans l'ordre attendu
    title: Optional[str] = None
    project_id: Optional[int] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    assignee_ids: Optional[List[int]] = None
    priority: Optional[int] = None
    tags: Optional[str] = None
    is_recurring: bool = False
    recurrence_interval: Optional[int] = None
    time_taken: Optional[str] = None
    owner_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied (exclude_unset)."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[int] = None
    tags: Optional[str] = None
    due_date: Optional[datetime] = None
    assignee_ids: Optional[List[int]] = None
    owner_id: Optional[int] = None
    is_recurring: Optional[bool] = None
    recurrence_interval: Optional[int] = None
    time_taken: Optional[str] = None
    project_id: Optional[int] = None


class TaskFilters(BaseModel):
    # "me" = utilisateur courant
    owner: Optional[Union[int, str]] = None
    assignee: Optional[Union[int, str]] = None
    project_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    include_archived: bool = False


class AssignOwnerRequest(BaseModel):
    owner: str  # username ou id


class AddAssigneeRequest(BaseModel):
    username: str


class TaskResponse(BaseModel):
    """Schema for task responses from API."""

    id: int
    title: str
    description: Optional[str]
    status: str
    priority: int
    tags: Optional[str]
    due_date: Optional[datetime]
    owner: UserSummary
    assignees: List[UserSummary]
    project: ProjectSummary
    is_recurring: bool
    recurrence_interval: Optional[int]
    time_taken: Optional[str]
    archived: bool
    archived_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ElapsedTimeResponse(BaseModel):
    task_id: int
    total: str
