from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

from tasktracker.core.constants import ProjectStatus
from tasktracker.schemas.task import UserSummary

# Schemas projets

class ProjectCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.TODO
    member_ids: Optional[List[int]] = None

class ProjectUpdate(BaseModel):
    """Mise à jour partielle ; archived=True archive aussi toutes les tâches"""
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    member_ids: Optional[List[int]] = None
    archived: Optional[bool] = None

class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    status: str
    archived: bool
    archived_at: Optional[datetime]
    owner: UserSummary
    members: List[UserSummary]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ProjectOverviewResponse(BaseModel):
    project: ProjectResponse
    can_view_tasks: bool
    department_involved: bool

    model_config = ConfigDict(from_attributes=True)
