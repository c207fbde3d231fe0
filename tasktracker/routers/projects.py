from fastapi import APIRouter, Depends, status
from typing import List

from tasktracker.models.user import User
from tasktracker.routers.deps import get_current_user, get_store
from tasktracker.schemas.project import ProjectCreate, ProjectOverviewResponse, ProjectResponse, ProjectUpdate
from tasktracker.schemas.task import TaskResponse
from tasktracker.services import project_service
from tasktracker.services.store import EntityStore
from tasktracker.services.task_service import list_tasks_for_project

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return project_service.create_project(store, project_data, current_user.id)


@router.get("", response_model=List[ProjectOverviewResponse])
def list_projects(
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    overviews = project_service.list_projects(store, current_user.id)
    return [ProjectOverviewResponse.model_validate(o) for o in overviews]


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return project_service.load_project(store, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return project_service.update_project(store, project_id, project_data, current_user.id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    project_service.delete_project(store, project_id, current_user.id)


@router.get("/{project_id}/tasks", response_model=List[TaskResponse])
def project_tasks(
    project_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    # admin > owner > membre ; le rôle "admin" l'emporte s'il est présent
    return list_tasks_for_project(
        store,
        project_id,
        current_user.id,
        current_user.roles or [],
        current_user.department
    )
