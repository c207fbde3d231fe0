from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional

from tasktracker.core.constants import TaskStatus
from tasktracker.models.user import User
from tasktracker.routers.deps import get_current_user, get_store
from tasktracker.schemas.comment import CommentCreate, CommentResponse
from tasktracker.schemas.subtask import SubtaskCreate, SubtaskResponse, SubtaskUpdate
from tasktracker.schemas.task import (
    AddAssigneeRequest,
    AssignOwnerRequest,
    ElapsedTimeResponse,
    TaskCreate,
    TaskFilters,
    TaskResponse,
    TaskUpdate,
)
from tasktracker.services import assignment_service, comment_service, subtask_service, task_service
from tasktracker.services.store import EntityStore

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return task_service.create_task(store, task_data, current_user.id)


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
    owner: Optional[str] = Query(None),
    assignee: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None),
    status_filter: Optional[TaskStatus] = Query(None),
    include_archived: bool = Query(False)
):
    filters = TaskFilters(
        owner=owner,
        assignee=assignee,
        project_id=project_id,
        status=status_filter,
        include_archived=include_archived
    )
    return task_service.list_tasks(store, filters, current_user.id)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return task_service.get_task(store, task_id)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return task_service.update_task(store, task_id, task_data, current_user.id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    task_service.delete_task(store, task_id, current_user.id)


@router.post("/{task_id}/archive", response_model=TaskResponse)
def archive_task(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return task_service.archive_task(store, task_id, current_user.id)


@router.post("/{task_id}/unarchive", response_model=TaskResponse)
def unarchive_task(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return task_service.unarchive_task(store, task_id, current_user.id)


@router.post("/{task_id}/owner", response_model=TaskResponse)
def assign_owner(
    task_id: int,
    request: AssignOwnerRequest,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return assignment_service.assign_owner(store, task_id, request.owner, current_user)


@router.post("/{task_id}/assignees", response_model=TaskResponse)
def add_assignee(
    task_id: int,
    request: AddAssigneeRequest,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return assignment_service.add_assignee(store, task_id, request.username, current_user)


@router.delete("/{task_id}/assignees/{username}", response_model=TaskResponse)
def remove_assignee(
    task_id: int,
    username: str,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return assignment_service.remove_assignee(store, task_id, username, current_user)


@router.get("/{task_id}/elapsed-time", response_model=ElapsedTimeResponse)
def elapsed_time(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    # temps de la tâche + sous-tâches non archivées
    return {"task_id": task_id, "total": task_service.total_elapsed_time(store, task_id)}


@router.post("/{task_id}/subtasks", response_model=SubtaskResponse, status_code=status.HTTP_201_CREATED)
def create_subtask(
    task_id: int,
    subtask_data: SubtaskCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.create_subtask(store, task_id, subtask_data, current_user.id)


@router.get("/{task_id}/subtasks", response_model=List[SubtaskResponse])
def list_subtasks(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.list_subtasks(store, task_id)


@router.post("/subtasks/{subtask_id}/archive", response_model=SubtaskResponse)
def archive_subtask(
    subtask_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.archive_subtask(store, subtask_id, current_user.id)


@router.post("/subtasks/{subtask_id}/unarchive", response_model=SubtaskResponse)
def unarchive_subtask(
    subtask_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.unarchive_subtask(store, subtask_id, current_user.id)


@router.get("/{task_id}/subtasks/archived", response_model=List[SubtaskResponse])
def list_archived_subtasks(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.list_archived_subtasks(store, task_id)


@router.put("/subtasks/{subtask_id}", response_model=SubtaskResponse)
def update_subtask(
    subtask_id: int,
    subtask_data: SubtaskUpdate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return subtask_service.update_subtask(store, subtask_id, subtask_data, current_user.id)


# ============ COMMENTS ============

@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_task_comment(
    task_id: int,
    comment_data: CommentCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.add_task_comment(store, task_id, comment_data.text, current_user.id)


@router.get("/{task_id}/comments", response_model=List[CommentResponse])
def list_task_comments(
    task_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.list_task_comments(store, task_id)


@router.put("/{task_id}/comments/{comment_id}", response_model=CommentResponse)
def edit_task_comment(
    task_id: int,
    comment_id: int,
    comment_data: CommentCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.edit_task_comment(store, task_id, comment_id, comment_data.text, current_user.id)


@router.delete("/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task_comment(
    task_id: int,
    comment_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    comment_service.delete_task_comment(store, task_id, comment_id, current_user.id)


@router.post("/subtasks/{subtask_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_subtask_comment(
    subtask_id: int,
    comment_data: CommentCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.add_subtask_comment(store, subtask_id, comment_data.text, current_user.id)


@router.get("/subtasks/{subtask_id}/comments", response_model=List[CommentResponse])
def list_subtask_comments(
    subtask_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.list_subtask_comments(store, subtask_id)


@router.put("/subtasks/{subtask_id}/comments/{comment_id}", response_model=CommentResponse)
def edit_subtask_comment(
    subtask_id: int,
    comment_id: int,
    comment_data: CommentCreate,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    return comment_service.edit_subtask_comment(store, subtask_id, comment_id, comment_data.text, current_user.id)


@router.delete("/subtasks/{subtask_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subtask_comment(
    subtask_id: int,
    comment_id: int,
    store: EntityStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    comment_service.delete_subtask_comment(store, subtask_id, comment_id, current_user.id)
