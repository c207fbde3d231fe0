"""
Task service: create, update, archive, delete, recurrence and listing.

Every operation follows the same order so clients get the same error for the
same bad input whatever the state of the records:
    1. payload validation
    2. existence (task / project / user)
    3. permission
    4. apply + save, then side effects (project membership, rollover)
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from tasktracker.core.config import settings
from tasktracker.core.constants import INITIAL_TASK_STATUS, TaskState, TaskStatus
from tasktracker.core.errors import (
    CapacityError,
    ForbiddenError,
    ImmutableFieldError,
    NotFoundError,
    StateConflictError,
    TaskEngineError,
    ValidationError,
)
from tasktracker.models.project import Project
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.schemas.task import TaskCreate, TaskFilters, TaskUpdate
from tasktracker.services import permissions
from tasktracker.services.store import EntityStore, resolve_reference
from tasktracker.services.time_codec import aggregate, is_valid_expression

logger = logging.getLogger(__name__)

TIME_FORMAT_MESSAGE = 'Time must be in 15-minute increments (e.g., "15 minutes", "1 hour", "1 hour 15 minutes")'


# ============ HELPERS ============

def normalize_due_date(value) -> Optional[datetime]:
    """Naive UTC datetime for storage; plain dates become midnight."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def ensure_not_past(value) -> None:
    """
    Due dates may be today or later; time of day is ignored.

    An aware datetime is compared with today in its own timezone, a naive one
    or a plain date with the local today.
    """
    if value is None:
        return
    if isinstance(value, datetime):
        today = datetime.now(value.tzinfo).date() if value.tzinfo is not None else date.today()
        due = value.date()
    else:
        today, due = date.today(), value
    if due < today:
        raise ValidationError("DueDateInPast", "Due date cannot be in the past")


def ensure_valid_time(text: Optional[str]) -> None:
    if text and text.strip() and not is_valid_expression(text):
        raise ValidationError("InvalidTimeFormat", TIME_FORMAT_MESSAGE)


def check_recurrence(interval, due_date) -> None:
    """A recurring item needs a positive interval (days) and a due date."""
    if not interval or interval <= 0:
        raise ValidationError(
            "RecurrenceIntervalRequired",
            "Recurrence interval must be a positive number for recurring tasks",
        )
    if due_date is None:
        raise ValidationError("RecurrenceDueDateRequired", "Due date is required for recurring tasks")


def require_active(task: Task) -> None:
    if task.state is not TaskState.ACTIVE:
        raise StateConflictError("TaskInactive", "Task is no longer active")


def dedupe(ids: Iterable) -> List[int]:
    seen = []
    for ref in ids:
        user_id = resolve_reference(ref)
        if user_id not in seen:
            seen.append(user_id)
    return seen


def load_task(store: EntityStore, task_id) -> Task:
    task = store.find_by_id(Task, task_id)
    if task is None:
        raise NotFoundError("TaskNotFound", "Task not found")
    return task


def load_actor(store: EntityStore, actor) -> User:
    user = store.find_by_id(User, actor)
    if user is None:
        raise NotFoundError("UserNotFound", "User not found")
    return user


def load_users(store: EntityStore, ids: List[int]) -> List[User]:
    users = store.find_users(ids)
    if len(users) != len(ids):
        raise NotFoundError("UserNotFound", "One or more assignees do not exist")
    return users


def check_assignee_count(count: int) -> None:
    if count < 1:
        raise CapacityError("AtLeastOneAssigneeRequired", "At least one assignee is required")
    if count > settings.MAX_ASSIGNEES:
        raise CapacityError(
            "TooManyAssignees",
            f"A task can have a maximum of {settings.MAX_ASSIGNEES} assignees",
        )


def sync_project_members(store: EntityStore, project: Project, users: Iterable[User]) -> List[int]:
    """
    Append users to the project's members unless they already own or belong to it.

    Membership only grows here. One save for the whole batch.
    """
    member_ids = {m.id for m in project.members}
    added = []
    for user in users:
        if user.id == project.owner_id or user.id in member_ids:
            continue
        project.members.append(user)
        member_ids.add(user.id)
        added.append(user.id)

    if added:
        store.save(project)
        logger.info("Project %s: added members %s", project.id, added)
    return added


# ============ CREATE ============

def create_task(store: EntityStore, payload: TaskCreate, actor_id) -> Task:
    if not payload.title or not payload.title.strip():
        raise ValidationError("TitleRequired", "Task title is required")

    if payload.project_id is None:
        raise ValidationError("ProjectRequired", "Project is required")

    if "owner_id" in payload.model_fields_set and payload.owner_id is None:
        raise ValidationError("OwnerRequired", "Task owner is required")

    project = store.find_by_id(Project, payload.project_id)
    if project is None:
        raise NotFoundError("ProjectNotFound", "Selected project does not exist")
    if project.archived:
        raise StateConflictError("ProjectArchived", "Cannot add tasks to an archived project")
    if project.status == TaskStatus.COMPLETED.value:
        raise StateConflictError("ProjectCompleted", "Cannot add tasks to a completed project")

    # Le créateur est toujours assigné
    creator = load_actor(store, actor_id)
    extra = [i for i in dedupe(payload.assignee_ids or []) if i != creator.id]
    if extra and not permissions.is_elevated(creator):
        raise ForbiddenError(
            "InsufficientRoleForAssignment",
            "Only managers or admins can assign other users",
        )
    assignee_ids = [creator.id] + extra
    check_assignee_count(len(assignee_ids))

    if payload.is_recurring:
        check_recurrence(payload.recurrence_interval, payload.due_date)

    ensure_valid_time(payload.time_taken)
    ensure_not_past(payload.due_date)

    owner = creator
    if payload.owner_id is not None and payload.owner_id != creator.id:
        owner = store.find_by_id(User, payload.owner_id)
        if owner is None:
            raise ValidationError("OwnerRequired", "Task owner is required")

    assignees = load_users(store, assignee_ids)

    task = Task(
        title=payload.title.strip(),
        description=payload.description or "",
        status=INITIAL_TASK_STATUS,
        priority=payload.priority if payload.priority is not None else settings.DEFAULT_TASK_PRIORITY,
        tags=payload.tags or "",
        owner=owner,
        assignees=assignees,
        project_id=project.id,
        due_date=normalize_due_date(payload.due_date),
        is_recurring=bool(payload.is_recurring),
        recurrence_interval=payload.recurrence_interval if payload.is_recurring else None,
        time_taken=(payload.time_taken or "").strip(),
    )
    store.save(task)
    logger.info("Task %s created in project %s by user %s", task.id, project.id, creator.id)

    sync_project_members(store, project, task.assignees)
    return task


# ============ UPDATE ============

def _apply_recurrence(task: Task, changes: dict) -> None:
    if "is_recurring" in changes:
        if changes["is_recurring"]:
            interval = changes["recurrence_interval"] if "recurrence_interval" in changes else task.recurrence_interval
            if not interval or interval <= 0:
                raise ValidationError(
                    "RecurrenceIntervalRequired",
                    "Recurrence interval must be a positive number for recurring tasks",
                )
            if task.due_date is None:
                raise ValidationError("RecurrenceDueDateRequired", "Due date is required for recurring tasks")
            task.is_recurring = True
            task.recurrence_interval = interval
        else:
            task.is_recurring = False
            task.recurrence_interval = None
    elif "recurrence_interval" in changes and task.is_recurring:
        interval = changes["recurrence_interval"]
        if interval is None or interval <= 0:
            raise ValidationError("RecurrenceIntervalRequired", "Recurrence interval must be a positive number")
        task.recurrence_interval = interval

    if task.is_recurring and task.due_date is None:
        raise ValidationError("RecurrenceDueDateRequired", "Due date is required for recurring tasks")


def _apply_changes(store: EntityStore, task: Task, actor: User, changes: dict) -> List[User]:
    """Mutate `task` in place; returns the users newly added as assignees."""
    if "title" in changes:
        task.title = changes["title"].strip()

    if "description" in changes:
        task.description = changes["description"] or ""

    if changes.get("status") is not None:
        task.status = TaskStatus(changes["status"]).value

    if changes.get("priority") is not None:
        task.priority = changes["priority"]

    if "tags" in changes:
        task.tags = changes["tags"] or ""

    if "time_taken" in changes:
        task.time_taken = (changes["time_taken"] or "").strip()

    if "due_date" in changes:
        task.due_date = normalize_due_date(changes["due_date"])

    added = []
    if "assignee_ids" in changes:
        if not permissions.is_elevated(actor):
            raise ForbiddenError(
                "InsufficientRoleForAssignment",
                "Only managers or admins can change the assignee list",
            )
        ids = dedupe(changes["assignee_ids"] or [])
        check_assignee_count(len(ids))
        previous = set(task.assignee_ids)
        task.assignees = load_users(store, ids)
        added = [u for u in task.assignees if u.id not in previous]

    if "owner_id" in changes:
        if changes["owner_id"] is None:
            raise ValidationError("OwnerRequired", "Task owner is required")
        if changes["owner_id"] != task.owner_id:
            require_active(task)
            owner = store.find_by_id(User, changes["owner_id"])
            if owner is None:
                raise ValidationError("OwnerRequired", "Task owner is required")
            task.owner = owner

    _apply_recurrence(task, changes)
    return added


def update_task(store: EntityStore, task_id, payload: TaskUpdate, actor_id) -> Task:
    changes = payload.model_dump(exclude_unset=True)

    if "title" in changes and (not changes["title"] or not changes["title"].strip()):
        raise ValidationError("TitleRequired", "Task title cannot be empty")

    if changes.get("due_date") is not None:
        ensure_not_past(changes["due_date"])

    if "time_taken" in changes:
        ensure_valid_time(changes["time_taken"])

    if "project_id" in changes:
        raise ImmutableFieldError("ProjectImmutable", "Project cannot be changed after task creation")

    task = load_task(store, task_id)
    actor = load_actor(store, actor_id)
    if not permissions.can_update(actor, task):
        raise ForbiddenError("Forbidden", "You do not have permission to modify this task")

    previous_status = task.status
    try:
        added = _apply_changes(store, task, actor, changes)
    except TaskEngineError:
        # rien n'est commité, on jette les modifs partielles de la session
        store.rollback()
        raise

    store.save(task)
    logger.info("Task %s updated by user %s (%s)", task.id, actor.id, ", ".join(sorted(changes)))

    if added:
        sync_project_members(store, task.project, added)

    if task.is_recurring and task.status == TaskStatus.COMPLETED.value and previous_status != task.status:
        rollover_recurring_task(store, task)

    return task


# ============ ARCHIVE / DELETE ============

def archive_task(store: EntityStore, task_id, actor_id) -> Task:
    task = load_task(store, task_id)
    actor = load_actor(store, actor_id)
    if not permissions.can_archive(actor, task):
        raise ForbiddenError("Forbidden", "You do not have permission to archive this task")

    task.archived = True
    task.archived_at = datetime.utcnow()
    store.save(task)
    logger.info("Task %s archived by user %s", task.id, actor.id)
    return task


def unarchive_task(store: EntityStore, task_id, actor_id) -> Task:
    task = load_task(store, task_id)
    actor = load_actor(store, actor_id)
    if not permissions.can_unarchive(actor, task):
        raise ForbiddenError("Forbidden", "You do not have permission to unarchive this task")

    task.archived = False
    task.archived_at = None
    store.save(task)
    logger.info("Task %s unarchived by user %s", task.id, actor.id)
    return task


def delete_task(store: EntityStore, task_id, actor_id) -> bool:
    task = load_task(store, task_id)
    if task.owner_id != resolve_reference(actor_id):
        raise ForbiddenError("Forbidden", "You do not have permission to delete this task")

    store.delete_by_id(Task, task.id)
    logger.info("Task %s deleted by user %s", task_id, actor_id)
    return True


# ============ RECURRENCE ============

def rollover_recurring_task(store: EntityStore, task: Task) -> Optional[Task]:
    """
    Spawn the next occurrence of a recurring task.

    Due date = original due date + interval days, status back to "To Do".
    Returns None for a non-recurring task.
    """
    if not task.is_recurring:
        return None
    if task.due_date is None or not task.recurrence_interval:
        raise ValidationError("RecurrenceDueDateRequired", "Due date is required for recurring tasks")

    successor = Task(
        title=task.title,
        description=task.description,
        priority=task.priority,
        tags=task.tags,
        owner_id=task.owner_id,
        assignees=list(task.assignees),
        project_id=task.project_id,
        due_date=task.due_date + timedelta(days=task.recurrence_interval),
        is_recurring=True,
        recurrence_interval=task.recurrence_interval,
        status=INITIAL_TASK_STATUS,
    )
    store.save(successor)
    logger.info("Task %s rolled over into %s (due %s)", task.id, successor.id, successor.due_date.date())
    return successor


# ============ READ ============

def get_task(store: EntityStore, task_id) -> Task:
    return load_task(store, task_id)


def _resolve_filter_user(store: EntityStore, value, actor_id) -> int:
    """The literal "me", a user id, or a username (case-insensitive)."""
    if value == "me":
        if actor_id is None:
            raise ValidationError("ActorRequired", "'me' filter requires an authenticated user")
        return resolve_reference(actor_id)
    if isinstance(value, int):
        return value
    user = store.find_user_by_identifier(value)
    if user is None:
        raise ValidationError("InvalidFilter", f"Unknown user in filter: {value}")
    return user.id


def list_tasks(store: EntityStore, filters: Optional[TaskFilters] = None, actor_id=None) -> List[Task]:
    filters = filters or TaskFilters()
    criteria = []

    if filters.owner is not None:
        criteria.append(Task.owner_id == _resolve_filter_user(store, filters.owner, actor_id))

    if filters.assignee is not None:
        assignee_id = _resolve_filter_user(store, filters.assignee, actor_id)
        criteria.append(Task.assignees.any(User.id == assignee_id))

    if filters.project_id is not None:
        criteria.append(Task.project_id == filters.project_id)

    if filters.status is not None:
        criteria.append(Task.status == TaskStatus(filters.status).value)

    if not filters.include_archived:
        criteria.append(Task.archived == False)  # noqa: E712

    return store.find(Task, *criteria, order_by=[Task.created_at.desc(), Task.id.desc()])


def list_tasks_for_project(store: EntityStore, project_id, actor_id, actor_role, actor_department=None) -> List[Task]:
    """
    All tasks of a project, for admins, the project owner and its members.

    Existence is checked first: an admin asking for a missing project still
    gets ProjectNotFound. actor_department is accepted for the caller's
    convenience but does not widen access.
    """
    project = store.find_by_id(Project, project_id)
    if project is None:
        raise NotFoundError("ProjectNotFound", "Project not found")

    if not permissions.can_view_project_tasks(resolve_reference(actor_id), actor_role, project):
        raise ForbiddenError("Forbidden", "You do not have access to this project's tasks")

    return store.find(Task, Task.project_id == project.id, order_by=[Task.created_at.desc(), Task.id.desc()])


def total_elapsed_time(store: EntityStore, task_id) -> str:
    task = load_task(store, task_id)
    subtasks = store.subtasks_of(task.id)
    return aggregate(task.time_taken, [s.time_taken for s in subtasks])
