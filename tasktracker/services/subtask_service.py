"""
Subtask service

A subtask inherits its authorization from the parent task: whoever may update
the task may create, edit, archive and unarchive its subtasks.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from tasktracker.core.config import settings
from tasktracker.core.constants import INITIAL_TASK_STATUS, TaskStatus
from tasktracker.core.errors import ForbiddenError, NotFoundError, TaskEngineError, ValidationError
from tasktracker.models.subtask import Subtask
from tasktracker.schemas.subtask import SubtaskCreate, SubtaskUpdate
from tasktracker.services import permissions
from tasktracker.services.store import EntityStore
from tasktracker.services.task_service import (
    check_recurrence,
    ensure_not_past,
    ensure_valid_time,
    load_actor,
    load_task,
    normalize_due_date,
)

logger = logging.getLogger(__name__)


def load_subtask(store: EntityStore, subtask_id) -> Subtask:
    subtask = store.find_by_id(Subtask, subtask_id)
    if subtask is None:
        raise NotFoundError("SubtaskNotFound", "Subtask not found")
    return subtask


def create_subtask(store: EntityStore, parent_task_id, payload: SubtaskCreate, actor_id) -> Subtask:
    if not payload.title or not payload.title.strip():
        raise ValidationError("TitleRequired", "Subtask title is required")
    ensure_valid_time(payload.time_taken)
    ensure_not_past(payload.due_date)
    if payload.is_recurring:
        check_recurrence(payload.recurrence_interval, payload.due_date)

    parent = load_task(store, parent_task_id)
    actor = load_actor(store, actor_id)
    if not permissions.can_update(actor, parent):
        raise ForbiddenError("Forbidden", "You do not have permission to modify this task")

    subtask = Subtask(
        parent_task_id=parent.id,
        title=payload.title.strip(),
        description=payload.description or "",
        priority=payload.priority if payload.priority is not None else settings.DEFAULT_TASK_PRIORITY,
        due_date=normalize_due_date(payload.due_date),
        is_recurring=bool(payload.is_recurring),
        recurrence_interval=payload.recurrence_interval if payload.is_recurring else None,
        time_taken=(payload.time_taken or "").strip(),
    )
    store.save(subtask)
    logger.info("Subtask %s created under task %s", subtask.id, parent.id)
    return subtask


def list_subtasks(store: EntityStore, parent_task_id) -> List[Subtask]:
    parent = load_task(store, parent_task_id)
    return store.subtasks_of(parent.id)


def list_archived_subtasks(store: EntityStore, parent_task_id) -> List[Subtask]:
    parent = load_task(store, parent_task_id)
    return store.archived_subtasks_of(parent.id)


def _load_for_update(store: EntityStore, subtask_id, actor_id) -> Subtask:
    subtask = load_subtask(store, subtask_id)
    actor = load_actor(store, actor_id)
    if not permissions.can_update(actor, subtask.parent_task):
        raise ForbiddenError("Forbidden", "You do not have permission to modify this task")
    return subtask


def _apply_changes(subtask: Subtask, changes: dict) -> None:
    if "title" in changes:
        subtask.title = changes["title"].strip()
    if "description" in changes:
        subtask.description = changes["description"] or ""
    if changes.get("status") is not None:
        subtask.status = TaskStatus(changes["status"]).value
    if changes.get("priority") is not None:
        subtask.priority = changes["priority"]
    if "time_taken" in changes:
        subtask.time_taken = (changes["time_taken"] or "").strip()
    if "due_date" in changes:
        subtask.due_date = normalize_due_date(changes["due_date"])

    if "is_recurring" in changes:
        subtask.is_recurring = bool(changes["is_recurring"])
        if not subtask.is_recurring:
            subtask.recurrence_interval = None
    if "recurrence_interval" in changes and subtask.is_recurring:
        subtask.recurrence_interval = changes["recurrence_interval"]

    if subtask.is_recurring:
        check_recurrence(subtask.recurrence_interval, subtask.due_date)


def update_subtask(store: EntityStore, subtask_id, payload: SubtaskUpdate, actor_id) -> Subtask:
    """
    Partial update of a subtask.

    Payload errors (title, time text, due date) come before the lookup. A
    recurring subtask moved to Completed spawns its next occurrence.
    """
    changes = payload.model_dump(exclude_unset=True)

    if "title" in changes and (not changes["title"] or not changes["title"].strip()):
        raise ValidationError("TitleRequired", "Subtask title cannot be empty")
    if "time_taken" in changes:
        ensure_valid_time(changes["time_taken"])
    if changes.get("due_date") is not None:
        ensure_not_past(changes["due_date"])

    subtask = _load_for_update(store, subtask_id, actor_id)

    previous_status = subtask.status
    try:
        _apply_changes(subtask, changes)
    except TaskEngineError:
        store.rollback()
        raise

    store.save(subtask)
    logger.info("Subtask %s updated (%s)", subtask.id, ", ".join(sorted(changes)))

    if subtask.is_recurring and subtask.status == TaskStatus.COMPLETED.value and previous_status != subtask.status:
        rollover_recurring_subtask(store, subtask)

    return subtask


def rollover_recurring_subtask(store: EntityStore, subtask: Subtask) -> Optional[Subtask]:
    """Next occurrence under the same parent; logged time starts empty."""
    if not subtask.is_recurring:
        return None
    check_recurrence(subtask.recurrence_interval, subtask.due_date)

    successor = Subtask(
        parent_task_id=subtask.parent_task_id,
        title=subtask.title,
        description=subtask.description,
        priority=subtask.priority,
        due_date=subtask.due_date + timedelta(days=subtask.recurrence_interval),
        is_recurring=True,
        recurrence_interval=subtask.recurrence_interval,
        status=INITIAL_TASK_STATUS,
        time_taken="",
    )
    store.save(successor)
    logger.info("Subtask %s rolled over into %s", subtask.id, successor.id)
    return successor


def archive_subtask(store: EntityStore, subtask_id, actor_id) -> Subtask:
    subtask = _load_for_update(store, subtask_id, actor_id)
    subtask.archived = True
    subtask.archived_at = datetime.utcnow()
    return store.save(subtask)


def unarchive_subtask(store: EntityStore, subtask_id, actor_id) -> Subtask:
    subtask = _load_for_update(store, subtask_id, actor_id)
    subtask.archived = False
    subtask.archived_at = None
    return store.save(subtask)
