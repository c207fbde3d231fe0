"""
Ownership transfer and single-assignee changes.

assign_owner is stricter than a generic update: the task must be active, the
outgoing owner stays on the task as a participant, and the new owner gets a
notification request (best effort).
"""

import logging
from typing import Optional

from tasktracker.core.config import settings
from tasktracker.core.constants import OWNER_ASSIGNED_NOTIFICATION
from tasktracker.core.errors import CapacityError, ForbiddenError, NotFoundError, ValidationError
from tasktracker.models.task import Task
from tasktracker.services import permissions
from tasktracker.services.notifications import NotificationDispatcher, NotificationRequest, dispatch_safely, outbox
from tasktracker.services.store import EntityStore
from tasktracker.services.task_service import (
    load_actor,
    load_task,
    require_active,
    sync_project_members,
)

logger = logging.getLogger(__name__)


def assign_owner(
    store: EntityStore,
    task_id,
    target_identifier,
    actor,
    notifier: Optional[NotificationDispatcher] = None,
) -> Task:
    target = store.find_user_by_identifier(target_identifier)
    if target is None:
        raise ValidationError("OwnerRequired", "Task owner is required")

    task = load_task(store, task_id)
    require_active(task)

    actor = load_actor(store, actor)
    if not permissions.is_elevated(actor) and not task.project.has_access(target.id):
        raise ForbiddenError(
            "AssigneeLacksProjectAccess",
            f"{target.username} does not have access to this task's project",
        )

    if target.id == task.owner_id:
        logger.info("Task %s already owned by user %s, nothing to do", task.id, target.id)
        return task

    # L'ancien owner reste participant
    participants, seen = [], {target.id}
    for user in list(task.assignees) + [task.owner]:
        if user.id in seen:
            continue
        seen.add(user.id)
        participants.append(user)

    if 1 + len(participants) > settings.MAX_ASSIGNEES:
        raise CapacityError(
            "TooManyAssignees",
            f"A task can have a maximum of {settings.MAX_ASSIGNEES} assignees",
        )

    previous_owner_id = task.owner_id
    task.owner = target
    task.assignees = participants
    store.save(task)
    logger.info("Task %s ownership moved from user %s to user %s", task.id, previous_owner_id, target.id)

    sync_project_members(store, task.project, [target])

    dispatch_safely(
        notifier if notifier is not None else outbox,
        NotificationRequest(
            user_id=target.id,
            task_id=task.id,
            kind=OWNER_ASSIGNED_NOTIFICATION,
            message=f"You are now the owner of task '{task.title}'",
        ),
    )
    return task


def add_assignee(store: EntityStore, task_id, target_username: str, actor) -> Task:
    task = load_task(store, task_id)
    actor = load_actor(store, actor)
    user = store.find_user_by_username(target_username)
    if user is None:
        raise NotFoundError("UserNotFound", f"User '{target_username}' not found")

    if not permissions.can_add_assignee(actor, task):
        raise ForbiddenError("Forbidden", "You do not have permission to add assignees to this task")

    if user.id in task.assignee_ids:
        raise ValidationError("AlreadyAssigned", f"{user.username} is already assigned to this task")
    if len(task.assignees) >= settings.MAX_ASSIGNEES:
        raise CapacityError(
            "TooManyAssignees",
            f"A task can have a maximum of {settings.MAX_ASSIGNEES} assignees",
        )

    task.assignees.append(user)
    store.save(task)
    logger.info("User %s assigned to task %s by user %s", user.id, task.id, actor.id)

    sync_project_members(store, task.project, [user])
    return task


def remove_assignee(store: EntityStore, task_id, target_username: str, actor) -> Task:
    task = load_task(store, task_id)
    actor = load_actor(store, actor)
    user = store.find_user_by_username(target_username)
    if user is None:
        raise NotFoundError("UserNotFound", f"User '{target_username}' not found")

    if not permissions.can_remove_assignee(actor, task):
        raise ForbiddenError("Forbidden", "Only the owner, a manager or an admin can remove assignees")

    if user.id not in task.assignee_ids:
        raise ValidationError("NotAssigned", f"{user.username} is not assigned to this task")
    if len(task.assignees) <= 1:
        raise CapacityError("AtLeastOneAssigneeRequired", "At least one assignee is required")

    task.assignees = [u for u in task.assignees if u.id != user.id]
    store.save(task)
    logger.info("User %s removed from task %s by user %s", user.id, task.id, actor.id)
    return task
