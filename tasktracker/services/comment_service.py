"""
Comments on tasks and subtasks.

Rules shared by both targets:
    - the text is required (trimmed) and checked before any lookup
    - only the author edits a comment
    - only an admin deletes one
Adding a comment to a task asks the dispatcher to notify its other assignees.
"""

import logging
from typing import List, Optional

from tasktracker.core.constants import TASK_COMMENT_NOTIFICATION
from tasktracker.core.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models.comment import Comment
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.services import permissions
from tasktracker.services.notifications import NotificationDispatcher, NotificationRequest, dispatch_safely, outbox
from tasktracker.services.store import EntityStore
from tasktracker.services.subtask_service import load_subtask
from tasktracker.services.task_service import load_actor, load_task

logger = logging.getLogger(__name__)


def _clean_text(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise ValidationError("CommentTextRequired", "Comment text is required")
    return text.strip()


def _find_comment(store: EntityStore, comment_id, task_id=None, subtask_id=None) -> Comment:
    comment = store.find_by_id(Comment, comment_id)
    if comment is None:
        raise NotFoundError("CommentNotFound", "Comment not found")
    if subtask_id is not None and comment.subtask_id != subtask_id:
        raise NotFoundError("CommentNotFound", "Comment not found")
    if task_id is not None and comment.task_id != task_id:
        raise NotFoundError("CommentNotFound", "Comment not found")
    return comment


def _require_comment_access(actor: User, task: Task) -> None:
    if not permissions.can_comment(actor, task):
        raise ForbiddenError("Forbidden", "You do not have access to this task")


def _notify_assignees(notifier, task: Task, author: User) -> None:
    target = notifier if notifier is not None else outbox
    for assignee in task.assignees:
        if assignee.id == author.id:
            continue
        dispatch_safely(
            target,
            NotificationRequest(
                user_id=assignee.id,
                task_id=task.id,
                kind=TASK_COMMENT_NOTIFICATION,
                message=f'{author.username} commented on task: "{task.title}"',
            ),
        )


def _edit(store: EntityStore, comment: Comment, text: str, actor: User) -> Comment:
    if not permissions.can_edit_comment(actor, comment):
        raise ForbiddenError("Forbidden", "You can only edit your own comments")
    comment.text = text
    store.save(comment)
    logger.info("Comment %s edited by user %s", comment.id, actor.id)
    return comment


def _delete(store: EntityStore, comment: Comment, actor: User) -> bool:
    if not permissions.can_delete_comment(actor):
        raise ForbiddenError("Forbidden", "Only admins can delete comments")
    comment_id = comment.id
    store.delete_by_id(Comment, comment_id)
    logger.info("Comment %s deleted by user %s", comment_id, actor.id)
    return True


# ============ TASK ============

def add_task_comment(
    store: EntityStore,
    task_id,
    text: Optional[str],
    actor_id,
    notifier: Optional[NotificationDispatcher] = None,
) -> Comment:
    text = _clean_text(text)
    task = load_task(store, task_id)
    actor = load_actor(store, actor_id)
    _require_comment_access(actor, task)

    comment = Comment(task_id=task.id, author_id=actor.id, author_name=actor.username, text=text)
    store.save(comment)
    logger.info("Comment %s added to task %s by user %s", comment.id, task.id, actor.id)

    _notify_assignees(notifier, task, actor)
    return comment


def list_task_comments(store: EntityStore, task_id) -> List[Comment]:
    task = load_task(store, task_id)
    return store.comments_on(task_id=task.id)


def edit_task_comment(store: EntityStore, task_id, comment_id, text: Optional[str], actor_id) -> Comment:
    text = _clean_text(text)
    task = load_task(store, task_id)
    comment = _find_comment(store, comment_id, task_id=task.id)
    return _edit(store, comment, text, load_actor(store, actor_id))


def delete_task_comment(store: EntityStore, task_id, comment_id, actor_id) -> bool:
    task = load_task(store, task_id)
    comment = _find_comment(store, comment_id, task_id=task.id)
    return _delete(store, comment, load_actor(store, actor_id))


# ============ SUBTASK ============

def add_subtask_comment(store: EntityStore, subtask_id, text: Optional[str], actor_id) -> Comment:
    text = _clean_text(text)
    subtask = load_subtask(store, subtask_id)
    actor = load_actor(store, actor_id)
    _require_comment_access(actor, subtask.parent_task)

    comment = Comment(subtask_id=subtask.id, author_id=actor.id, author_name=actor.username, text=text)
    store.save(comment)
    logger.info("Comment %s added to subtask %s by user %s", comment.id, subtask.id, actor.id)
    return comment


def list_subtask_comments(store: EntityStore, subtask_id) -> List[Comment]:
    subtask = load_subtask(store, subtask_id)
    return store.comments_on(subtask_id=subtask.id)


def edit_subtask_comment(store: EntityStore, subtask_id, comment_id, text: Optional[str], actor_id) -> Comment:
    text = _clean_text(text)
    subtask = load_subtask(store, subtask_id)
    comment = _find_comment(store, comment_id, subtask_id=subtask.id)
    return _edit(store, comment, text, load_actor(store, actor_id))


def delete_subtask_comment(store: EntityStore, subtask_id, comment_id, actor_id) -> bool:
    subtask = load_subtask(store, subtask_id)
    comment = _find_comment(store, comment_id, subtask_id=subtask.id)
    return _delete(store, comment, load_actor(store, actor_id))
