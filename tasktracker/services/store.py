"""
Entity store facade over a SQLAlchemy session.

The engine only talks to this class: lookups, saves and deletes for users,
projects, tasks, subtasks and comments. References coming from callers may be raw ids
or loaded records; resolve_reference() normalizes both to an id so service
code never checks which one it got.
"""

import logging
from typing import Any, Iterable, List, Optional, Type

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tasktracker.models.user import User
from tasktracker.models.project import Project
from tasktracker.models.task import Task
from tasktracker.models.subtask import Subtask
from tasktracker.models.comment import Comment

logger = logging.getLogger(__name__)


def resolve_reference(ref: Any) -> Optional[int]:
    """Id of a record, whether `ref` is the record itself or its id."""
    if ref is None:
        return None
    if hasattr(ref, "id"):
        return ref.id
    if isinstance(ref, dict):
        return resolve_reference(ref.get("id"))
    return int(ref)


class EntityStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, model: Type, record_id: Any):
        record_id = resolve_reference(record_id)
        if record_id is None:
            return None
        return self.db.get(model, record_id)

    def find(self, model: Type, *criteria, order_by=None) -> List:
        query = self.db.query(model).filter(*criteria)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
        return query.all()

    def find_users(self, refs: Iterable[Any]) -> List[User]:
        """Load users in the order given; unknown ids are skipped."""
        users = []
        for ref in refs:
            user = self.find_by_id(User, ref)
            if user is not None:
                users.append(user)
        return users

    def find_user_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        return self.db.query(User).filter(User.username == username).first()

    def find_user_by_identifier(self, identifier: Any) -> Optional[User]:
        """Case-insensitive exact username match, or id match."""
        if identifier is None:
            return None
        if isinstance(identifier, User):
            return identifier
        text = str(identifier).strip()
        if not text:
            return None

        criteria = [func.lower(User.username) == text.lower()]
        if text.isdigit():
            criteria.append(User.id == int(text))
        return self.db.query(User).filter(or_(*criteria)).first()

    def subtasks_of(self, task_id: int, include_archived: bool = False) -> List[Subtask]:
        criteria = [Subtask.parent_task_id == task_id]
        if not include_archived:
            criteria.append(Subtask.archived == False)  # noqa: E712
        return self.find(Subtask, *criteria, order_by=Subtask.created_at)

    def archived_subtasks_of(self, task_id: int) -> List[Subtask]:
        """Most recently archived first."""
        return self.find(
            Subtask,
            Subtask.parent_task_id == task_id,
            Subtask.archived == True,  # noqa: E712
            order_by=Subtask.archived_at.desc(),
        )

    def comments_on(self, task_id: Optional[int] = None, subtask_id: Optional[int] = None) -> List[Comment]:
        if subtask_id is not None:
            return self.find(Comment, Comment.subtask_id == subtask_id, order_by=Comment.created_at)
        return self.find(Comment, Comment.task_id == task_id, order_by=Comment.created_at)

    def save(self, *records):
        for record in records:
            self.db.add(record)
        self.db.commit()
        for record in records:
            self.db.refresh(record)
        return records[0] if len(records) == 1 else records

    def rollback(self):
        self.db.rollback()

    def delete_by_id(self, model: Type, record_id: Any) -> bool:
        record = self.find_by_id(model, record_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        logger.debug("Deleted %s id=%s", model.__name__, record_id)
        return True
