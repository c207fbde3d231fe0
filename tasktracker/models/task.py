"""Task model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship, validates
from datetime import datetime
from tasktracker.core.config import settings
from tasktracker.core.constants import INITIAL_TASK_STATUS, TaskState
from tasktracker.core.database import Base
from tasktracker.core.errors import ImmutableFieldError


task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(String, default="")
    due_date = Column(DateTime, nullable=True, index=True)
    priority = Column(Integer, default=settings.DEFAULT_TASK_PRIORITY)
    status = Column(String, default=INITIAL_TASK_STATUS)
    tags = Column(String, default="")

    is_recurring = Column(Boolean, default=False)
    recurrence_interval = Column(Integer, nullable=True)  # en jours
    time_taken = Column(String(100), default="")

    archived = Column(Boolean, default=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])
    assignees = relationship("User", secondary=task_assignees)
    project = relationship("Project", back_populates="tasks")
    subtasks = relationship("Subtask", back_populates="parent_task", cascade="all, delete-orphan")
    comments = relationship(
        "Comment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Comment.created_at"
    )

    @validates("project_id")
    def _project_is_write_once(self, key, value):
        if self.project_id is not None and value != self.project_id:
            raise ImmutableFieldError("ProjectImmutable", "Project cannot be changed after task creation")
        return value

    @property
    def state(self) -> TaskState:
        return TaskState.ARCHIVED if self.archived else TaskState.ACTIVE

    @property
    def assignee_ids(self) -> list:
        return [u.id for u in self.assignees]

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"
