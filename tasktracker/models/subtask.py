from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from tasktracker.core.config import settings
from tasktracker.core.constants import INITIAL_TASK_STATUS
from tasktracker.core.database import Base

class Subtask(Base):
    __tablename__ = "subtasks"

    id = Column(Integer, primary_key=True, index=True)
    parent_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(String, default="")
    status = Column(String, default=INITIAL_TASK_STATUS)
    priority = Column(Integer, default=settings.DEFAULT_TASK_PRIORITY)
    due_date = Column(DateTime, nullable=True)
    time_taken = Column(String(100), default="")

    is_recurring = Column(Boolean, default=False)
    recurrence_interval = Column(Integer, nullable=True)  # en jours

    archived = Column(Boolean, default=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent_task = relationship("Task", back_populates="subtasks")
    comments = relationship(
        "Comment",
        back_populates="subtask",
        cascade="all, delete-orphan",
        order_by="Comment.created_at"
    )
