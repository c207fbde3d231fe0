"""Comment model"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from tasktracker.core.database import Base


class Comment(Base):
    """Un commentaire appartient soit à une tâche, soit à une sous-tâche."""

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "(task_id IS NULL) <> (subtask_id IS NULL)",
            name="ck_comment_single_target"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    subtask_id = Column(Integer, ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    author_name = Column(String, nullable=False)
    text = Column(String(2000), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")
    task = relationship("Task", back_populates="comments")
    subtask = relationship("Subtask", back_populates="comments")

    def __repr__(self):
        return f"<Comment(id={self.id}, author='{self.author_name}')>"
