"""Project model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship
from datetime import datetime
from tasktracker.core.constants import INITIAL_PROJECT_STATUS
from tasktracker.core.database import Base


project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(String, default="")
    status = Column(String, default=INITIAL_PROJECT_STATUS)

    archived = Column(Boolean, default=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])
    members = relationship("User", secondary=project_members)
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")

    def has_access(self, user_id: int) -> bool:
        """Owner or member of the project."""
        return self.owner_id == user_id or any(m.id == user_id for m in self.members)
