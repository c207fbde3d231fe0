"""Closed vocabularies and lifecycle defaults shared by models, schemas and services."""

from enum import Enum


class Role(str, Enum):
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    COMPLETED = "Completed"


class ProjectStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    COMPLETED = "Completed"


class TaskState(str, Enum):
    """Lifecycle state derived from the archived flag."""
    ACTIVE = "active"
    ARCHIVED = "archived"


# Roles allowed to assign other users or bypass relationship checks
ELEVATED_ROLES = frozenset({Role.MANAGER.value, Role.ADMIN.value})

INITIAL_TASK_STATUS = TaskStatus.TODO.value
INITIAL_PROJECT_STATUS = ProjectStatus.TODO.value

# Affichage du temps cumulé quand rien n'est saisi
NOT_SPECIFIED = "Not specified"

OWNER_ASSIGNED_NOTIFICATION = "task_owner_assigned"
TASK_COMMENT_NOTIFICATION = "task_comment"
