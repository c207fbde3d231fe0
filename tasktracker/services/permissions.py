"""
Who may do what on a task.

Every check takes freshly loaded records; nothing is cached between calls.
"""

from tasktracker.core.constants import ELEVATED_ROLES, Role
from tasktracker.models.project import Project
from tasktracker.models.task import Task
from tasktracker.models.user import User


def is_admin(user: User) -> bool:
    return user.has_role(Role.ADMIN)


def is_elevated(user: User) -> bool:
    """Manager or admin."""
    return user.has_role(*ELEVATED_ROLES)


def is_owner(user: User, task: Task) -> bool:
    return task.owner_id == user.id


def is_assignee(user: User, task: Task) -> bool:
    return user.id in task.assignee_ids


def shares_department_with_assignee(user: User, task: Task) -> bool:
    if not user.department:
        return False
    return any(a.department == user.department for a in task.assignees)


def can_update(user: User, task: Task) -> bool:
    if is_admin(user):
        return True
    if is_owner(user, task) or is_assignee(user, task):
        return True
    # Un manager voit les tâches de son département
    if user.has_role(Role.MANAGER):
        return shares_department_with_assignee(user, task)
    return False


def can_archive(user: User, task: Task) -> bool:
    return is_owner(user, task) or is_assignee(user, task) or is_elevated(user)


def can_unarchive(user: User, task: Task) -> bool:
    return is_owner(user, task) or is_assignee(user, task)


def can_delete(user: User, task: Task) -> bool:
    return is_owner(user, task)


def can_add_assignee(user: User, task: Task) -> bool:
    return is_owner(user, task) or is_assignee(user, task) or is_elevated(user)


def can_remove_assignee(user: User, task: Task) -> bool:
    return is_owner(user, task) or is_elevated(user)


def can_view_project_tasks(user_id: int, role, project: Project) -> bool:
    """`role` is a single role tag or a list of them."""
    roles = [role] if isinstance(role, str) else list(role or [])
    if Role.ADMIN.value in {getattr(r, "value", r) for r in roles}:
        return True
    return project.has_access(user_id)


def can_comment(user: User, task: Task) -> bool:
    """Anyone who may update the task, plus the project's owner and members."""
    return can_update(user, task) or task.project.has_access(user.id)


def can_edit_comment(user: User, comment) -> bool:
    return comment.author_id == user.id


def can_delete_comment(user: User) -> bool:
    return is_admin(user)
