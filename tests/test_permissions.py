"""
Règles d'autorisation, testées directement sur les modèles.
"""

from types import SimpleNamespace

from tasktracker.models.project import Project
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.services import permissions


def user(id, roles=("staff",), department="it"):
    return User(id=id, username=f"u{id}", email=f"u{id}@example.com", password_hash="x",
                roles=list(roles), department=department)


def task_with(owner, assignees):
    task = Task(title="t", owner_id=owner.id, project_id=1)
    task.assignees = list(assignees)
    return task


def test_admin_can_always_update():
    owner = user(1)
    task = task_with(owner, [owner])
    assert permissions.can_update(user(9, roles=("admin",), department="hr"), task)


def test_owner_and_assignee_can_update():
    owner, other = user(1), user(2)
    task = task_with(owner, [other])
    assert permissions.can_update(owner, task)
    assert permissions.can_update(other, task)
    assert not permissions.can_update(user(3), task)


def test_manager_needs_department_link():
    owner = user(1, department="it")
    task = task_with(owner, [owner])
    assert permissions.can_update(user(5, roles=("manager",), department="it"), task)
    assert not permissions.can_update(user(6, roles=("manager",), department="sales"), task)
    assert not permissions.can_update(user(7, roles=("manager",), department=None), task)


def test_staff_same_department_is_not_enough():
    owner = user(1, department="it")
    task = task_with(owner, [owner])
    assert not permissions.can_update(user(2, department="it"), task)


def test_archive_vs_unarchive():
    owner = user(1)
    task = task_with(owner, [owner])
    manager = user(5, roles=("manager",))
    assert permissions.can_archive(manager, task)
    assert not permissions.can_unarchive(manager, task)
    assert permissions.can_unarchive(owner, task)


def test_add_vs_remove_assignee():
    owner, member = user(1), user(2)
    task = task_with(owner, [owner, member])
    assert permissions.can_add_assignee(member, task)
    assert not permissions.can_remove_assignee(member, task)
    assert permissions.can_remove_assignee(owner, task)
    assert permissions.can_remove_assignee(user(9, roles=("admin",)), task)


def test_only_owner_can_delete():
    owner = user(1)
    task = task_with(owner, [owner])
    assert permissions.can_delete(owner, task)
    assert not permissions.can_delete(user(9, roles=("admin",)), task)


def test_project_task_visibility():
    member = user(2)
    project = Project(id=1, name="p", owner_id=1)
    project.members = [member]
    assert permissions.can_view_project_tasks(1, "staff", project)
    assert permissions.can_view_project_tasks(2, "staff", project)
    assert permissions.can_view_project_tasks(3, "admin", project)
    assert permissions.can_view_project_tasks(3, ["staff", "admin"], project)
    assert not permissions.can_view_project_tasks(3, "manager", project)
