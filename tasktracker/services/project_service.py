"""
Project management.

Only the owner updates or deletes a project. Archiving a project archives all
of its tasks, unarchiving restores them. Deleting it removes its tasks,
their subtasks and comments.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from tasktracker.core.constants import Role
from tasktracker.core.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models.project import Project
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.schemas.project import ProjectCreate, ProjectUpdate
from tasktracker.services import permissions
from tasktracker.services.store import EntityStore
from tasktracker.services.task_service import load_actor, load_users

logger = logging.getLogger(__name__)


@dataclass
class ProjectOverview:
    """A project plus what the viewing user may see of it."""
    project: Project
    can_view_tasks: bool
    department_involved: bool


def load_project(store: EntityStore, project_id) -> Project:
    project = store.find_by_id(Project, project_id)
    if project is None:
        raise NotFoundError("ProjectNotFound", "Project not found")
    return project


def _check_name(name) -> str:
    if not name or not name.strip():
        raise ValidationError("ProjectNameRequired", "Project name cannot be empty")
    return name.strip()


def create_project(store: EntityStore, payload: ProjectCreate, actor_id) -> Project:
    name = _check_name(payload.name)
    owner = load_actor(store, actor_id)
    members = load_users(store, [m for m in dict.fromkeys(payload.member_ids or []) if m != owner.id])

    project = Project(
        name=name,
        description=payload.description or "",
        status=payload.status.value,
        owner_id=owner.id,
        members=members,
    )
    store.save(project)
    logger.info("Project %s created by user %s", project.id, owner.id)
    return project


def _set_archived(project: Project, archived: bool) -> None:
    if archived == bool(project.archived):
        return
    stamp = datetime.utcnow() if archived else None
    project.archived = archived
    project.archived_at = stamp
    for task in project.tasks:
        task.archived = archived
        task.archived_at = stamp


def update_project(store: EntityStore, project_id, payload: ProjectUpdate, actor_id) -> Project:
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        changes["name"] = _check_name(changes["name"])

    project = load_project(store, project_id)
    actor = load_actor(store, actor_id)
    if project.owner_id != actor.id:
        raise ForbiddenError("Forbidden", "Only project owner can update the project")

    if "member_ids" in changes:
        ids = [m for m in dict.fromkeys(changes["member_ids"] or []) if m != project.owner_id]
        project.members = load_users(store, ids)
    if "name" in changes:
        project.name = changes["name"]
    if "description" in changes:
        project.description = changes["description"] or ""
    if changes.get("status") is not None:
        project.status = changes["status"].value
    if changes.get("archived") is not None:
        _set_archived(project, changes["archived"])

    store.save(project)
    logger.info("Project %s updated by user %s (%s)", project.id, actor.id, ", ".join(sorted(changes)))
    return project


def delete_project(store: EntityStore, project_id, actor_id) -> bool:
    project = load_project(store, project_id)
    actor = load_actor(store, actor_id)
    if project.owner_id != actor.id:
        raise ForbiddenError("Forbidden", "Only project owner can delete the project")

    store.delete_by_id(Project, project.id)
    logger.info("Project %s deleted by user %s", project_id, actor.id)
    return True


def _department_involved(user: User, tasks: List[Task]) -> bool:
    """The user, or a colleague from the same department, is assigned somewhere in the project."""
    for task in tasks:
        for assignee in task.assignees:
            if assignee.id == user.id:
                return True
            if user.department and assignee.department == user.department:
                return True
    return False


def list_projects(store: EntityStore, actor_id) -> List[ProjectOverview]:
    """
    Every project, newest first, each flagged for the viewer.

    can_view_tasks follows the project task listing rule (admin, owner or
    member). department_involved tells whether the viewer's department works
    on the project.
    """
    actor = load_actor(store, actor_id)
    roles = actor.roles or [Role.STAFF.value]
    overviews = []
    for project in store.find(Project, order_by=[Project.created_at.desc(), Project.id.desc()]):
        overviews.append(ProjectOverview(
            project=project,
            can_view_tasks=permissions.can_view_project_tasks(actor.id, roles, project),
            department_involved=_department_involved(actor, project.tasks),
        ))
    return overviews
