"""Authorization predicates.

Every function here is a pure check over rows the caller already loaded. A
``member`` argument is the caller's ``ProjectMember`` row for the project in
question, or ``None`` when they are not a member.
"""

from taskboard.schemas.project import ProjectRole
from taskboard.schemas.user import UserRole


def is_admin(user) -> bool:
    return user.role == UserRole.ADMIN.value


def is_project_manager(member) -> bool:
    return member is not None and member.role == ProjectRole.MANAGER.value


def can_access_project(user, member) -> bool:
    return member is not None or is_admin(user)


def can_edit_project(user, project, member) -> bool:
    return project.creator_id == user.id or is_project_manager(member) or is_admin(user)


def can_delete_project(user, project) -> bool:
    return project.creator_id == user.id or is_admin(user)


def can_manage_members(user, project, member) -> bool:
    return can_edit_project(user, project, member)


def can_delete_file(user, file, member) -> bool:
    if file.user_id == user.id or is_admin(user):
        return True
    return file.project_id is not None and is_project_manager(member)
