"""Role capabilities, evaluated once per request before any board rule."""
from typing import Union

from taskboard.models.user import UserRole

_TRANSITION_ROLES = frozenset({UserRole.ADMIN, UserRole.ASSOCIATE, UserRole.MEMBER})
_BOARD_MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.ASSOCIATE})


def as_role(role: Union[UserRole, str, None]) -> UserRole:
    """Coerce a role value into ``UserRole``; unknown values degrade to guest."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).lower())
    except ValueError:
        return UserRole.GUEST


def can_transition(role) -> bool:
    return as_role(role) in _TRANSITION_ROLES


def can_force(role) -> bool:
    """Only administrators may override work-in-progress limits."""
    return as_role(role) is UserRole.ADMIN


def can_manage_board(role) -> bool:
    """Columns, WIP limits and sprints are managed by admins and associates."""
    return as_role(role) in _BOARD_MANAGER_ROLES


def is_read_only(role) -> bool:
    return not can_transition(role)


def user_can_access_project(db, project, user) -> bool:
    """Owners, administrators and project members may work on a project's board."""
    from taskboard.models import ProjectMember

    if project.owner_id == user.id or as_role(user.role) is UserRole.ADMIN:
        return True
    membership = db.query(ProjectMember.id).filter(
        ProjectMember.project_id == project.id,
        ProjectMember.user_id == user.id,
    ).first()
    return membership is not None
