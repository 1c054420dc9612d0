"""Taskboard Database Models"""
from taskboard.models.user import User, UserRole
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.kanban_column import KanbanColumn
from taskboard.models.sprint import Sprint, SprintStatus
from taskboard.models.task import Task, TaskPriority, TaskStatus, status_for_column
from taskboard.models.task_dependency import TaskDependency
from taskboard.models.audit_log import AuditLog
from taskboard.utils.primary_keys import register_string_pk_listener

__all__ = [
    "User",
    "UserRole",
    "Project",
    "ProjectMember",
    "KanbanColumn",
    "Sprint",
    "SprintStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "status_for_column",
    "TaskDependency",
    "AuditLog",
]


for _model in (
    User,
    Project,
    ProjectMember,
    KanbanColumn,
    Sprint,
    Task,
    TaskDependency,
    AuditLog,
):
    register_string_pk_listener(_model)
