import pytest
from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

from taskboard.database import build_engine, init_db
from taskboard.models import TaskPriority, TaskStatus, UserRole, status_for_column
from taskboard.services.permissions import as_role, can_force, can_manage_board, can_transition


@pytest.mark.parametrize(
    "name, expected",
    [
        ("To Do", TaskStatus.NOT_STARTED),
        ("Backlog", TaskStatus.NOT_STARTED),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("Review", TaskStatus.IN_PROGRESS),
        ("Blocked", TaskStatus.BLOCKED),
        ("Done", TaskStatus.COMPLETED),
        ("Resolved", TaskStatus.COMPLETED),
    ],
)
def test_status_follows_column_name(name, expected):
    assert status_for_column(name) is expected


def test_priorities_are_ordered_by_urgency():
    assert TaskPriority.LOW < TaskPriority.MEDIUM < TaskPriority.HIGH < TaskPriority.CRITICAL
    assert TaskPriority.CRITICAL > TaskPriority.LOW
    assert max([TaskPriority.HIGH, TaskPriority.CRITICAL, TaskPriority.LOW]) is TaskPriority.CRITICAL


def test_role_capabilities():
    assert [can_transition(role) for role in UserRole] == [True, True, True, False]
    assert [can_force(role) for role in UserRole] == [True, False, False, False]
    assert [can_manage_board(role) for role in UserRole] == [True, True, False, False]


def test_unknown_roles_degrade_to_guest():
    assert as_role("ADMIN") is UserRole.ADMIN
    assert as_role("superuser") is UserRole.GUEST
    assert as_role(None) is UserRole.GUEST


def test_build_engine_connects_to_sqlite():
    engine = build_engine("sqlite://")
    try:
        assert engine.dialect.name == "sqlite"
        with engine.connect() as connection:
            assert connection.exec_driver_sql("select 1").scalar() == 1
    finally:
        engine.dispose()


def test_init_db_creates_every_table():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    try:
        init_db(engine)
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"tasks", "kanban_columns", "task_dependencies", "sprints", "audit_logs"} <= tables
