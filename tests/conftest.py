from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import taskboard.models as models
from taskboard.database import Base, build_engine, init_db

TEST_DATABASE_URL = "sqlite://"
engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    init_db(engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


def _add(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


def _create_user(session: Session, username: str, role: models.UserRole) -> models.User:
    return _add(session, models.User(username=username, email=f"{username}@example.com", role=role))


@pytest.fixture
def board(db_session: Session):
    """A project with four columns: To Do, In Progress (limit 3), Review (limit 2), Done."""
    admin = _create_user(db_session, "ada", models.UserRole.ADMIN)
    associate = _create_user(db_session, "alex", models.UserRole.ASSOCIATE)
    member = _create_user(db_session, "mona", models.UserRole.MEMBER)
    guest = _create_user(db_session, "gus", models.UserRole.GUEST)
    outsider = _create_user(db_session, "otto", models.UserRole.MEMBER)

    project = _add(db_session, models.Project(name="Website", owner_id=associate.id))
    for user in (member, guest):
        _add(db_session, models.ProjectMember(project_id=project.id, user_id=user.id))

    todo = _add(db_session, models.KanbanColumn(project_id=project.id, name="To Do", order_index=0))
    in_progress = _add(
        db_session, models.KanbanColumn(project_id=project.id, name="In Progress", order_index=1, wip_limit=3)
    )
    review = _add(db_session, models.KanbanColumn(project_id=project.id, name="Review", order_index=2, wip_limit=2))
    done = _add(db_session, models.KanbanColumn(project_id=project.id, name="Done", order_index=3))

    return SimpleNamespace(
        admin=admin,
        associate=associate,
        member=member,
        guest=guest,
        outsider=outsider,
        project=project,
        todo=todo,
        in_progress=in_progress,
        review=review,
        done=done,
    )


@pytest.fixture
def make_task(db_session: Session, board):
    def _make(title: str, column=None, sprint=None, **fields) -> models.Task:
        column = column or board.todo
        task = models.Task(
            project_id=board.project.id,
            title=title,
            column_id=column.id,
            status=models.status_for_column(column.name),
            sprint_id=sprint.id if sprint is not None else None,
            created_by_id=fields.pop("created_by_id", board.member.id),
            **fields,
        )
        return _add(db_session, task)

    return _make


@pytest.fixture
def block(db_session: Session):
    def _block(task: models.Task, blocker: models.Task) -> models.TaskDependency:
        return _add(db_session, models.TaskDependency(task_id=task.id, blocked_by_id=blocker.id))

    return _block
