import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from taskboard.client.board_state import BoardColumn, BoardStateManager, DragState, TaskCard
from taskboard.errors import TransitionErrorKind
from taskboard.models import UserRole
from taskboard.schemas import TransitionResult

COLUMNS = (
    BoardColumn(id="todo", name="To Do"),
    BoardColumn(id="doing", name="In Progress", wip_limit=3),
    BoardColumn(id="done", name="Done"),
)
TASKS = (
    TaskCard(id="t1", title="Write spec", column_id="todo"),
    TaskCard(id="t2", title="Build", column_id="todo"),
    TaskCard(id="t3", title="Review", column_id="doing"),
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ScriptedClient:
    """Answers each call with the next scripted result; optionally waits for a release."""

    def __init__(self, *results, gate=None):
        self.results = list(results)
        self.calls = []
        self.gate = gate

    def propose_transition(self, task_id, destination_column_id, project_id, force=False):
        self.calls.append((task_id, destination_column_id, project_id, force))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pool():
    executor = ThreadPoolExecutor(max_workers=4)
    yield executor
    executor.shutdown(wait=True)


def _manager(client, clock, pool, **kwargs):
    return BoardStateManager("p1", COLUMNS, TASKS, client, clock=clock, pool=pool, notice_seconds=3, **kwargs)


def _drag(manager, task_id, over_id, force=False):
    assert manager.start_drag(task_id)
    return manager.drop(task_id, over_id, force=force)


def test_allowed_move_is_committed(clock, pool):
    states = []
    client = ScriptedClient(TransitionResult.allow())
    manager = _manager(client, clock, pool, listener=lambda task_id, state: states.append(state))

    future = _drag(manager, "t1", "done")
    assert future.result(timeout=5).ok

    assert manager.board.task("t1").column_id == "done"
    assert manager.state_of("t1") is DragState.IDLE
    assert manager.notice is None
    assert states == [DragState.DRAGGING, DragState.OPTIMISTICALLY_MOVED, DragState.COMMITTED, DragState.IDLE]
    assert client.calls == [("t1", "done", "p1", False)]


def test_blocked_answer_rolls_back_to_identical_board(clock, pool):
    client = ScriptedClient(TransitionResult.deny(TransitionErrorKind.BLOCKED, "Task is blocked by another task"))
    manager = _manager(client, clock, pool)
    before = manager.board

    future = _drag(manager, "t1", "done")
    result = future.result(timeout=5)

    assert result.reason is TransitionErrorKind.BLOCKED
    assert manager.board == before
    assert manager.board.task("t1").column_id == "todo"
    notice = manager.notice
    assert notice.message == "Task is blocked by another task"
    assert notice.kind is TransitionErrorKind.BLOCKED
    assert not notice.retryable


@pytest.mark.parametrize("kind", list(TransitionErrorKind))
def test_every_denial_kind_restores_the_board(clock, pool, kind):
    manager = _manager(ScriptedClient(TransitionResult.deny(kind, "no")), clock, pool)
    before = manager.board

    _drag(manager, "t2", "doing").result(timeout=5)

    assert manager.board == before
    assert manager.state_of("t2") is DragState.IDLE


def test_optimistic_move_is_visible_before_the_answer(clock, pool):
    gate = threading.Event()
    manager = _manager(ScriptedClient(TransitionResult.allow(), gate=gate), clock, pool)
    before = manager.board

    future = _drag(manager, "t1", "doing")

    assert manager.board.task("t1").column_id == "doing"
    assert manager.state_of("t1") is DragState.OPTIMISTICALLY_MOVED
    assert before.task("t1").column_id == "todo"
    gate.set()
    assert future.result(timeout=5).ok


def test_second_drag_of_in_flight_task_is_refused(clock, pool):
    gate = threading.Event()
    client = ScriptedClient(TransitionResult.allow(), TransitionResult.allow(), gate=gate)
    manager = _manager(client, clock, pool)

    future = _drag(manager, "t1", "doing")

    assert not manager.is_draggable("t1")
    assert not manager.start_drag("t1")
    assert manager.drop("t1", "done") is None

    # other tasks stay independent
    other = _drag(manager, "t2", "done")
    gate.set()
    future.result(timeout=5)
    other.result(timeout=5)
    assert [call[0] for call in client.calls].count("t1") == 1
    assert manager.start_drag("t1")


@pytest.mark.parametrize("kwargs", [{"read_only": True}, {"role": UserRole.GUEST}, {"role": "guest"}])
def test_read_only_board_never_moves_or_calls(clock, pool, kwargs):
    client = ScriptedClient()
    manager = _manager(client, clock, pool, **kwargs)
    before = manager.board

    assert not manager.start_drag("t1")
    assert manager.drop("t1", "done") is None
    assert manager.board is before
    assert client.calls == []


def test_drop_on_task_targets_its_column(clock, pool):
    client = ScriptedClient(TransitionResult.allow())
    manager = _manager(client, clock, pool)

    _drag(manager, "t1", "t3").result(timeout=5)

    assert client.calls[0][1] == "doing"
    assert manager.board.task("t1").column_id == "doing"


@pytest.mark.parametrize("over_id", [None, "todo", "t2", "nowhere"])
def test_drop_without_a_new_column_sends_nothing(clock, pool, over_id):
    client = ScriptedClient()
    manager = _manager(client, clock, pool)

    assert _drag(manager, "t1", over_id) is None
    assert manager.state_of("t1") is DragState.IDLE
    assert client.calls == []


def test_notice_dismisses_itself(clock, pool):
    manager = _manager(ScriptedClient(TransitionResult.deny(TransitionErrorKind.WIP_EXCEEDED, "full")), clock, pool)
    _drag(manager, "t1", "doing").result(timeout=5)

    clock.advance(2.9)
    assert manager.notice is not None
    clock.advance(0.2)
    assert manager.notice is None


def test_client_exception_becomes_retryable_system_error(clock, pool):
    manager = _manager(ScriptedClient(ConnectionError("reset")), clock, pool)
    before = manager.board

    result = _drag(manager, "t1", "done").result(timeout=5)

    assert result.reason is TransitionErrorKind.SYSTEM_ERROR
    assert manager.board == before
    assert manager.notice.retryable


def test_overdue_request_is_rolled_back_and_late_denial_ignored(clock, pool):
    gate = threading.Event()
    client = ScriptedClient(TransitionResult.deny(TransitionErrorKind.WIP_EXCEEDED, "full"), gate=gate)
    manager = _manager(client, clock, pool, request_timeout=10)
    before = manager.board

    future = _drag(manager, "t1", "done")
    clock.advance(5)
    assert manager.expire_overdue() == []
    clock.advance(5)
    assert manager.expire_overdue() == ["t1"]

    assert manager.board == before
    assert manager.notice.kind is TransitionErrorKind.SYSTEM_ERROR
    assert manager.is_draggable("t1")

    gate.set()
    late = future.result(timeout=5)
    assert late.reason is TransitionErrorKind.SYSTEM_ERROR
    assert manager.board == before
    assert manager.notice.kind is TransitionErrorKind.SYSTEM_ERROR


def test_deadline_fires_without_polling(pool):
    gate = threading.Event()
    rolled_back = threading.Event()
    states = []

    def listener(task_id, state):
        states.append(state)
        if states[-2:] == [DragState.ROLLED_BACK, DragState.IDLE]:
            rolled_back.set()

    manager = BoardStateManager(
        "p1", COLUMNS, TASKS, ScriptedClient(TransitionResult.allow(), gate=gate),
        pool=pool, request_timeout=0.1, listener=listener,
    )
    before = manager.board
    try:
        _drag(manager, "t1", "done")

        assert rolled_back.wait(timeout=2)
        assert manager.state_of("t1") is DragState.IDLE
        assert manager.board == before
        assert manager.notice.retryable
    finally:
        gate.set()
        manager.close()


def test_late_acceptance_puts_the_move_back(clock, pool):
    gate = threading.Event()
    states = []
    manager = _manager(
        ScriptedClient(TransitionResult.allow(), gate=gate), clock, pool,
        request_timeout=10, listener=lambda task_id, state: states.append(state),
    )

    future = _drag(manager, "t1", "done")
    clock.advance(10)
    manager.expire_overdue()
    assert manager.board.task("t1").column_id == "todo"

    gate.set()
    assert future.result(timeout=5).ok

    assert manager.board.task("t1").column_id == "done"
    assert manager.state_of("t1") is DragState.IDLE
    assert manager.notice is None
    assert states[-2:] == [DragState.COMMITTED, DragState.IDLE]


class RoutedClient:
    """Answers by destination column, each answer held back by its own gate."""

    def __init__(self, answers):
        self.answers = answers

    def propose_transition(self, task_id, destination_column_id, project_id, force=False):
        gate, result = self.answers[destination_column_id]
        gate.wait(timeout=5)
        return result


def test_late_acceptance_becomes_rollback_target_of_newer_move(clock, pool):
    first_gate, second_gate = threading.Event(), threading.Event()
    client = RoutedClient({
        "done": (first_gate, TransitionResult.allow()),
        "doing": (second_gate, TransitionResult.deny(TransitionErrorKind.WIP_EXCEEDED, "full")),
    })
    manager = _manager(client, clock, pool, request_timeout=10)

    first = _drag(manager, "t1", "done")
    clock.advance(10)
    manager.expire_overdue()
    second = _drag(manager, "t1", "doing")

    first_gate.set()
    assert first.result(timeout=5).ok
    assert manager.board.task("t1").column_id == "doing"

    second_gate.set()
    assert second.result(timeout=5).reason is TransitionErrorKind.WIP_EXCEEDED
    assert manager.board.task("t1").column_id == "done"


def test_force_flag_is_forwarded(clock, pool):
    client = ScriptedClient(TransitionResult.allow())
    manager = _manager(client, clock, pool)

    _drag(manager, "t1", "doing", force=True).result(timeout=5)

    assert client.calls[0][3] is True


def test_reload_keeps_in_flight_moves(clock, pool):
    gate = threading.Event()
    manager = _manager(
        ScriptedClient(TransitionResult.deny(TransitionErrorKind.WIP_EXCEEDED, "full"), gate=gate), clock, pool
    )
    future = _drag(manager, "t1", "doing")

    fresh = TASKS + (TaskCard(id="t4", title="New", column_id="todo"),)
    manager.reload(COLUMNS, fresh)
    assert manager.board.task("t1").column_id == "doing"
    assert manager.board.task("t4") is not None

    gate.set()
    future.result(timeout=5)
    assert manager.board.task("t1").column_id == "todo"
