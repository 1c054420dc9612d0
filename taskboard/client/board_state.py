"""
Board State Manager

Client-side board model. Moves are applied to the local board as soon as a
card is dropped, sent to the server, and then either kept or rolled back
depending on the answer. Each task follows its own small state machine::

    IDLE -> DRAGGING -> OPTIMISTICALLY_MOVED -> COMMITTED   -> IDLE
                     \\                     \\-> ROLLED_BACK -> IDLE
                      \\-> IDLE (dropped nowhere / on its own column)

The board itself is an immutable ``BoardSnapshot``. Every change produces a
new snapshot, so a renderer holding the previous one never sees it change.

Every sent move carries its own deadline timer. When it fires first the move
is rolled back as a retryable system error. An acceptance that still arrives
afterwards is put back on the board, since the server has written it.
"""
import enum
import itertools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from taskboard.config import settings
from taskboard.errors import TransitionErrorKind
from taskboard.schemas import TransitionResult
from taskboard.services.permissions import is_read_only

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "The server did not respond in time. Please try again."
UNEXPECTED_ERROR_MESSAGE = "Something went wrong while moving the task. Please try again."


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    OPTIMISTICALLY_MOVED = "optimistically_moved"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class BoardColumn:
    id: str
    name: str
    wip_limit: Optional[int] = None


@dataclass(frozen=True)
class TaskCard:
    id: str
    title: str
    column_id: str
    priority: str = "medium"
    is_blocked: bool = False
    sprint_locked: bool = False


@dataclass(frozen=True)
class BoardSnapshot:
    columns: Tuple[BoardColumn, ...] = ()
    tasks: Tuple[TaskCard, ...] = ()

    def task(self, task_id: str) -> Optional[TaskCard]:
        return next((task for task in self.tasks if task.id == task_id), None)

    def column(self, column_id: str) -> Optional[BoardColumn]:
        return next((column for column in self.columns if column.id == column_id), None)

    def tasks_in(self, column_id: str) -> Tuple[TaskCard, ...]:
        return tuple(task for task in self.tasks if task.column_id == column_id)

    def with_task_column(self, task_id: str, column_id: str) -> "BoardSnapshot":
        return replace(
            self,
            tasks=tuple(replace(task, column_id=column_id) if task.id == task_id else task for task in self.tasks),
        )


@dataclass(frozen=True)
class Notice:
    """A transient message shown after a rejected move."""

    message: str
    kind: TransitionErrorKind
    expires_at: float
    task_id: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


@dataclass
class PendingMove:
    request_id: int
    task_id: str
    from_column_id: str
    to_column_id: str
    started_at: float
    outcome: Optional[TransitionResult] = field(default=None)
    timer: Optional[threading.Timer] = field(default=None, repr=False)


class BoardStateManager:
    """Holds one project board and reconciles optimistic moves with the server.

    ``client`` is anything with ``propose_transition(task_id,
    destination_column_id, project_id, force=...)`` returning a
    ``TransitionResult``; see ``taskboard.client.transport``.
    """

    def __init__(
        self,
        project_id: str,
        columns: Iterable[BoardColumn],
        tasks: Iterable[TaskCard],
        client,
        read_only: bool = False,
        role=None,
        notice_seconds: Optional[float] = None,
        request_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        pool: Optional[ThreadPoolExecutor] = None,
        listener: Optional[Callable[[str, DragState], None]] = None,
    ):
        self.project_id = project_id
        self.client = client
        self.read_only = read_only or (role is not None and is_read_only(role))
        self.notice_seconds = notice_seconds if notice_seconds is not None else settings.NOTICE_SECONDS
        self.request_timeout = request_timeout if request_timeout is not None else settings.TRANSITION_TIMEOUT_SECONDS
        self.clock = clock
        self.listener = listener

        self._board = BoardSnapshot(columns=tuple(columns), tasks=tuple(tasks))
        self._states: Dict[str, DragState] = {}
        self._pending: Dict[str, PendingMove] = {}
        self._latest: Dict[str, PendingMove] = {}
        self._notice: Optional[Notice] = None
        self._request_ids = itertools.count(1)
        self._lock = threading.RLock()
        self._owns_pool = pool is None
        self._pool = pool or ThreadPoolExecutor(max_workers=4, thread_name_prefix="board-transition")

    # -------------------- reads --------------------

    @property
    def board(self) -> BoardSnapshot:
        return self._board

    def state_of(self, task_id: str) -> DragState:
        return self._states.get(task_id, DragState.IDLE)

    def is_draggable(self, task_id: str) -> bool:
        return (
            not self.read_only
            and self._board.task(task_id) is not None
            and task_id not in self._pending
        )

    @property
    def notice(self) -> Optional[Notice]:
        """The current notice, or None once its display window has passed."""
        with self._lock:
            if self._notice is not None and self.clock() >= self._notice.expires_at:
                self._notice = None
            return self._notice

    def dismiss_notice(self) -> None:
        with self._lock:
            self._notice = None

    # -------------------- gestures --------------------

    def start_drag(self, task_id: str) -> bool:
        with self._lock:
            if not self.is_draggable(task_id):
                return False
            self._set_state(task_id, DragState.DRAGGING)
            self._notice = None
            return True

    def cancel_drag(self, task_id: str) -> None:
        with self._lock:
            if self.state_of(task_id) is DragState.DRAGGING:
                self._set_state(task_id, DragState.IDLE)

    def drop(self, task_id: str, over_id: Optional[str], force: bool = False) -> Optional["Future[TransitionResult]"]:
        """Finish a drag over ``over_id`` (a column id or another task's id).

        Returns the future of the server round trip, or None when nothing
        was sent.
        """
        with self._lock:
            if self.state_of(task_id) is not DragState.DRAGGING:
                return None
            task = self._board.task(task_id)
            target = self._resolve_target(over_id)
            if task is None or target is None or target == task.column_id:
                self._set_state(task_id, DragState.IDLE)
                return None

            pending = PendingMove(
                request_id=next(self._request_ids),
                task_id=task_id,
                from_column_id=task.column_id,
                to_column_id=target,
                started_at=self.clock(),
            )
            self._pending[task_id] = pending
            self._latest[task_id] = pending
            self._board = self._board.with_task_column(task_id, target)
            self._set_state(task_id, DragState.OPTIMISTICALLY_MOVED)
            pending.timer = threading.Timer(self.request_timeout, self._expire, args=(pending,))
            pending.timer.daemon = True
            pending.timer.start()

        return self._pool.submit(self._send, pending, force)

    def expire_overdue(self) -> List[str]:
        """Roll back every move that has waited longer than ``request_timeout`` by ``clock``.

        The per-move timers do this on their own; this is for callers that
        drive time themselves.
        """
        expired = []
        with self._lock:
            now = self.clock()
            for pending in list(self._pending.values()):
                if now - pending.started_at >= self.request_timeout:
                    self._time_out(pending)
                    expired.append(pending.task_id)
        return expired

    def reload(self, columns: Iterable[BoardColumn], tasks: Iterable[TaskCard]) -> None:
        """Replace the board with server data, keeping in-flight moves applied."""
        with self._lock:
            board = BoardSnapshot(columns=tuple(columns), tasks=tuple(tasks))
            for pending in self._pending.values():
                task = board.task(pending.task_id)
                if task is not None:
                    pending.from_column_id = task.column_id
                board = board.with_task_column(pending.task_id, pending.to_column_id)
            self._board = board

    def close(self) -> None:
        with self._lock:
            for pending in self._pending.values():
                if pending.timer is not None:
                    pending.timer.cancel()
        if self._owns_pool:
            self._pool.shutdown(wait=False)

    # -------------------- reconciliation --------------------

    def _resolve_target(self, over_id: Optional[str]) -> Optional[str]:
        if over_id is None:
            return None
        if self._board.column(over_id) is not None:
            return over_id
        over_task = self._board.task(over_id)
        return over_task.column_id if over_task is not None else None

    def _send(self, pending: PendingMove, force: bool) -> TransitionResult:
        try:
            result = self.client.propose_transition(
                pending.task_id, pending.to_column_id, self.project_id, force=force
            )
        except Exception:
            logger.exception("Transition call for task %s raised", pending.task_id)
            result = TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, UNEXPECTED_ERROR_MESSAGE)
        return self._reconcile(pending, result)

    def _expire(self, pending: PendingMove) -> None:
        with self._lock:
            if self._pending.get(pending.task_id) is pending:
                self._time_out(pending)

    def _time_out(self, pending: PendingMove) -> None:
        logger.warning("Move of task %s timed out; rolling back", pending.task_id)
        self._finish(pending, TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, TIMEOUT_MESSAGE))

    def _reconcile(self, pending: PendingMove, result: TransitionResult) -> TransitionResult:
        with self._lock:
            if self._pending.get(pending.task_id) is pending:
                self._finish(pending, result)
                return result
            if not result.ok:
                # The timeout already restored the board; nothing was written.
                logger.info("Ignoring late denial for task %s (request %s)", pending.task_id, pending.request_id)
                return pending.outcome
            self._apply_late_commit(pending)
            pending.outcome = result
            return result

    def _apply_late_commit(self, pending: PendingMove) -> None:
        """The server accepted a move the client had already timed out and undone."""
        logger.info("Late commit for task %s (request %s); re-applying", pending.task_id, pending.request_id)
        latest = self._latest.get(pending.task_id, pending)
        if latest is not pending and self._pending.get(pending.task_id) is latest:
            # The newer move stays on screen; a rollback must land on the committed column.
            latest.from_column_id = pending.to_column_id
        elif latest is pending or not latest.outcome.ok:
            self._board = self._board.with_task_column(pending.task_id, pending.to_column_id)
            if self.state_of(pending.task_id) is DragState.IDLE:
                self._set_state(pending.task_id, DragState.COMMITTED)
                self._set_state(pending.task_id, DragState.IDLE)
        if self._notice is not None and self._notice.task_id == pending.task_id:
            self._notice = None

    def _finish(self, pending: PendingMove, result: TransitionResult) -> None:
        del self._pending[pending.task_id]
        if pending.timer is not None:
            pending.timer.cancel()
        pending.outcome = result
        if result.ok:
            self._set_state(pending.task_id, DragState.COMMITTED)
        else:
            self._board = self._board.with_task_column(pending.task_id, pending.from_column_id)
            self._notice = Notice(
                message=result.message or "The move was rejected",
                kind=result.reason,
                expires_at=self.clock() + self.notice_seconds,
                task_id=pending.task_id,
            )
            logger.info("Rolled back task %s: %s", pending.task_id, result.message)
            self._set_state(pending.task_id, DragState.ROLLED_BACK)
        self._set_state(pending.task_id, DragState.IDLE)

    def _set_state(self, task_id: str, state: DragState) -> None:
        if state is DragState.IDLE:
            self._states.pop(task_id, None)
        else:
            self._states[task_id] = state
        if self.listener is not None:
            self.listener(task_id, state)
