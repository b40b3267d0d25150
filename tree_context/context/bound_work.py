from __future__ import annotations

import asyncio
import functools
import inspect
import time
import traceback
import uuid
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Optional,
    Tuple,
    TypeVar,
)

from tree_context.logging.tree_context_logging_models import (
    WorkCancelled,
    WorkCompleted,
    WorkFailed,
)

from .models import RunStatus, WorkRun

if TYPE_CHECKING:
    from .node import ContextNode


T = TypeVar("T")

Work = Awaitable[T] | Callable[..., Awaitable[T]]


def get_work_name(work: Any) -> str:
    if isinstance(work, functools.partial):
        return get_work_name(work.func)

    name = getattr(work, "__qualname__", None) or getattr(work, "__name__", None)
    if name is None:
        name = type(work).__name__

    return name


class BoundWork(Generic[T]):
    """
    One unit of work bound to a context node.

    Awaiting a ``BoundWork`` returns the work's result, or ``None`` if the
    context cancelled it first. Exceptions raised by the work itself are
    re-raised to the awaiter unchanged.
    """

    __slots__ = (
        "run_id",
        "context_id",
        "work",
        "status",
        "error",
        "trace",
        "start",
        "end",
        "elapsed",
        "_node",
        "_work",
        "_args",
        "_kwargs",
        "_task",
        "_loop",
        "_cancel_requested",
    )

    def __init__(
        self,
        node: ContextNode,
        work: Work[T],
        args: Tuple[Any, ...] = (),
        kwargs: Dict[str, Any] | None = None,
    ) -> None:
        self.run_id = uuid.uuid4().hex
        self.context_id = node.context_id
        self.work = get_work_name(work)
        self.status = RunStatus.CREATED

        self.error: Optional[str] = None
        self.trace: Optional[str] = None
        self.start = time.monotonic()
        self.end: Optional[float] = None
        self.elapsed: float = 0

        self._node = node
        self._work: Work[T] | None = work
        self._args = args
        self._kwargs = kwargs or {}

        self._task: Optional[asyncio.Task[T]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancel_requested = False

    @property
    def pending(self):
        return self.status == RunStatus.PENDING

    @property
    def running(self):
        return self.status == RunStatus.RUNNING

    @property
    def completed(self):
        return self.status == RunStatus.COMPLETE

    @property
    def cancelled(self):
        return self.status == RunStatus.CANCELLED

    @property
    def failed(self):
        return self.status == RunStatus.FAILED

    @property
    def done(self):
        return self.status in [
            RunStatus.COMPLETE,
            RunStatus.CANCELLED,
            RunStatus.FAILED,
        ]

    def execute(self, loop: asyncio.AbstractEventLoop):
        if self._cancel_requested:
            self.short_circuit()
            return

        self._loop = loop
        self._task = loop.create_task(self._execute())
        self._task.add_done_callback(self._on_done)
        self.status = RunStatus.PENDING

        # cancel() from another thread may have run before the task existed.
        if self._cancel_requested:
            self._signal()

    def short_circuit(self):
        """Resolve as cancelled without ever starting the work."""
        self._cancel_requested = True
        self._discard_work()

        self.status = RunStatus.CANCELLED
        self.end = time.monotonic()
        self.elapsed = self.end - self.start

    def cancel(self) -> bool:
        self._cancel_requested = True
        return self._signal()

    async def wait(self) -> T | None:
        if self._task is None:
            return None

        # Status is set by the done callback, so waiting on it rather than
        # on the task guarantees the registration is already removed.
        if not self.done:
            await asyncio.wait([self._task])

        if self._task.cancelled() and self._cancel_requested:
            return None

        return self._task.result()

    def __await__(self):
        return self.wait().__await__()

    def to_run(self) -> WorkRun:
        return WorkRun(
            run_id=self.run_id,
            context_id=self.context_id,
            work=self.work,
            status=self.status,
            error=self.error,
            trace=self.trace,
            start=self.start,
            end=self.end,
            elapsed=self.elapsed,
        )

    async def _execute(self) -> T:
        self.status = RunStatus.RUNNING

        work = self._work
        if callable(work) and not inspect.isawaitable(work):
            work = work(*self._args, **self._kwargs)

        return await work

    def _signal(self) -> bool:
        task = self._task
        loop = self._loop

        if task is None or task.done() or loop.is_closed():
            return False

        try:
            running_loop = asyncio.get_running_loop()

        except RuntimeError:
            running_loop = None

        if running_loop is loop:
            task.cancel()
            return True

        try:
            loop.call_soon_threadsafe(task.cancel)

        except RuntimeError:
            # Loop closed between the check above and the call.
            return False

        return True

    def _discard_work(self):
        work = self._work
        self._work = None
        self._args = ()
        self._kwargs = {}

        if inspect.iscoroutine(work):
            if inspect.getcoroutinestate(work) == inspect.CORO_CREATED:
                work.close()

        elif asyncio.isfuture(work):
            work.cancel()

    def _on_done(self, task: asyncio.Task[T]):
        self.end = time.monotonic()
        self.elapsed = self.end - self.start
        self._node.remove_work(self)

        logger = self._node.logger

        if task.cancelled():
            self._discard_work()
            self.status = RunStatus.CANCELLED

            logger.schedule(
                WorkCancelled(
                    message=f"Work {self.work} cancelled",
                    context_id=self.context_id,
                    run_id=self.run_id,
                    work=self.work,
                    elapsed=self.elapsed,
                )
            )

            return

        self._work = None
        self._args = ()
        self._kwargs = {}

        error = task.exception()
        if error is None:
            self.status = RunStatus.COMPLETE

            logger.schedule(
                WorkCompleted(
                    message=f"Work {self.work} completed",
                    context_id=self.context_id,
                    run_id=self.run_id,
                    work=self.work,
                    elapsed=self.elapsed,
                )
            )

            return

        self.status = RunStatus.FAILED
        self.error = f"Err. - Work - {self.work} - run {self.run_id} - failed. Encountered exception - {error}."
        self.trace = "".join(traceback.format_exception(error))

        logger.schedule(
            WorkFailed(
                message=self.error,
                context_id=self.context_id,
                run_id=self.run_id,
                work=self.work,
                error=str(error),
                elapsed=self.elapsed,
            )
        )

    def __repr__(self) -> str:
        return (
            f"BoundWork(run_id={self.run_id!r}, work={self.work!r}, "
            f"status={self.status.value})"
        )
