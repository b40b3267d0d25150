from __future__ import annotations

import weakref
from typing import Any, TypeVar

from tree_context.env import Env
from tree_context.logging import LoggerStream, LoggingConfig
from tree_context.logging.tree_context_logging_models import (
    ContextCollected,
    ContextCreated,
    ContextReleased,
)

from .binder import TaskBinder
from .bound_work import BoundWork, Work
from .models import ContextSnapshot, ContextStatus
from .node import ContextNode
from .propagator import propagate


T = TypeVar("T")


def _release_node(node: ContextNode, explicit: bool):
    cancelled = propagate(node)

    if explicit:
        node.logger.schedule(
            ContextReleased(
                message=f"Context {node.context_id} released",
                context_id=node.context_id,
            )
        )

    elif cancelled and node.config.TREE_CONTEXT_LOG_RELEASE_BY_GC:
        node.logger.schedule(
            ContextCollected(
                message=(
                    f"Context {node.context_id} was garbage collected while active. "
                    "Use release() or a with block to cancel it deterministically."
                ),
                context_id=node.context_id,
            )
        )


class Context:
    """
    Handle to one node of a cancellation tree.

    Work spawned through a context is cancelled when the context is
    cancelled, when any ancestor is cancelled, or when the handle is
    released. Release happens on ``release()``, on leaving a ``with`` or
    ``async with`` block by any path, or when the handle is garbage
    collected, and cancels the node exactly once.

    Passing ``config`` to a root context also applies its log level and
    output to ``LoggingConfig``. Children share their root's config and
    logger.

    Example::

        async with Context() as ctx:
            child = ctx.new_child_context()
            child.spawn(poll_forever())
            result = await ctx.spawn(fetch())

            child.release()
    """

    __slots__ = (
        "_node",
        "_binder",
        "_finalizer",
        "__weakref__",
    )

    def __init__(
        self,
        config: Env | None = None,
        logger: LoggerStream | None = None,
        parent: Context | None = None,
    ) -> None:
        if parent is not None:
            node = parent._node.derive()

        else:
            if config is None:
                config = Env()

            else:
                LoggingConfig().update(
                    log_level=config.TREE_CONTEXT_LOG_LEVEL,
                    log_output=config.TREE_CONTEXT_LOG_OUTPUT,
                )

            if logger is None:
                logger = LoggerStream(
                    name="tree_context",
                    path=config.TREE_CONTEXT_LOG_PATH,
                )

            node = ContextNode(config, logger)

        self._node = node
        self._binder = TaskBinder(node)
        self._finalizer = weakref.finalize(self, _release_node, node, False)

        node.logger.schedule(
            ContextCreated(
                message=f"Context {node.context_id} created",
                context_id=node.context_id,
                parent_id=node.parent_id,
                cancelled=node.cancelled,
            )
        )

    @classmethod
    def new(
        cls,
        config: Env | None = None,
        logger: LoggerStream | None = None,
    ) -> Context:
        return cls(config=config, logger=logger)

    @classmethod
    def with_parent(cls, parent: Context) -> Context:
        """Same as ``parent.new_child_context()``."""
        return cls(parent=parent)

    @property
    def context_id(self) -> str:
        return self._node.context_id

    @property
    def cancelled(self) -> bool:
        return self._node.cancelled

    @property
    def status(self) -> ContextStatus:
        return self._node.status

    @property
    def released(self) -> bool:
        return not self._finalizer.alive

    def new_child_context(self) -> Context:
        """
        Create a child context. Cancelling this context cancels the child,
        and a child created after this context was cancelled starts out
        cancelled.
        """
        return Context(parent=self)

    def spawn(
        self,
        work: Work[T],
        *args: Any,
        **kwargs: Any,
    ) -> BoundWork[T]:
        """
        Run ``work`` on the current event loop, bound to this context.

        ``work`` is a coroutine or other awaitable, or a coroutine function
        called with ``args`` and ``kwargs`` once the task starts. The
        returned handle resolves to the result, or to ``None`` if the
        context is cancelled first. On an already cancelled context the
        work never starts.
        """
        return self._binder.bind(work, *args, **kwargs)

    def spawn_detached(
        self,
        work: Work[T],
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Like ``spawn`` but the result is discarded."""
        self._binder.bind(work, *args, **kwargs)

    def cancel(self) -> bool:
        """
        Cancel this context, its bound work and all descendants. Returns
        once cancellation is armed. Idempotent.
        """
        return propagate(self._node)

    def release(self):
        if self._finalizer.detach() is not None:
            _release_node(self._node, True)

    def snapshot(self, max_depth: int | None = None) -> ContextSnapshot:
        return self._node.snapshot(max_depth=max_depth)

    def __enter__(self) -> Context:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    async def __aenter__(self) -> Context:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def __repr__(self) -> str:
        return f"Context(context_id={self.context_id!r}, status={self.status.value})"
