from __future__ import annotations

import asyncio
from typing import Any, TypeVar

from tree_context.logging.tree_context_logging_models import (
    WorkShortCircuited,
    WorkSpawned,
)

from .bound_work import BoundWork, Work
from .node import ContextNode


T = TypeVar("T")


class TaskBinder:
    """
    Binds units of work to one context node and schedules them on the
    running event loop.

    Work spawned on a node that is already cancelled is never started: it
    resolves through the cancellation branch immediately, and a coroutine
    object passed in is closed without running.
    """

    def __init__(self, node: ContextNode) -> None:
        self._node = node

    def bind(
        self,
        work: Work[T],
        *args: Any,
        **kwargs: Any,
    ) -> BoundWork[T]:
        bound = BoundWork(
            self._node,
            work,
            args=args,
            kwargs=kwargs,
        )

        if self._node.cancelled:
            return self._short_circuit(bound)

        try:
            loop = asyncio.get_running_loop()

        except RuntimeError:
            bound.short_circuit()
            raise

        if not self._node.add_work(bound):
            return self._short_circuit(bound)

        bound.execute(loop)

        self._node.logger.schedule(
            WorkSpawned(
                message=f"Spawned {bound.work}",
                context_id=self._node.context_id,
                run_id=bound.run_id,
                work=bound.work,
            )
        )

        return bound

    def _short_circuit(self, bound: BoundWork[T]) -> BoundWork[T]:
        bound.short_circuit()

        self._node.logger.schedule(
            WorkShortCircuited(
                message=f"Context {self._node.context_id} already cancelled, {bound.work} not started",
                context_id=self._node.context_id,
                run_id=bound.run_id,
                work=bound.work,
            )
        )

        return bound
