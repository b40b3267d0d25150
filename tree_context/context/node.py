"""
Shared state for one node of a context tree.

A ``ContextNode`` is referenced both by the ``Context`` handle that owns
it and by its parent's children registry, so a parent can cancel a child
whose handle is still alive in caller code.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from typing import TYPE_CHECKING, Deque, Dict

from tree_context.env import Env
from tree_context.logging import LoggerStream

from .models import ContextSnapshot, ContextStatus

if TYPE_CHECKING:
    from .bound_work import BoundWork


class ContextNode:
    """
    Cancellation flag plus the registries of live children and bound work.

    Every mutation happens under one ``threading.Lock``: registrations come
    from handle creation and release, ``spawn`` calls, and task done
    callbacks which may run on any thread. No method blocks on work.
    """

    __slots__ = (
        "context_id",
        "parent_id",
        "config",
        "logger",
        "_parent",
        "_lock",
        "_cancelled",
        "_children",
        "_bound_work",
    )

    def __init__(
        self,
        config: Env,
        logger: LoggerStream,
        parent: ContextNode | None = None,
        cancelled: bool = False,
    ) -> None:
        self.context_id = uuid.uuid4().hex
        self.parent_id = parent.context_id if parent else None
        self.config = config
        self.logger = logger

        self._parent = parent
        self._lock = threading.Lock()
        self._cancelled = cancelled
        self._children: Dict[str, ContextNode] = {}
        self._bound_work: Dict[str, BoundWork] = {}

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def status(self) -> ContextStatus:
        if self._cancelled:
            return ContextStatus.CANCELLED

        return ContextStatus.ACTIVE

    @property
    def children(self) -> list[ContextNode]:
        with self._lock:
            return list(self._children.values())

    @property
    def bound_work(self) -> list[BoundWork]:
        with self._lock:
            return list(self._bound_work.values())

    def derive(self) -> ContextNode:
        """
        Create a child node. The child starts cancelled if this node is
        already cancelled, and is only registered here otherwise.
        """
        with self._lock:
            child = ContextNode(
                self.config,
                self.logger,
                parent=self,
                cancelled=self._cancelled,
            )

            if not self._cancelled:
                self._children[child.context_id] = child

        return child

    def remove_child(self, child: ContextNode):
        with self._lock:
            self._children.pop(child.context_id, None)

    def add_work(self, work: BoundWork) -> bool:
        with self._lock:
            if self._cancelled:
                return False

            self._bound_work[work.run_id] = work
            return True

    def remove_work(self, work: BoundWork):
        with self._lock:
            self._bound_work.pop(work.run_id, None)

    def mark_cancelled(self) -> tuple[list[BoundWork], list[ContextNode]] | None:
        """
        Flip the flag and hand back the registries as they were at that
        moment, emptied. Returns None if the node was already cancelled.
        """
        with self._lock:
            if self._cancelled:
                return None

            self._cancelled = True

            bound_work = list(self._bound_work.values())
            children = list(self._children.values())

            self._bound_work.clear()
            self._children.clear()

        return bound_work, children

    def detach(self):
        """Unlink this node from its parent's children registry."""
        parent = self._parent
        self._parent = None

        if parent is not None:
            parent.remove_child(self)

    def snapshot(self, max_depth: int | None = None) -> ContextSnapshot:
        """
        Capture this node and its live descendants as a ``ContextSnapshot``.

        The tree is walked with an explicit stack and the models are built
        leaves first, so depth is not limited by the recursion limit.
        Nodes more than ``max_depth`` levels below this one are left out.
        Serializing a very deep snapshot with pydantic (``model_dump_json``)
        recurses once per level, so pass ``max_depth`` when the result
        will be dumped.
        """
        pending: Deque[tuple[ContextNode, int]] = deque([(self, 0)])
        visited: list[tuple[ContextNode, list[ContextNode]]] = []

        while pending:
            node, depth = pending.pop()

            children: list[ContextNode] = []
            if max_depth is None or depth < max_depth:
                children = node.children

            visited.append((node, children))
            pending.extend((child, depth + 1) for child in children)

        snapshots: Dict[str, ContextSnapshot] = {}

        for node, children in reversed(visited):
            snapshots[node.context_id] = ContextSnapshot(
                context_id=node.context_id,
                parent_id=node.parent_id,
                status=node.status,
                children=[snapshots.pop(child.context_id) for child in children],
                bound_work=[work.to_run() for work in node.bound_work],
            )

        return snapshots[self.context_id]

    def __repr__(self) -> str:
        return (
            f"ContextNode(context_id={self.context_id!r}, "
            f"status={self.status.value}, children={len(self._children)}, "
            f"bound_work={len(self._bound_work)})"
        )
