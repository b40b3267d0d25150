from __future__ import annotations

from collections import deque
from typing import Deque

from tree_context.logging.tree_context_logging_models import ContextCancelled

from .node import ContextNode


def propagate(node: ContextNode) -> bool:
    """
    Cancel ``node``, every unit of work bound to it and, transitively,
    every descendant node and its bound work.

    Only arms cancellation: bound work stops at its next suspension point
    and this call never waits for it. Safe to call concurrently and more
    than once; only the first call for a given node has any effect.

    Descendants are walked with an explicit stack so tree depth is not
    bounded by the interpreter's recursion limit.

    Returns:
        True if this call performed the cancellation of ``node``.
    """
    pending: Deque[ContextNode] = deque([node])
    cancelled_root = False

    while pending:
        current = pending.pop()

        registries = current.mark_cancelled()
        if registries is None:
            continue

        bound_work, children = registries

        for work in bound_work:
            work.cancel()

        pending.extend(children)

        if current is node:
            cancelled_root = True

        if current.config.TREE_CONTEXT_PRUNE_CANCELLED:
            current.detach()

        current.logger.schedule(
            ContextCancelled(
                message=f"Context {current.context_id} cancelled",
                context_id=current.context_id,
                cancelled_children=len(children),
                cancelled_work=len(bound_work),
            )
        )

    return cancelled_root
