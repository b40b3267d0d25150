"""
tree_context - hierarchical cancellation for asyncio.

A tree of contexts: work spawned on a context is cancelled when that
context, or any of its ancestors, is cancelled or released.
"""

from .context import (
    BoundWork as BoundWork,
    Context as Context,
    ContextSnapshot as ContextSnapshot,
    ContextStatus as ContextStatus,
    RunStatus as RunStatus,
    WorkRun as WorkRun,
)
from .env import Env as Env
from .env import load_env as load_env
