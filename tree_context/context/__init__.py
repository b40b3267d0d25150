from .binder import TaskBinder as TaskBinder
from .bound_work import BoundWork as BoundWork
from .bound_work import Work as Work
from .context import Context as Context
from .models import (
    ContextSnapshot as ContextSnapshot,
    ContextStatus as ContextStatus,
    RunStatus as RunStatus,
    WorkRun as WorkRun,
)
from .node import ContextNode as ContextNode
from .propagator import propagate as propagate
