from .models import Entry, LogLevel


class ContextCreated(Entry, kw_only=True):
    context_id: str
    parent_id: str | None = None
    cancelled: bool = False
    level: LogLevel = LogLevel.TRACE


class ContextCancelled(Entry, kw_only=True):
    context_id: str
    cancelled_children: int
    cancelled_work: int
    level: LogLevel = LogLevel.DEBUG


class ContextReleased(Entry, kw_only=True):
    context_id: str
    level: LogLevel = LogLevel.DEBUG


class ContextCollected(Entry, kw_only=True):
    context_id: str
    level: LogLevel = LogLevel.WARN


class WorkSpawned(Entry, kw_only=True):
    context_id: str
    run_id: str
    work: str
    level: LogLevel = LogLevel.TRACE


class WorkShortCircuited(Entry, kw_only=True):
    context_id: str
    run_id: str
    work: str
    level: LogLevel = LogLevel.DEBUG


class WorkCompleted(Entry, kw_only=True):
    context_id: str
    run_id: str
    work: str
    elapsed: float
    level: LogLevel = LogLevel.TRACE


class WorkCancelled(Entry, kw_only=True):
    context_id: str
    run_id: str
    work: str
    elapsed: float
    level: LogLevel = LogLevel.DEBUG


class WorkFailed(Entry, kw_only=True):
    context_id: str
    run_id: str
    work: str
    error: str
    elapsed: float
    level: LogLevel = LogLevel.ERROR
