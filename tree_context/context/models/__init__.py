from .context_snapshot import ContextSnapshot as ContextSnapshot
from .context_status import ContextStatus as ContextStatus
from .context_status import ContextStatusName as ContextStatusName
from .run_status import RunStatus as RunStatus
from .run_status import RunStatusName as RunStatusName
from .work_run import WorkRun as WorkRun
