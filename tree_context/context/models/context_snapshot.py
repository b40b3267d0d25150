from __future__ import annotations

from collections import deque
from typing import List, Optional

from pydantic import BaseModel, StrictStr

from .context_status import ContextStatus
from .work_run import WorkRun


class ContextSnapshot(BaseModel):
    context_id: StrictStr
    parent_id: Optional[StrictStr] = None
    status: ContextStatus
    children: List[ContextSnapshot] = []
    bound_work: List[WorkRun] = []

    def count_active(self) -> int:
        active = 0
        pending = deque([self])

        while pending:
            snapshot = pending.pop()

            if snapshot.status == ContextStatus.ACTIVE:
                active += 1

            pending.extend(snapshot.children)

        return active


ContextSnapshot.model_rebuild()
