from enum import Enum
from typing import Literal


class RunStatus(Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


RunStatusName = Literal[
    'CREATED',
    'PENDING',
    'RUNNING',
    'COMPLETE',
    'CANCELLED',
    'FAILED',
]
