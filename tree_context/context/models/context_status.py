from enum import Enum
from typing import Literal


class ContextStatus(Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


ContextStatusName = Literal[
    'ACTIVE',
    'CANCELLED',
]
