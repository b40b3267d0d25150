from __future__ import annotations

from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictBool, StrictStr

from tree_context.logging import LogLevelName

PrimaryType = Union[str, int, float, bytes, bool]


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    TREE_CONTEXT_LOG_LEVEL: LogLevelName = "info"
    TREE_CONTEXT_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"
    # Written from a background thread when logged on an event loop thread.
    TREE_CONTEXT_LOG_PATH: StrictStr | None = None
    TREE_CONTEXT_PRUNE_CANCELLED: StrictBool = True
    TREE_CONTEXT_LOG_RELEASE_BY_GC: StrictBool = False

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "TREE_CONTEXT_LOG_LEVEL": str.lower,
            "TREE_CONTEXT_LOG_OUTPUT": str.lower,
            "TREE_CONTEXT_LOG_PATH": str,
            "TREE_CONTEXT_PRUNE_CANCELLED": parse_bool,
            "TREE_CONTEXT_LOG_RELEASE_BY_GC": parse_bool,
        }
