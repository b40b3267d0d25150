"""
Pytest configuration for tree_context tests.

Configures pytest-asyncio markers and shared fixtures.
"""

import asyncio
import tempfile
from collections import defaultdict
from typing import Generator
from unittest.mock import MagicMock

import pytest

from tree_context import Context, Env
from tree_context.context import ContextNode
from tree_context.logging import LoggerStream
from tree_context.logging.config.logging_config import (
    _global_disabled_loggers,
    _global_log_level,
    _global_log_output_type,
)
from tree_context.logging.config import StreamType
from tree_context.logging.models import LogLevel


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def reset_logging_config() -> Generator[None, None, None]:
    """Root contexts built with a config update the shared logging state."""
    yield
    _global_log_level.set(LogLevel.INFO)
    _global_log_output_type.set(StreamType.STDERR)
    _global_disabled_loggers.set(frozenset())


class ProgressTracker:
    """Records how far each named unit of work got."""

    def __init__(self) -> None:
        self.steps: dict[str, int] = defaultdict(int)
        self.started: set[str] = set()
        self.finished: set[str] = set()

    async def work(self, name: str, steps: int = 100, interval: float = 0.001) -> str:
        self.started.add(name)

        for _ in range(steps):
            await asyncio.sleep(interval)
            self.steps[name] += 1

        self.finished.add(name)
        return name

    async def wait_for_steps(self, name: str, steps: int) -> None:
        while self.steps[name] < steps:
            await asyncio.sleep(0.001)


@pytest.fixture
def tracker() -> ProgressTracker:
    return ProgressTracker()


@pytest.fixture
def quiet_env() -> Env:
    return Env(
        TREE_CONTEXT_LOG_LEVEL="error",
        TREE_CONTEXT_LOG_RELEASE_BY_GC=False,
    )


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock(spec=LoggerStream)


@pytest.fixture
def context(quiet_env: Env, mock_logger: MagicMock) -> Generator[Context, None, None]:
    ctx = Context(config=quiet_env, logger=mock_logger)
    yield ctx
    ctx.release()


@pytest.fixture
def node_factory(quiet_env: Env, mock_logger: MagicMock):
    def create_node(prune_cancelled: bool = True) -> ContextNode:
        config = quiet_env.model_copy(
            update={"TREE_CONTEXT_PRUNE_CANCELLED": prune_cancelled},
        )
        return ContextNode(config, mock_logger)

    return create_node


@pytest.fixture
def temp_log_directory() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as temp_directory:
        yield temp_directory
