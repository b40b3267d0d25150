"""
Tests for ContextNode shared state.

Covers:
- Happy path: registering children and bound work
- Cancellation flag: monotonic test-and-set, registries handed back once
- Edge cases: deriving from and binding to a cancelled node
- Concurrency: racing cancellations from many threads
- Snapshots
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from tree_context.context.models import ContextSnapshot, ContextStatus


def make_work(run_id: str) -> MagicMock:
    work = MagicMock()
    work.run_id = run_id
    return work


class TestContextNodeInitialization:
    """Test ContextNode initialization."""

    def test_new_node_is_active_and_empty(self, node_factory) -> None:
        """A fresh node has no parent, no children and no bound work."""
        node = node_factory()

        assert node.cancelled is False
        assert node.status == ContextStatus.ACTIVE
        assert node.parent_id is None
        assert node.children == []
        assert node.bound_work == []

    def test_nodes_have_distinct_identities(self, node_factory) -> None:
        first = node_factory()
        second = node_factory()

        assert first.context_id != second.context_id


class TestContextNodeChildren:
    """Test child derivation and removal."""

    def test_derive_registers_child(self, node_factory) -> None:
        """Deriving links the child into the parent's registry."""
        parent = node_factory()

        child = parent.derive()

        assert child.parent_id == parent.context_id
        assert child.cancelled is False
        assert parent.children == [child]

    def test_derive_shares_config_and_logger(self, node_factory) -> None:
        parent = node_factory()

        child = parent.derive()

        assert child.config is parent.config
        assert child.logger is parent.logger

    def test_derive_from_cancelled_node(self, node_factory) -> None:
        """A child of a cancelled node starts cancelled and is not registered."""
        parent = node_factory()
        parent.mark_cancelled()

        child = parent.derive()

        assert child.cancelled is True
        assert child.status == ContextStatus.CANCELLED
        assert parent.children == []

    def test_remove_child(self, node_factory) -> None:
        parent = node_factory()
        child = parent.derive()

        parent.remove_child(child)

        assert parent.children == []

    def test_remove_unknown_child_is_noop(self, node_factory) -> None:
        parent = node_factory()
        stranger = node_factory()

        parent.remove_child(stranger)

        assert parent.children == []

    def test_detach_unlinks_from_parent(self, node_factory) -> None:
        """Detaching removes the node from its parent and drops the link."""
        parent = node_factory()
        child = parent.derive()
        sibling = parent.derive()

        child.detach()
        child.detach()

        assert parent.children == [sibling]

    def test_detach_root_is_noop(self, node_factory) -> None:
        root = node_factory()

        root.detach()

        assert root.cancelled is False


class TestContextNodeBoundWork:
    """Test bound work registration."""

    def test_add_and_remove_work(self, node_factory) -> None:
        node = node_factory()
        work = make_work("run-1")

        assert node.add_work(work) is True
        assert node.bound_work == [work]

        node.remove_work(work)

        assert node.bound_work == []

    def test_add_work_to_cancelled_node(self, node_factory) -> None:
        """Binding to a cancelled node is refused."""
        node = node_factory()
        node.mark_cancelled()

        assert node.add_work(make_work("run-1")) is False
        assert node.bound_work == []

    def test_remove_work_twice(self, node_factory) -> None:
        node = node_factory()
        work = make_work("run-1")
        node.add_work(work)

        node.remove_work(work)
        node.remove_work(work)

        assert node.bound_work == []


class TestContextNodeMarkCancelled:
    """Test the cancellation test-and-set."""

    def test_mark_cancelled_returns_registries(self, node_factory) -> None:
        """The first call hands back everything registered and empties the node."""
        node = node_factory()
        child = node.derive()
        work = make_work("run-1")
        node.add_work(work)

        registries = node.mark_cancelled()

        assert registries is not None
        bound_work, children = registries
        assert bound_work == [work]
        assert children == [child]
        assert node.cancelled is True
        assert node.children == []
        assert node.bound_work == []

    def test_mark_cancelled_is_one_shot(self, node_factory) -> None:
        """Later calls report that the node was already cancelled."""
        node = node_factory()

        assert node.mark_cancelled() is not None
        assert node.mark_cancelled() is None
        assert node.cancelled is True

    def test_mark_cancelled_does_not_touch_children_flags(self, node_factory) -> None:
        """Flipping the flag alone does not cascade; that is the propagator's job."""
        node = node_factory()
        child = node.derive()

        node.mark_cancelled()

        assert child.cancelled is False

    def test_concurrent_mark_cancelled_single_winner(self, node_factory) -> None:
        """Exactly one of many racing threads wins the transition."""
        node = node_factory()
        for index in range(10):
            node.add_work(make_work(f"run-{index}"))

        thread_count = 16
        barrier = threading.Barrier(thread_count)

        def race():
            barrier.wait()
            return node.mark_cancelled()

        with ThreadPoolExecutor(max_workers=thread_count) as executor:
            results = list(executor.map(lambda _: race(), range(thread_count)))

        winners = [result for result in results if result is not None]

        assert len(winners) == 1
        assert len(winners[0][0]) == 10


class TestContextNodeSnapshot:
    """Test snapshots of the tree."""

    def test_snapshot_structure(self, node_factory) -> None:
        root = node_factory()
        child = root.derive()
        child.derive()

        snapshot = root.snapshot()

        assert isinstance(snapshot, ContextSnapshot)
        assert snapshot.context_id == root.context_id
        assert snapshot.status == ContextStatus.ACTIVE
        assert len(snapshot.children) == 1
        assert snapshot.children[0].parent_id == root.context_id
        assert len(snapshot.children[0].children) == 1
        assert snapshot.count_active() == 3

    def test_snapshot_of_cancelled_node(self, node_factory) -> None:
        root = node_factory()
        root.derive()
        root.mark_cancelled()

        snapshot = root.snapshot()

        assert snapshot.status == ContextStatus.CANCELLED
        assert snapshot.children == []
        assert snapshot.count_active() == 0
