"""
Unit tests for the in-memory workflow store.
"""

import threading

import pytest

from flowstate.domain import (
    ErrorKind, Result, State, WorkflowDefinition, WorkflowInstance
)
from flowstate.persistence import InMemoryWorkflowStore


@pytest.fixture
def definition():
    return WorkflowDefinition(
        id="def-1", name="wf", states=(State(id="a", is_initial=True),), actions=()
    )


@pytest.fixture
def instance():
    return WorkflowInstance(id="inst-1", definition_id="def-1", current_state_id="a")


class TestInMemoryWorkflowStore:
    """Tests for InMemoryWorkflowStore."""

    def test_add_and_get_definition(self, store, definition):
        store.add_definition(definition)

        assert store.get_definition("def-1") is definition
        assert store.get_definition("missing") is None
        assert store.list_definitions() == [definition]

    def test_duplicate_definition_id_rejected(self, store, definition):
        store.add_definition(definition)

        with pytest.raises(ValueError, match="already exists"):
            store.add_definition(definition)

    def test_add_and_get_instance(self, store, instance):
        store.add_instance(instance)

        assert store.get_instance("inst-1") is instance
        assert store.list_instances() == [instance]

    def test_update_instance_persists_ok_result(self, store, instance):
        store.add_instance(instance)
        moved = WorkflowInstance(id="inst-1", definition_id="def-1", current_state_id="b")

        result = store.update_instance("inst-1", lambda current, definition: Result.ok(moved))

        assert result.value is moved
        assert store.get_instance("inst-1") is moved

    def test_update_instance_discards_failed_result(self, store, instance):
        store.add_instance(instance)

        result = store.update_instance(
            "inst-1",
            lambda current, definition: Result.fail(ErrorKind.ACTION_DISABLED, "disabled"),
        )

        assert not result.is_ok
        assert store.get_instance("inst-1") is instance

    def test_update_missing_instance_passes_none(self, store):
        seen = []

        def transition(current, definition):
            seen.append((current, definition))
            return Result.fail(ErrorKind.INSTANCE_NOT_FOUND, "not found")

        store.update_instance("missing", transition)

        assert seen == [(None, None)]
        assert store.get_instance("missing") is None

    def test_update_instance_passes_definition(self, store, definition, instance):
        store.add_definition(definition)
        store.add_instance(instance)
        seen = []

        def transition(current, found):
            seen.append((current, found))
            return Result.ok(current)

        store.update_instance("inst-1", transition)

        assert seen == [(instance, definition)]

    def test_update_instance_holds_lock(self, store, instance):
        """Test that a second update waits for the first to finish."""
        store.add_instance(instance)
        inside = threading.Event()
        release = threading.Event()
        order = []

        def slow(current, definition):
            inside.set()
            release.wait(timeout=5)
            order.append("slow")
            return Result.ok(current)

        def fast(current, definition):
            order.append("fast")
            return Result.ok(current)

        worker = threading.Thread(target=store.update_instance, args=("inst-1", slow))
        worker.start()
        inside.wait(timeout=5)

        waiter = threading.Thread(target=store.update_instance, args=("inst-1", fast))
        waiter.start()
        waiter.join(timeout=0.2)
        assert order == []

        release.set()
        worker.join()
        waiter.join()
        assert order == ["slow", "fast"]

    def test_readers_not_blocked_by_update(self, store, instance):
        """Test that lookups return the last committed snapshot mid-update."""
        store.add_instance(instance)
        inside = threading.Event()
        release = threading.Event()

        def slow(current, definition):
            inside.set()
            release.wait(timeout=5)
            return Result.ok(current)

        worker = threading.Thread(target=store.update_instance, args=("inst-1", slow))
        worker.start()
        inside.wait(timeout=5)

        assert store.get_instance("inst-1") is instance

        release.set()
        worker.join()

    def test_health_check(self, store):
        assert store.health_check() is True
