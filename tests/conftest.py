"""
Test configuration and fixtures.

Provides common fixtures for unit and integration tests.
"""

import itertools
import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment before importing app modules
os.environ["FLASK_ENV"] = "testing"
os.environ["STORE_BACKEND"] = "memory"

from flowstate.domain import Action, State  # noqa: E402
from flowstate.persistence import InMemoryWorkflowStore  # noqa: E402
from flowstate.services import WorkflowService  # noqa: E402


FIXED_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = FIXED_START):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def id_factory():
    """Sequential ids: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def store():
    return InMemoryWorkflowStore()


@pytest.fixture
def service(store, id_factory, clock):
    """WorkflowService over an in-memory store with fixed ids and times."""
    return WorkflowService(store, id_factory=id_factory, clock=clock)


@pytest.fixture
def publishing_states():
    """Draft -> published, the smallest useful workflow."""
    return [
        State(id="draft", name="Draft", is_initial=True),
        State(id="published", name="Published", is_final=True),
    ]


@pytest.fixture
def publishing_actions():
    return [
        Action(id="publish", name="Publish", from_states=("draft",), to_state="published"),
    ]


@pytest.fixture
def review_states():
    """A review workflow where approve and reject compete from draft."""
    return [
        State(id="draft", name="Draft", is_initial=True),
        State(id="approved", name="Approved"),
        State(id="rejected", name="Rejected"),
        State(id="archived", name="Archived", is_final=True),
    ]


@pytest.fixture
def review_actions():
    return [
        Action(id="approve", name="Approve", from_states=("draft",), to_state="approved"),
        Action(id="reject", name="Reject", from_states=("draft",), to_state="rejected"),
        Action(id="revise", name="Revise", from_states=("rejected",), to_state="draft"),
        Action(
            id="archive",
            name="Archive",
            from_states=("approved", "rejected", "archived"),
            to_state="archived",
        ),
        Action(
            id="escalate",
            name="Escalate",
            from_states=("draft",),
            to_state="approved",
            enabled=False,
        ),
    ]


@pytest.fixture
def review_definition(service, review_states, review_actions):
    return service.create_definition("review", review_states, review_actions).unwrap()


@pytest.fixture
def sample_definition_payload():
    """Request body for POST /api/workflows."""
    return {
        "name": "Blog post",
        "states": [
            {"id": "draft", "name": "Draft", "isInitial": True},
            {"id": "published", "name": "Published", "isFinal": True},
        ],
        "actions": [
            {
                "id": "publish",
                "name": "Publish",
                "enabled": True,
                "fromStates": ["draft"],
                "toState": "published",
            },
        ],
    }


@pytest.fixture
def app(service):
    """Create Flask test application."""
    from flowstate.api.app import create_app
    from flowstate.config import TestConfig

    app = create_app(TestConfig(), service=service)
    app.config["TESTING"] = True
    yield app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
