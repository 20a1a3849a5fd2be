"""
Unit tests for definition validation.
"""

from datetime import datetime, timezone

import pytest

from flowstate.domain import Action, ErrorCategory, ErrorKind, State
from flowstate.domain.validation import build_definition, find_violation

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build(name, states, actions):
    return build_definition(name, states, actions, definition_id="def-1", created_at=CREATED)


class TestBuildDefinition:
    """Tests for build_definition."""

    def test_valid_definition(self, publishing_states, publishing_actions):
        result = build("Blog post", publishing_states, publishing_actions)

        assert result.is_ok
        definition = result.value
        assert definition.id == "def-1"
        assert definition.name == "Blog post"
        assert definition.created_at == CREATED
        assert [s.id for s in definition.states] == ["draft", "published"]
        assert [a.id for a in definition.actions] == ["publish"]

    def test_definition_owns_copies(self, publishing_states, publishing_actions):
        """Test that later edits to the input lists do not leak in."""
        definition = build("Blog post", publishing_states, publishing_actions).value
        publishing_states.append(State(id="extra"))

        assert len(definition.states) == 2

    def test_actions_may_be_empty(self):
        result = build("single", [State(id="only", is_initial=True)], [])

        assert result.is_ok

    def test_disabled_action_and_unreachable_final_state_allowed(self):
        """Test that enabled and final flags are not checked at definition time."""
        states = [
            State(id="a", is_initial=True),
            State(id="b"),
            State(id="done", is_final=True, enabled=False),
        ]
        actions = [Action(id="go", from_states=("a",), to_state="b", enabled=False)]

        assert build("lenient", states, actions).is_ok


class TestValidationRules:
    """Each rule, in the order it is checked."""

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_empty_name(self, name, publishing_states, publishing_actions):
        result = build(name, publishing_states, publishing_actions)

        assert result.error.kind == ErrorKind.EMPTY_NAME
        assert result.error.category == ErrorCategory.VALIDATION
        assert result.error.message == "Workflow name cannot be empty"

    def test_no_states(self):
        result = build("wf", [], [])

        assert result.error.kind == ErrorKind.NO_STATES

    def test_duplicate_state_ids(self):
        states = [
            State(id="a", is_initial=True),
            State(id="b"),
            State(id="a"),
        ]

        result = build("wf", states, [])

        assert result.error.kind == ErrorKind.DUPLICATE_STATE_IDS
        assert result.error.details["duplicates"] == ["a"]

    def test_two_initial_states(self):
        states = [State(id="a", is_initial=True), State(id="b", is_initial=True)]

        result = build("wf", states, [])

        assert result.error.kind == ErrorKind.INVALID_INITIAL_STATE_COUNT
        assert result.error.details["count"] == 2
        assert "found 2" in result.error.message

    def test_zero_initial_states(self):
        states = [State(id="a"), State(id="b")]

        result = build("wf", states, [])

        assert result.error.kind == ErrorKind.INVALID_INITIAL_STATE_COUNT
        assert result.error.details["count"] == 0

    def test_duplicate_action_ids(self, publishing_states):
        actions = [
            Action(id="publish", from_states=("draft",), to_state="published"),
            Action(id="publish", from_states=("draft",), to_state="draft"),
        ]

        result = build("wf", publishing_states, actions)

        assert result.error.kind == ErrorKind.DUPLICATE_ACTION_IDS
        assert result.error.details["duplicates"] == ["publish"]

    def test_unknown_target_state(self, publishing_states):
        actions = [Action(id="publish", from_states=("draft",), to_state="live")]

        result = build("wf", publishing_states, actions)

        assert result.error.kind == ErrorKind.UNKNOWN_TARGET_STATE
        assert result.error.details == {"action_id": "publish", "state_id": "live"}

    def test_unknown_source_state(self, publishing_states):
        actions = [Action(id="publish", from_states=("draft", "review"), to_state="published")]

        result = build("wf", publishing_states, actions)

        assert result.error.kind == ErrorKind.UNKNOWN_SOURCE_STATE
        assert result.error.details == {"action_id": "publish", "state_id": "review"}

    def test_empty_from_states(self, publishing_states):
        actions = [Action(id="publish", from_states=(), to_state="published")]

        result = build("wf", publishing_states, actions)

        assert result.error.kind == ErrorKind.EMPTY_FROM_STATES
        assert result.error.details == {"action_id": "publish"}


class TestValidationOrder:
    """The first violated rule wins."""

    def test_name_checked_before_states(self):
        assert find_violation("", [], []).kind == ErrorKind.EMPTY_NAME

    def test_duplicate_states_before_initial_count(self):
        states = [State(id="a"), State(id="a")]

        assert find_violation("wf", states, []).kind == ErrorKind.DUPLICATE_STATE_IDS

    def test_initial_count_before_duplicate_actions(self):
        states = [State(id="a")]
        actions = [
            Action(id="x", from_states=("a",), to_state="a"),
            Action(id="x", from_states=("a",), to_state="a"),
        ]

        assert find_violation("wf", states, actions).kind == ErrorKind.INVALID_INITIAL_STATE_COUNT

    def test_target_checked_before_sources(self):
        states = [State(id="a", is_initial=True)]
        actions = [Action(id="x", from_states=("nowhere",), to_state="missing")]

        assert find_violation("wf", states, actions).kind == ErrorKind.UNKNOWN_TARGET_STATE

    def test_target_checked_before_empty_sources(self):
        states = [State(id="a", is_initial=True)]
        actions = [Action(id="x", from_states=(), to_state="missing")]

        assert find_violation("wf", states, actions).kind == ErrorKind.UNKNOWN_TARGET_STATE

    def test_actions_checked_in_order(self):
        """Test that an earlier action's violation is reported first."""
        states = [State(id="a", is_initial=True)]
        actions = [
            Action(id="first", from_states=(), to_state="a"),
            Action(id="second", from_states=("a",), to_state="missing"),
        ]

        violation = find_violation("wf", states, actions)

        assert violation.kind == ErrorKind.EMPTY_FROM_STATES
        assert violation.details["action_id"] == "first"
