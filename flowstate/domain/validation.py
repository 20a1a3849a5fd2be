"""
Structural validation of workflow definitions.

A definition is validated exactly once, before it is stored. Rules are
checked in a fixed order and the first violation is reported, so the
error for a given input is always the same.

State enabled flags and final states are not inspected here: a definition
may contain a disabled action or an unreachable final state.
"""

from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from .entities import Action, State, WorkflowDefinition, state_ids
from .enums import ErrorKind
from .results import Result, WorkflowError


def _duplicates(ids: Sequence[str]) -> List[str]:
    """Ids occurring more than once, in first-seen order."""
    counts = Counter(ids)
    return [i for i in counts if counts[i] > 1]


def find_violation(
    name: str,
    states: Sequence[State],
    actions: Sequence[Action],
) -> Optional[WorkflowError]:
    """Return the first violated rule, or None if the definition is valid."""
    if not name or not name.strip():
        return WorkflowError(ErrorKind.EMPTY_NAME, "Workflow name cannot be empty")

    if not states:
        return WorkflowError(ErrorKind.NO_STATES, "Workflow must have at least one state")

    known_states = state_ids(states)
    duplicates = _duplicates(known_states)
    if duplicates:
        return WorkflowError(
            ErrorKind.DUPLICATE_STATE_IDS,
            "Duplicate state IDs found",
            {"duplicates": duplicates},
        )

    initial_count = sum(1 for s in states if s.is_initial)
    if initial_count != 1:
        return WorkflowError(
            ErrorKind.INVALID_INITIAL_STATE_COUNT,
            f"Workflow must have exactly one initial state, found {initial_count}",
            {"count": initial_count},
        )

    duplicates = _duplicates([a.id for a in actions])
    if duplicates:
        return WorkflowError(
            ErrorKind.DUPLICATE_ACTION_IDS,
            "Duplicate action IDs found",
            {"duplicates": duplicates},
        )

    known = set(known_states)
    for action in actions:
        if action.to_state not in known:
            return WorkflowError(
                ErrorKind.UNKNOWN_TARGET_STATE,
                f"Action '{action.id}' references unknown target state '{action.to_state}'",
                {"action_id": action.id, "state_id": action.to_state},
            )

        for from_state in action.from_states:
            if from_state not in known:
                return WorkflowError(
                    ErrorKind.UNKNOWN_SOURCE_STATE,
                    f"Action '{action.id}' references unknown source state '{from_state}'",
                    {"action_id": action.id, "state_id": from_state},
                )

        if not action.from_states:
            return WorkflowError(
                ErrorKind.EMPTY_FROM_STATES,
                f"Action '{action.id}' must have at least one source state",
                {"action_id": action.id},
            )

    return None


def build_definition(
    name: str,
    states: Sequence[State],
    actions: Sequence[Action],
    definition_id: str,
    created_at: datetime,
) -> Result[WorkflowDefinition]:
    """Validate the parts and assemble an immutable definition."""
    violation = find_violation(name, states, actions)
    if violation is not None:
        return Result(error=violation)

    return Result.ok(WorkflowDefinition(
        id=definition_id,
        name=name,
        states=tuple(states),
        actions=tuple(actions),
        created_at=created_at,
    ))
