"""
State machine for workflow instance transitions.

Decides whether an action may fire on an instance and, if it may, produces
the advanced instance. This is the only place that reads a definition's
states and actions to make a transition decision.
"""

from datetime import datetime
from typing import List, Tuple

from .entities import (
    Action, ActionHistoryEntry, State, WorkflowDefinition, WorkflowInstance
)
from .enums import ErrorKind
from .results import Result


class ActionStateMachine:
    """
    Transition rules for user-defined workflows.

    Checks, in order (the first failure is reported):
    - the action exists on the definition
    - the instance's current state exists on the definition
    - the action is enabled
    - the current state is not final
    - the current state is one of the action's source states
    - the action's target state exists on the definition

    A state's own enabled flag does not take part in the decision. Only
    the action's enabled flag gates execution.
    """

    @classmethod
    def evaluate(
        cls,
        definition: WorkflowDefinition,
        instance: WorkflowInstance,
        action_id: str,
    ) -> Result[Tuple[Action, State]]:
        """Check whether the action is admissible for the instance."""
        action = definition.find_action(action_id)
        if action is None:
            return Result.fail(
                ErrorKind.ACTION_NOT_FOUND,
                f"Action '{action_id}' not found in workflow definition",
                action_id=action_id,
            )

        current = definition.find_state(instance.current_state_id)
        if current is None:
            return Result.fail(
                ErrorKind.CURRENT_STATE_NOT_FOUND,
                f"Current state '{instance.current_state_id}' not found in workflow definition",
                state_id=instance.current_state_id,
            )

        if not action.enabled:
            return Result.fail(
                ErrorKind.ACTION_DISABLED,
                f"Action '{action_id}' is disabled",
                action_id=action_id,
            )

        if current.is_final:
            return Result.fail(
                ErrorKind.TERMINAL_STATE,
                f"Cannot execute actions on final state '{current.id}'",
                state_id=current.id,
            )

        if current.id not in action.from_states:
            return Result.fail(
                ErrorKind.INVALID_SOURCE_STATE,
                f"Action '{action_id}' cannot be executed from current state '{current.id}'",
                action_id=action_id,
                state_id=current.id,
            )

        target = definition.find_state(action.to_state)
        if target is None:
            return Result.fail(
                ErrorKind.TARGET_STATE_NOT_FOUND,
                f"Target state '{action.to_state}' not found in workflow definition",
                action_id=action_id,
                state_id=action.to_state,
            )

        return Result.ok((action, target))

    @classmethod
    def fire(
        cls,
        definition: WorkflowDefinition,
        instance: WorkflowInstance,
        action_id: str,
        executed_at: datetime,
    ) -> Result[WorkflowInstance]:
        """
        Perform a transition.

        Returns the advanced instance if the action is admissible; the
        original instance is left untouched either way.
        """
        checked = cls.evaluate(definition, instance, action_id)
        if not checked.is_ok:
            return Result(error=checked.error)

        action, target = checked.value
        entry = ActionHistoryEntry(
            action_id=action.id,
            action_name=action.name,
            from_state=instance.current_state_id,
            to_state=target.id,
            executed_at=executed_at,
        )
        return Result.ok(instance.advance(entry, executed_at))

    @classmethod
    def is_terminal(cls, definition: WorkflowDefinition, state_id: str) -> bool:
        """Check if no action can fire from a state."""
        state = definition.find_state(state_id)
        return state is not None and state.is_final

    @classmethod
    def available_actions(
        cls,
        definition: WorkflowDefinition,
        state_id: str,
    ) -> List[Action]:
        """Get all actions that would be admitted from a given state."""
        if definition.find_state(state_id) is None or cls.is_terminal(definition, state_id):
            return []
        return [
            a for a in definition.actions
            if a.enabled
            and state_id in a.from_states
            and definition.find_state(a.to_state) is not None
        ]
