"""
Domain enums for workflow error reporting.

Every failure the engine can report is identified by an ErrorKind. Kinds
are grouped into categories so the transport layer and the logs can treat
business errors and internal-consistency failures differently.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """
    Category of a workflow error.

    - VALIDATION: A proposed definition is structurally invalid
    - LOOKUP: A referenced definition, instance or action does not exist
    - TRANSITION: The action is not applicable to the instance's current state
    - INVARIANT: Stored data violates a guarantee established at creation time
    """
    VALIDATION = "validation"
    LOOKUP = "lookup"
    TRANSITION = "transition"
    INVARIANT = "invariant"


class ErrorKind(str, Enum):
    """Identifies a single failure reported by the engine."""

    # Definition validation
    EMPTY_NAME = "empty_name"
    NO_STATES = "no_states"
    DUPLICATE_STATE_IDS = "duplicate_state_ids"
    INVALID_INITIAL_STATE_COUNT = "invalid_initial_state_count"
    DUPLICATE_ACTION_IDS = "duplicate_action_ids"
    UNKNOWN_TARGET_STATE = "unknown_target_state"
    UNKNOWN_SOURCE_STATE = "unknown_source_state"
    EMPTY_FROM_STATES = "empty_from_states"

    # Lookups
    DEFINITION_NOT_FOUND = "definition_not_found"
    INSTANCE_NOT_FOUND = "instance_not_found"
    ACTION_NOT_FOUND = "action_not_found"

    # Transition rules
    ACTION_DISABLED = "action_disabled"
    TERMINAL_STATE = "terminal_state"
    INVALID_SOURCE_STATE = "invalid_source_state"

    # Internal consistency
    NO_INITIAL_STATE = "no_initial_state"
    CURRENT_STATE_NOT_FOUND = "current_state_not_found"
    TARGET_STATE_NOT_FOUND = "target_state_not_found"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES = {
    ErrorKind.EMPTY_NAME: ErrorCategory.VALIDATION,
    ErrorKind.NO_STATES: ErrorCategory.VALIDATION,
    ErrorKind.DUPLICATE_STATE_IDS: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_INITIAL_STATE_COUNT: ErrorCategory.VALIDATION,
    ErrorKind.DUPLICATE_ACTION_IDS: ErrorCategory.VALIDATION,
    ErrorKind.UNKNOWN_TARGET_STATE: ErrorCategory.VALIDATION,
    ErrorKind.UNKNOWN_SOURCE_STATE: ErrorCategory.VALIDATION,
    ErrorKind.EMPTY_FROM_STATES: ErrorCategory.VALIDATION,
    ErrorKind.DEFINITION_NOT_FOUND: ErrorCategory.LOOKUP,
    ErrorKind.INSTANCE_NOT_FOUND: ErrorCategory.LOOKUP,
    ErrorKind.ACTION_NOT_FOUND: ErrorCategory.LOOKUP,
    ErrorKind.ACTION_DISABLED: ErrorCategory.TRANSITION,
    ErrorKind.TERMINAL_STATE: ErrorCategory.TRANSITION,
    ErrorKind.INVALID_SOURCE_STATE: ErrorCategory.TRANSITION,
    ErrorKind.NO_INITIAL_STATE: ErrorCategory.INVARIANT,
    ErrorKind.CURRENT_STATE_NOT_FOUND: ErrorCategory.INVARIANT,
    ErrorKind.TARGET_STATE_NOT_FOUND: ErrorCategory.INVARIANT,
}
