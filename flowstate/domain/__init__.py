# Domain models
from .enums import ErrorCategory, ErrorKind
from .entities import (
    State, Action, WorkflowDefinition, WorkflowInstance, ActionHistoryEntry
)
from .results import Result, WorkflowError, WorkflowEngineError
from .state_machine import ActionStateMachine
from .validation import build_definition

__all__ = [
    "ErrorCategory",
    "ErrorKind",
    "State",
    "Action",
    "WorkflowDefinition",
    "WorkflowInstance",
    "ActionHistoryEntry",
    "Result",
    "WorkflowError",
    "WorkflowEngineError",
    "ActionStateMachine",
    "build_definition",
]
