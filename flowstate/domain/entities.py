"""
Domain entities for workflow definitions and instances.

These are the core domain objects: the states and actions that make up a
definition, the definition itself, and the runtime instances executed
against it. They are independent of any persistence mechanism.

All entities are frozen. An instance advances by producing a new snapshot,
so a reader holding an instance never sees a half-applied transition.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class State:
    """
    A named node in a workflow graph.

    The enabled flag is informational only: it does not gate transitions.
    """
    id: str
    name: str = ""
    is_initial: bool = False
    is_final: bool = False
    enabled: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class Action:
    """
    A directed transition rule.

    The action may fire from any state listed in from_states and always
    moves the instance to to_state.
    """
    id: str
    name: str = ""
    from_states: Tuple[str, ...] = ()
    to_state: str = ""
    enabled: bool = True
    description: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of ids, store a tuple
        object.__setattr__(self, "from_states", tuple(self.from_states))


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    An immutable workflow template.

    Built only through validation, so it always has exactly one initial
    state and every action references known states.
    """
    id: str
    name: str
    states: Tuple[State, ...]
    actions: Tuple[Action, ...]
    created_at: datetime = field(default_factory=utcnow)

    @property
    def initial_state(self) -> Optional[State]:
        return next((s for s in self.states if s.is_initial), None)

    def find_state(self, state_id: str) -> Optional[State]:
        return next((s for s in self.states if s.id == state_id), None)

    def find_action(self, action_id: str) -> Optional[Action]:
        return next((a for a in self.actions if a.id == action_id), None)


@dataclass(frozen=True)
class ActionHistoryEntry:
    """Audit record of one executed transition."""
    action_id: str
    action_name: str
    from_state: str
    to_state: str
    executed_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class WorkflowInstance:
    """
    A runtime execution of a workflow definition.

    Tracks the current state and the ordered history of executed actions.
    """
    id: str
    definition_id: str
    current_state_id: str
    history: Tuple[ActionHistoryEntry, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    last_modified_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        instance_id: str,
        definition: WorkflowDefinition,
        initial_state: State,
        created_at: datetime,
    ) -> "WorkflowInstance":
        """Factory method to create an instance sitting in its initial state."""
        return cls(
            id=instance_id,
            definition_id=definition.id,
            current_state_id=initial_state.id,
            history=(),
            created_at=created_at,
            last_modified_at=created_at,
        )

    def advance(self, entry: ActionHistoryEntry, at: datetime) -> "WorkflowInstance":
        """Return a snapshot with the entry appended and the state moved."""
        return replace(
            self,
            history=self.history + (entry,),
            current_state_id=entry.to_state,
            last_modified_at=at,
        )

    def is_consistent_with(self, definition: WorkflowDefinition) -> bool:
        """
        Check that current_state_id matches the recorded history.

        With no history the instance must sit in the definition's initial
        state; otherwise it must sit in the target of the last entry.
        """
        if self.history:
            return self.current_state_id == self.history[-1].to_state
        initial = definition.initial_state
        return initial is not None and self.current_state_id == initial.id


def state_ids(states: Iterable[State]) -> Tuple[str, ...]:
    return tuple(s.id for s in states)
