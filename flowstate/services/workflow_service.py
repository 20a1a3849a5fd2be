"""
Workflow service: the engine behind every workflow operation.

Validates and stores definitions, starts instances in their initial state,
and executes actions against instances. Identifier generation and the
clock are injected, so the service is deterministic under test.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from flowstate.domain import (
    Action, ActionStateMachine, ErrorCategory, ErrorKind, Result, State,
    WorkflowDefinition, WorkflowError, WorkflowInstance, build_definition
)
from flowstate.domain.entities import utcnow
from flowstate.persistence import WorkflowStore

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    """Generate a fresh unique identifier."""
    return str(uuid4())


class WorkflowService:
    """
    Service for managing workflow definitions and instances.

    Definitions are validated once and never change afterwards. Instances
    change only through execute_action, which the store serializes per
    instance.
    """

    def __init__(
        self,
        store: WorkflowStore,
        id_factory: IdFactory = new_id,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.id_factory = id_factory
        self.clock = clock

    # ============================================
    # DEFINITIONS
    # ============================================

    def create_definition(
        self,
        name: str,
        states: Sequence[State],
        actions: Sequence[Action],
    ) -> Result[WorkflowDefinition]:
        """Validate and store a new workflow definition."""
        logger.info(f"Creating workflow definition: {name}")

        result = build_definition(
            name,
            states,
            actions,
            definition_id=self.id_factory(),
            created_at=self.clock(),
        )
        if not result.is_ok:
            return self._rejected("create_definition", result)

        definition = self.store.add_definition(result.value)
        logger.info(
            f"Created workflow definition {definition.id} with "
            f"{len(definition.states)} states and {len(definition.actions)} actions"
        )
        return Result.ok(definition)

    def get_definition(self, definition_id: str) -> Result[WorkflowDefinition]:
        """Get a definition by ID."""
        definition = self.store.get_definition(definition_id)
        if definition is None:
            return Result.fail(
                ErrorKind.DEFINITION_NOT_FOUND,
                f"Workflow definition '{definition_id}' not found",
                definition_id=definition_id,
            )
        return Result.ok(definition)

    def list_definitions(self) -> List[WorkflowDefinition]:
        return self.store.list_definitions()

    # ============================================
    # INSTANCES
    # ============================================

    def start_instance(self, definition_id: str) -> Result[WorkflowInstance]:
        """Create an instance sitting in the definition's initial state."""
        found = self.get_definition(definition_id)
        if not found.is_ok:
            return self._rejected("start_instance", found)

        definition = found.value
        initial_state = definition.initial_state
        if initial_state is None:
            return self._rejected("start_instance", Result.fail(
                ErrorKind.NO_INITIAL_STATE,
                f"No initial state found in workflow definition '{definition_id}'",
                definition_id=definition_id,
            ))

        instance = WorkflowInstance.create(
            instance_id=self.id_factory(),
            definition=definition,
            initial_state=initial_state,
            created_at=self.clock(),
        )
        self.store.add_instance(instance)

        logger.info(
            f"Started instance {instance.id} of definition {definition_id} "
            f"in state '{initial_state.id}'"
        )
        return Result.ok(instance)

    def get_instance(self, instance_id: str) -> Result[WorkflowInstance]:
        """Get an instance by ID."""
        instance = self.store.get_instance(instance_id)
        if instance is None:
            return Result.fail(
                ErrorKind.INSTANCE_NOT_FOUND,
                f"Workflow instance '{instance_id}' not found",
                instance_id=instance_id,
            )
        return Result.ok(instance)

    def list_instances(self) -> List[WorkflowInstance]:
        return self.store.list_instances()

    def execute_action(self, instance_id: str, action_id: str) -> Result[WorkflowInstance]:
        """
        Execute an action against an instance.

        The checks and the append-and-advance update run while the store
        holds the instance, so two executions on the same instance can never
        both pass the source-state check.
        """

        def transition(
            instance: Optional[WorkflowInstance],
            definition: Optional[WorkflowDefinition],
        ) -> Result[WorkflowInstance]:
            if instance is None:
                return Result.fail(
                    ErrorKind.INSTANCE_NOT_FOUND,
                    f"Workflow instance '{instance_id}' not found",
                    instance_id=instance_id,
                )
            if definition is None:
                return Result.fail(
                    ErrorKind.DEFINITION_NOT_FOUND,
                    f"Workflow definition '{instance.definition_id}' not found",
                    definition_id=instance.definition_id,
                )

            return ActionStateMachine.fire(
                definition, instance, action_id, executed_at=self.clock()
            )

        result = self.store.update_instance(instance_id, transition)
        if not result.is_ok:
            return self._rejected("execute_action", result)

        entry = result.value.history[-1]
        logger.info(
            f"Instance {instance_id}: action '{action_id}' moved "
            f"'{entry.from_state}' -> '{entry.to_state}'"
        )
        return result

    def available_actions(self, instance_id: str) -> Result[List[Action]]:
        """List the actions that would currently be admitted for an instance."""
        found = self.get_instance(instance_id)
        if not found.is_ok:
            return Result(error=found.error)

        instance = found.value
        definition = self.store.get_definition(instance.definition_id)
        if definition is None:
            return Result.fail(
                ErrorKind.DEFINITION_NOT_FOUND,
                f"Workflow definition '{instance.definition_id}' not found",
                definition_id=instance.definition_id,
            )
        return Result.ok(
            ActionStateMachine.available_actions(definition, instance.current_state_id)
        )

    # ============================================
    # HELPERS
    # ============================================

    def _rejected(self, operation: str, result: Result) -> Result:
        """Log a failed operation and hand the result back unchanged."""
        error: WorkflowError = result.error
        if error.category == ErrorCategory.INVARIANT:
            logger.error(
                f"Invariant violation in {operation}: {error.kind.value}: "
                f"{error.message} {error.details}"
            )
        else:
            logger.info(f"{operation} rejected ({error.kind.value}): {error.message}")
        return result
