"""Store abstraction for workflow definitions and instances."""

from typing import Callable, List, Optional, Protocol

from flowstate.domain import Result, WorkflowDefinition, WorkflowInstance

InstanceTransition = Callable[
    [Optional[WorkflowInstance], Optional[WorkflowDefinition]],
    Result[WorkflowInstance],
]


class WorkflowStore(Protocol):
    """Protocol for workflow persistence backends."""

    def add_definition(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """Persist a validated definition."""

    def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        """Retrieve a definition by id."""

    def list_definitions(self) -> List[WorkflowDefinition]:
        """Return all definitions in insertion order."""

    def add_instance(self, instance: WorkflowInstance) -> WorkflowInstance:
        """Persist a newly started instance."""

    def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        """Retrieve an instance by id."""

    def list_instances(self) -> List[WorkflowInstance]:
        """Return all instances in insertion order."""

    def update_instance(
        self,
        instance_id: str,
        transition: InstanceTransition,
    ) -> Result[WorkflowInstance]:
        """
        Apply a transition to an instance.

        Calls for the same instance are serialized. The transition receives
        the current snapshot and the definition it was started from (None
        for either that does not exist), both read under the same lock or
        transaction. The store persists the returned instance only if the
        result is ok.
        """

    def health_check(self) -> bool:
        """Check if the backend is reachable."""
