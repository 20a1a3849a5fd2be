"""
In-memory implementation of the workflow store.

Useful for tests or when no database is configured. Data is not persisted
across process restarts.
"""

import threading
from typing import Dict, List, Optional

from flowstate.domain import Result, WorkflowDefinition, WorkflowInstance
from .repository import InstanceTransition


class InMemoryWorkflowStore:
    """
    Thread-safe dictionary-backed store.

    A store-level lock guards the maps themselves; each instance has its
    own lock that is held for the whole of update_instance. Instances are
    frozen and replaced wholesale, so readers need only the store lock.
    """

    def __init__(self) -> None:
        self._definitions: Dict[str, WorkflowDefinition] = {}
        self._instances: Dict[str, WorkflowInstance] = {}
        self._instance_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def add_definition(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        with self._lock:
            if definition.id in self._definitions:
                raise ValueError(f"Workflow definition '{definition.id}' already exists")
            self._definitions[definition.id] = definition
        return definition

    def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        with self._lock:
            return self._definitions.get(definition_id)

    def list_definitions(self) -> List[WorkflowDefinition]:
        with self._lock:
            return list(self._definitions.values())

    # ------------------------------------------------------------------
    def add_instance(self, instance: WorkflowInstance) -> WorkflowInstance:
        with self._lock:
            if instance.id in self._instances:
                raise ValueError(f"Workflow instance '{instance.id}' already exists")
            self._instances[instance.id] = instance
            self._instance_locks[instance.id] = threading.Lock()
        return instance

    def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        with self._lock:
            return self._instances.get(instance_id)

    def list_instances(self) -> List[WorkflowInstance]:
        with self._lock:
            return list(self._instances.values())

    def update_instance(
        self,
        instance_id: str,
        transition: InstanceTransition,
    ) -> Result[WorkflowInstance]:
        with self._lock:
            instance_lock = self._instance_locks.get(instance_id)

        if instance_lock is None:
            return transition(None, None)

        with instance_lock:
            with self._lock:
                current = self._instances[instance_id]
                definition = self._definitions.get(current.definition_id)
            result = transition(current, definition)
            if result.is_ok:
                with self._lock:
                    self._instances[instance_id] = result.value
            return result

    def health_check(self) -> bool:
        return True
