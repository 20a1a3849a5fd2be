"""
PostgreSQL implementation of the workflow store.

Definitions are stored as a single row with their states and actions in
JSONB columns. Instances keep their history in a separate append-only
table. Action execution locks the instance row with SELECT ... FOR UPDATE,
so executions on the same instance are serialized across processes; reads
that span both tables run at REPEATABLE READ so they see one snapshot.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from flowstate.domain import (
    Action, ActionHistoryEntry, Result, State, WorkflowDefinition, WorkflowInstance
)
from .database import Database
from .repository import InstanceTransition

logger = logging.getLogger(__name__)

SNAPSHOT_ISOLATION = "REPEATABLE READ"


SCHEMA = """
CREATE TABLE IF NOT EXISTS workflow_definitions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    states JSONB NOT NULL,
    actions JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    seq BIGSERIAL
);

CREATE TABLE IF NOT EXISTS workflow_instances (
    id TEXT PRIMARY KEY,
    definition_id TEXT NOT NULL REFERENCES workflow_definitions(id),
    current_state_id TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    last_modified_at TIMESTAMPTZ NOT NULL,
    seq BIGSERIAL
);

CREATE TABLE IF NOT EXISTS action_history (
    instance_id TEXT NOT NULL REFERENCES workflow_instances(id),
    position INTEGER NOT NULL,
    action_id TEXT NOT NULL,
    action_name TEXT NOT NULL,
    from_state TEXT NOT NULL,
    to_state TEXT NOT NULL,
    executed_at TIMESTAMPTZ NOT NULL,
    PRIMARY KEY (instance_id, position)
);
"""


class PostgresWorkflowStore:
    """Durable store for definitions, instances and their history."""

    def __init__(self, db: Database):
        self.db = db

    def initialize_schema(self) -> None:
        """Create tables if they do not exist."""
        logger.info("Ensuring workflow store schema")
        with self.db.transaction() as cur:
            cur.execute(SCHEMA)

    # ============================================
    # DEFINITIONS
    # ============================================

    def add_definition(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        query = """
            INSERT INTO workflow_definitions (id, name, states, actions, created_at)
            VALUES (%s, %s, %s, %s, %s)
        """
        params = (
            definition.id,
            definition.name,
            json.dumps([_state_to_json(s) for s in definition.states]),
            json.dumps([_action_to_json(a) for a in definition.actions]),
            definition.created_at,
        )
        with self.db.transaction() as cur:
            cur.execute(query, params)
        return definition

    def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        with self.db.transaction() as cur:
            return self._fetch_definition(cur, definition_id)

    def list_definitions(self) -> List[WorkflowDefinition]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM workflow_definitions ORDER BY seq")
            return [self._row_to_definition(row) for row in cur.fetchall()]

    # ============================================
    # INSTANCES
    # ============================================

    def add_instance(self, instance: WorkflowInstance) -> WorkflowInstance:
        query = """
            INSERT INTO workflow_instances
            (id, definition_id, current_state_id, created_at, last_modified_at)
            VALUES (%s, %s, %s, %s, %s)
        """
        with self.db.transaction() as cur:
            cur.execute(query, (
                instance.id,
                instance.definition_id,
                instance.current_state_id,
                instance.created_at,
                instance.last_modified_at,
            ))
            self._insert_history(cur, instance.id, instance.history, start=0)
        return instance

    def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        # The row and its history must come from the same snapshot
        with self.db.transaction(isolation=SNAPSHOT_ISOLATION) as cur:
            cur.execute("SELECT * FROM workflow_instances WHERE id = %s", (instance_id,))
            row = cur.fetchone()
            if not row:
                return None
            return self._row_to_instance(row, self._fetch_history(cur, instance_id))

    def list_instances(self) -> List[WorkflowInstance]:
        with self.db.transaction(isolation=SNAPSHOT_ISOLATION) as cur:
            cur.execute("SELECT * FROM workflow_instances ORDER BY seq")
            rows = cur.fetchall()
            return [
                self._row_to_instance(row, self._fetch_history(cur, row["id"]))
                for row in rows
            ]

    def update_instance(
        self,
        instance_id: str,
        transition: InstanceTransition,
    ) -> Result[WorkflowInstance]:
        with self.db.transaction() as cur:
            cur.execute(
                "SELECT * FROM workflow_instances WHERE id = %s FOR UPDATE",
                (instance_id,),
            )
            row = cur.fetchone()
            if not row:
                return transition(None, None)

            current = self._row_to_instance(row, self._fetch_history(cur, instance_id))
            definition = self._fetch_definition(cur, current.definition_id)

            result = transition(current, definition)
            if not result.is_ok:
                return result

            updated = result.value
            self._insert_history(
                cur,
                instance_id,
                updated.history[len(current.history):],
                start=len(current.history),
            )
            cur.execute(
                """
                UPDATE workflow_instances
                SET current_state_id = %s, last_modified_at = %s
                WHERE id = %s
                """,
                (updated.current_state_id, updated.last_modified_at, instance_id),
            )
            return result

    def health_check(self) -> bool:
        return self.db.health_check()

    # ============================================
    # ROW MAPPING
    # ============================================

    def _fetch_definition(self, cursor, definition_id: str) -> Optional[WorkflowDefinition]:
        cursor.execute("SELECT * FROM workflow_definitions WHERE id = %s", (definition_id,))
        row = cursor.fetchone()
        return self._row_to_definition(row) if row else None

    def _insert_history(self, cursor, instance_id: str, entries, start: int) -> None:
        query = """
            INSERT INTO action_history
            (instance_id, position, action_id, action_name, from_state, to_state, executed_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        for position, entry in enumerate(entries, start=start):
            cursor.execute(query, (
                instance_id,
                position,
                entry.action_id,
                entry.action_name,
                entry.from_state,
                entry.to_state,
                entry.executed_at,
            ))

    def _fetch_history(self, cursor, instance_id: str) -> List[ActionHistoryEntry]:
        cursor.execute(
            "SELECT * FROM action_history WHERE instance_id = %s ORDER BY position",
            (instance_id,),
        )
        return [
            ActionHistoryEntry(
                action_id=row["action_id"],
                action_name=row["action_name"],
                from_state=row["from_state"],
                to_state=row["to_state"],
                executed_at=row["executed_at"],
            )
            for row in cursor.fetchall()
        ]

    def _row_to_definition(self, row: dict) -> WorkflowDefinition:
        """Convert database row to WorkflowDefinition entity."""
        states = row["states"]
        if isinstance(states, str):
            states = json.loads(states)

        actions = row["actions"]
        if isinstance(actions, str):
            actions = json.loads(actions)

        return WorkflowDefinition(
            id=row["id"],
            name=row["name"],
            states=tuple(State(**s) for s in states),
            actions=tuple(Action(**a) for a in actions),
            created_at=row["created_at"],
        )

    def _row_to_instance(self, row: dict, history: List[ActionHistoryEntry]) -> WorkflowInstance:
        """Convert database row to WorkflowInstance entity."""
        return WorkflowInstance(
            id=row["id"],
            definition_id=row["definition_id"],
            current_state_id=row["current_state_id"],
            history=tuple(history),
            created_at=row["created_at"],
            last_modified_at=row["last_modified_at"],
        )


def _state_to_json(state: State) -> Dict[str, Any]:
    return {
        "id": state.id,
        "name": state.name,
        "is_initial": state.is_initial,
        "is_final": state.is_final,
        "enabled": state.enabled,
        "description": state.description,
    }


def _action_to_json(action: Action) -> Dict[str, Any]:
    return {
        "id": action.id,
        "name": action.name,
        "from_states": list(action.from_states),
        "to_state": action.to_state,
        "enabled": action.enabled,
        "description": action.description,
    }
