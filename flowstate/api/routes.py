"""
API routes for the workflow engine.

Defines REST endpoints for workflow definitions and instances, and the
JSON mapping of domain entities (camelCase field names).
"""

import logging
from typing import Any, List, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from flowstate.domain import (
    Action, ActionHistoryEntry, State, WorkflowDefinition, WorkflowError,
    WorkflowInstance
)
from flowstate.services import WorkflowService

logger = logging.getLogger(__name__)

# Create blueprints
workflows_bp = Blueprint("workflows", __name__, url_prefix="/api/workflows")
instances_bp = Blueprint("instances", __name__, url_prefix="/api/instances")


def get_workflow_service() -> WorkflowService:
    """Get the WorkflowService shared by the application."""
    return current_app.config["WORKFLOW_SERVICE"]


def error_response(error: WorkflowError, status_code: int):
    return jsonify({"error": error.message, "kind": error.kind.value}), status_code


# ============================================
# WORKFLOW DEFINITION ENDPOINTS
# ============================================

@workflows_bp.route("", methods=["POST"])
def create_workflow_definition():
    """
    Create a new workflow definition.

    Request body:
    {
        "name": "Document review",
        "states": [{"id": "draft", "name": "Draft", "isInitial": true}, ...],
        "actions": [{"id": "publish", "fromStates": ["draft"], "toState": "published"}, ...]
    }

    Response: 201 Created
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return jsonify({"error": "Request body required"}), 400

    for field in ("name", "states", "actions"):
        if data.get(field) is None:
            return jsonify({"error": f"{field} is required"}), 400

    states = [state_from_dict(s) for s in _as_list(data["states"], "states")]
    actions = [action_from_dict(a) for a in _as_list(data["actions"], "actions")]

    result = get_workflow_service().create_definition(
        name=_as_str(data["name"], "name"),
        states=states,
        actions=actions,
    )
    if not result.is_ok:
        return error_response(result.error, 400)

    definition = result.value
    response = jsonify(definition_to_dict(definition))
    response.status_code = 201
    response.headers["Location"] = f"/api/workflows/{definition.id}"
    return response


@workflows_bp.route("/<definition_id>", methods=["GET"])
def get_workflow_definition(definition_id: str):
    """
    Get a workflow definition by ID.

    Response: 200 OK
    """
    result = get_workflow_service().get_definition(definition_id)
    if not result.is_ok:
        return error_response(result.error, 404)
    return jsonify(definition_to_dict(result.value)), 200


@workflows_bp.route("", methods=["GET"])
def list_workflow_definitions():
    """List all workflow definitions."""
    definitions = get_workflow_service().list_definitions()
    return jsonify([definition_to_dict(d) for d in definitions]), 200


@workflows_bp.route("/<definition_id>/instances", methods=["POST"])
def start_workflow_instance(definition_id: str):
    """
    Start a new instance of a workflow definition.

    Response: 201 Created
    """
    result = get_workflow_service().start_instance(definition_id)
    if not result.is_ok:
        return error_response(result.error, 400)

    instance = result.value
    response = jsonify(instance_to_dict(instance))
    response.status_code = 201
    response.headers["Location"] = f"/api/instances/{instance.id}"
    return response


# ============================================
# WORKFLOW INSTANCE ENDPOINTS
# ============================================

@instances_bp.route("/<instance_id>", methods=["GET"])
def get_workflow_instance(instance_id: str):
    """
    Get a workflow instance with its history.

    Response: 200 OK
    """
    result = get_workflow_service().get_instance(instance_id)
    if not result.is_ok:
        return error_response(result.error, 404)
    return jsonify(instance_to_dict(result.value)), 200


@instances_bp.route("", methods=["GET"])
def list_workflow_instances():
    """List all workflow instances."""
    instances = get_workflow_service().list_instances()
    return jsonify([instance_to_dict(i) for i in instances]), 200


@instances_bp.route("/<instance_id>/actions/<action_id>", methods=["POST"])
def execute_action(instance_id: str, action_id: str):
    """
    Execute an action against an instance.

    Response: 200 OK with the updated instance
    """
    result = get_workflow_service().execute_action(instance_id, action_id)
    if not result.is_ok:
        return error_response(result.error, 400)
    return jsonify(instance_to_dict(result.value)), 200


@instances_bp.route("/<instance_id>/actions", methods=["GET"])
def list_available_actions(instance_id: str):
    """List the actions that can currently be executed on an instance."""
    result = get_workflow_service().available_actions(instance_id)
    if not result.is_ok:
        return error_response(result.error, 404)
    return jsonify([action_to_dict(a) for a in result.value]), 200


# ============================================
# REQUEST PARSING
# ============================================

def _as_list(value: Any, field: str) -> List[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list")
    return value


def _as_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    return value


def _as_bool(value: Any, field: str) -> bool:
    # "false" and 0 must not slip through as truthy flags
    if not isinstance(value, bool):
        raise ValueError(f"{field} must be a boolean")
    return value


def _as_optional_str(value: Any, field: str) -> Optional[str]:
    return None if value is None else _as_str(value, field)


def state_from_dict(data: Any) -> State:
    """Build a State from its JSON representation."""
    if not isinstance(data, dict):
        raise ValueError("Each state must be an object")
    return State(
        id=_as_str(data.get("id", ""), "state id"),
        name=_as_str(data.get("name", ""), "state name"),
        is_initial=_as_bool(data.get("isInitial", False), "isInitial"),
        is_final=_as_bool(data.get("isFinal", False), "isFinal"),
        enabled=_as_bool(data.get("enabled", True), "state enabled"),
        description=_as_optional_str(data.get("description"), "state description"),
    )


def action_from_dict(data: Any) -> Action:
    """Build an Action from its JSON representation."""
    if not isinstance(data, dict):
        raise ValueError("Each action must be an object")
    from_states = _as_list(data.get("fromStates", []), "fromStates")
    return Action(
        id=_as_str(data.get("id", ""), "action id"),
        name=_as_str(data.get("name", ""), "action name"),
        from_states=tuple(_as_str(s, "fromStates entry") for s in from_states),
        to_state=_as_str(data.get("toState", ""), "toState"),
        enabled=_as_bool(data.get("enabled", True), "action enabled"),
        description=_as_optional_str(data.get("description"), "action description"),
    )


# ============================================
# SERIALIZATION HELPERS
# ============================================

def state_to_dict(state: State) -> dict:
    """Convert State to API response dict."""
    return {
        "id": state.id,
        "name": state.name,
        "isInitial": state.is_initial,
        "isFinal": state.is_final,
        "enabled": state.enabled,
        "description": state.description,
    }


def action_to_dict(action: Action) -> dict:
    """Convert Action to API response dict."""
    return {
        "id": action.id,
        "name": action.name,
        "enabled": action.enabled,
        "fromStates": list(action.from_states),
        "toState": action.to_state,
        "description": action.description,
    }


def definition_to_dict(definition: WorkflowDefinition) -> dict:
    """Convert WorkflowDefinition to API response dict."""
    return {
        "id": definition.id,
        "name": definition.name,
        "states": [state_to_dict(s) for s in definition.states],
        "actions": [action_to_dict(a) for a in definition.actions],
        "createdAt": definition.created_at.isoformat(),
    }


def history_entry_to_dict(entry: ActionHistoryEntry) -> dict:
    """Convert ActionHistoryEntry to API response dict."""
    return {
        "actionId": entry.action_id,
        "actionName": entry.action_name,
        "fromState": entry.from_state,
        "toState": entry.to_state,
        "executedAt": entry.executed_at.isoformat(),
    }


def instance_to_dict(instance: WorkflowInstance) -> dict:
    """Convert WorkflowInstance to API response dict."""
    return {
        "id": instance.id,
        "definitionId": instance.definition_id,
        "currentStateId": instance.current_state_id,
        "history": [history_entry_to_dict(e) for e in instance.history],
        "createdAt": instance.created_at.isoformat(),
        "lastModifiedAt": instance.last_modified_at.isoformat(),
    }


# ============================================
# ROUTE REGISTRATION
# ============================================

def register_routes(app: Flask) -> None:
    """Register all blueprints with the Flask app."""
    app.register_blueprint(workflows_bp)
    app.register_blueprint(instances_bp)
    logger.info("Routes registered")
