"""
Flask application factory.

Creates and configures the Flask application with the workflow service,
error handlers and routes.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from flowstate.config import Config, get_config
from flowstate.persistence import create_store
from flowstate.services import WorkflowService

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Config] = None,
    service: Optional[WorkflowService] = None,
) -> Flask:
    """
    Application factory for creating Flask app.

    Args:
        config: Optional configuration object
        service: Optional pre-built WorkflowService (its store is used as-is)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Enable CORS for all routes
    CORS(app)

    # Load configuration
    app_config = config or get_config()
    app.config["SECRET_KEY"] = app_config.SECRET_KEY
    app.config["DEBUG"] = app_config.FLASK_DEBUG
    app.config["APP_CONFIG"] = app_config

    # One service per app: the store must outlive individual requests
    if service is None:
        service = WorkflowService(create_store(app_config))
    app.config["WORKFLOW_SERVICE"] = service

    # Register error handlers
    register_error_handlers(app)

    # Register routes
    from .routes import register_routes
    register_routes(app)

    @app.route("/health")
    def health_check():
        """Health check endpoint."""
        store_healthy = app.config["WORKFLOW_SERVICE"].store.health_check()
        status = "healthy" if store_healthy else "unhealthy"
        status_code = 200 if store_healthy else 503

        return jsonify({
            "status": status,
            "store": app_config.STORE_BACKEND,
        }), status_code

    logger.info("Flask application created")
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the application."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Handle HTTP exceptions."""
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(ValueError)
    def handle_value_error(e: ValueError):
        """Handle malformed request payloads."""
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        """Handle unexpected errors."""
        logger.exception(f"Unhandled exception: {e}")
        return jsonify({"error": "An unexpected error occurred"}), 500


def run_server() -> None:
    """Entry point for running the development server."""
    config = get_config()
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )

    app = create_app(config)
    app.run(host=config.HOST, port=config.PORT, debug=config.FLASK_DEBUG)


if __name__ == "__main__":
    run_server()
