# API layer
from .app import create_app, run_server
from .routes import register_routes

__all__ = [
    "create_app",
    "register_routes",
    "run_server",
]
