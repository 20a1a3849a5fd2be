# Persistence layer
import logging

from flowstate.config import Config
from .database import Database
from .memory import InMemoryWorkflowStore
from .postgres import PostgresWorkflowStore
from .repository import InstanceTransition, WorkflowStore

logger = logging.getLogger(__name__)


def create_store(config: Config) -> WorkflowStore:
    """Build the store selected by STORE_BACKEND."""
    backend = config.STORE_BACKEND
    if backend == "memory":
        logger.info("Using in-memory workflow store")
        return InMemoryWorkflowStore()
    if backend == "postgres":
        logger.info("Using PostgreSQL workflow store")
        db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DATABASE_POOL_SIZE,
            max_overflow=config.DATABASE_MAX_OVERFLOW,
        )
        store = PostgresWorkflowStore(db)
        store.initialize_schema()
        return store
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = [
    "Database",
    "InMemoryWorkflowStore",
    "PostgresWorkflowStore",
    "InstanceTransition",
    "WorkflowStore",
    "create_store",
]
