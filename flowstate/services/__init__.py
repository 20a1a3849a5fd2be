# Service layer
from .workflow_service import WorkflowService, new_id

__all__ = [
    "WorkflowService",
    "new_id",
]
