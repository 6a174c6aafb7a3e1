"""Core package initialization."""

from legal_workflow_orchestrator.core.config import (
    DocumentConfig,
    OrchestratorConfig,
    WorkflowConfig,
)
from legal_workflow_orchestrator.core.errors import (
    DuplicateWorkflowError,
    InvalidStateError,
    NotFoundError,
    WorkflowCoreError,
)
from legal_workflow_orchestrator.core.events import EventBus

__all__ = [
    "DocumentConfig",
    "DuplicateWorkflowError",
    "EventBus",
    "InvalidStateError",
    "NotFoundError",
    "OrchestratorConfig",
    "WorkflowConfig",
    "WorkflowCoreError",
]
