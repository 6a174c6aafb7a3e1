"""Explicit workflow domain concepts.

This package introduces first-class types for:
- Workflow steps and their statuses
- Data-driven workflow templates
- The engine that owns workflow instances and reacts to document events
"""

from legal_workflow_orchestrator.workflow.engine import WorkflowEngine
from legal_workflow_orchestrator.workflow.models import (
    Workflow,
    WorkflowStep,
    WorkflowStepStatus,
    WorkflowStepType,
    rollup_status,
)
from legal_workflow_orchestrator.workflow.templates import TemplateResolver, WorkflowTemplate

__all__ = [
    "TemplateResolver",
    "Workflow",
    "WorkflowEngine",
    "WorkflowStep",
    "WorkflowStepStatus",
    "WorkflowStepType",
    "WorkflowTemplate",
    "rollup_status",
]
