"""Pydantic request models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from legal_workflow_orchestrator.documents.models import DocumentStatus
from legal_workflow_orchestrator.workflow.models import WorkflowStepStatus
from legal_workflow_orchestrator.workflow.templates import STANDARD_TEMPLATE_NAME


class CreateDocumentRequest(BaseModel):
    template: str
    title: str | None = None
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    jurisdiction: str | None = None


class UpdateDocumentStatusRequest(BaseModel):
    status: DocumentStatus


class CreateWorkflowRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    template: str = STANDARD_TEMPLATE_NAME


class UpdateStepStatusRequest(BaseModel):
    status: WorkflowStepStatus
    comment: str | None = None
