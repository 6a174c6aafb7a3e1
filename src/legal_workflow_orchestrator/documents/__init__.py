"""Document metadata and lifecycle status."""

from legal_workflow_orchestrator.documents.models import Document, DocumentStatus
from legal_workflow_orchestrator.documents.registry import DocumentRegistry

__all__ = ["Document", "DocumentRegistry", "DocumentStatus"]
