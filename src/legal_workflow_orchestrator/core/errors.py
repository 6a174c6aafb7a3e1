"""Error taxonomy for the workflow core.

Core operations raise these to their direct caller. Nothing in the core
retries; event-driven reactions catch them locally and notify instead.
"""

from __future__ import annotations


class WorkflowCoreError(Exception):
    """Base class for every error raised by the core."""


class NotFoundError(WorkflowCoreError):
    """An unknown document, workflow or step id was referenced."""

    def __init__(self, kind: str, key: str, message: str | None = None) -> None:
        self.kind = kind
        self.key = key
        super().__init__(message or f"{kind.capitalize()} {key} not found")


class InvalidStateError(WorkflowCoreError):
    """The requested operation is not legal in the current state."""


class DuplicateWorkflowError(InvalidStateError):
    """A workflow is already attached to the document."""

    def __init__(self, document_id: str, existing_workflow_id: str) -> None:
        self.document_id = document_id
        self.existing_workflow_id = existing_workflow_id
        super().__init__(
            f"Document {document_id} already has workflow {existing_workflow_id}"
        )
