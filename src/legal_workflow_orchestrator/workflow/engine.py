"""Workflow engine.

Owns workflow instances keyed by workflow id and indexed by document id,
advances step state, derives the aggregate workflow status and reacts to
document lifecycle events published by the registry.

At most one workflow is attached to a document; a second `create_workflow`
for the same document raises `DuplicateWorkflowError`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from legal_workflow_orchestrator.core.errors import (
    DuplicateWorkflowError,
    InvalidStateError,
    NotFoundError,
)
from legal_workflow_orchestrator.core.events import (
    DOCUMENT_CREATED,
    DOCUMENT_STATUS_CHANGED,
    WORKFLOW_CREATED,
    WORKFLOW_STEP_CHANGED,
    WORKFLOW_STEP_UPDATED,
    EventBus,
)
from legal_workflow_orchestrator.core.notifications import LoggingNotifier, Notifier
from legal_workflow_orchestrator.documents.models import DocumentStatus, utc_now
from legal_workflow_orchestrator.workflow.models import (
    Workflow,
    WorkflowStep,
    WorkflowStepStatus,
    rollup_status,
)
from legal_workflow_orchestrator.workflow.templates import (
    STANDARD_TEMPLATE_NAME,
    TemplateResolver,
)

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Per-document approval workflows driven by the engine API and document events."""

    def __init__(
        self,
        bus: EventBus,
        resolver: TemplateResolver | None = None,
        *,
        default_template: str = STANDARD_TEMPLATE_NAME,
        notifier: Notifier | None = None,
    ) -> None:
        self._bus = bus
        self._resolver = resolver or TemplateResolver()
        self._default_template = default_template
        self._notifier = notifier or LoggingNotifier()
        self._workflows: dict[str, Workflow] = {}
        self._by_document: dict[str, str] = {}
        self._subscription_ids: list[tuple[str, str]] = []

    def initialize(self) -> None:
        """Subscribe to document lifecycle events."""

        if self._subscription_ids:
            return
        for topic, handler in (
            (DOCUMENT_CREATED, self._on_document_created),
            (DOCUMENT_STATUS_CHANGED, self._on_document_status_changed),
        ):
            self._subscription_ids.append((topic, self._bus.subscribe(topic, handler)))

    def dispose(self) -> None:
        for topic, sub_id in self._subscription_ids:
            self._bus.unsubscribe(topic, sub_id)
        self._subscription_ids.clear()
        self._workflows.clear()
        self._by_document.clear()

    # -- queries -----------------------------------------------------------------

    def get_workflow(self, workflow_id: str) -> Workflow | None:
        return self._workflows.get(workflow_id)

    def get_workflow_for_document(self, document_id: str) -> Workflow | None:
        workflow_id = self._by_document.get(document_id)
        if workflow_id is None:
            return None
        return self._workflows.get(workflow_id)

    def list_workflows(self) -> list[Workflow]:
        return list(self._workflows.values())

    # -- commands ----------------------------------------------------------------

    def create_workflow(self, document_id: str, template_name: str) -> Workflow:
        existing_id = self._by_document.get(document_id)
        if existing_id is not None:
            raise DuplicateWorkflowError(document_id, existing_id)

        template = self._resolver.resolve(template_name)
        workflow_id = uuid.uuid4().hex
        now = utc_now()
        steps = [
            WorkflowStep(
                id=f"{workflow_id}-{n}",
                type=definition.type,
                name=definition.name,
                description=definition.description,
                assignee=definition.assignee,
                status=WorkflowStepStatus.PENDING,
            )
            for n, definition in enumerate(template.steps, start=1)
        ]
        workflow = Workflow(
            id=workflow_id,
            document_id=document_id,
            name=template.display_name,
            description=template.description,
            steps=steps,
            current_step_index=0,
            status=WorkflowStepStatus.PENDING,
            created_at=now,
            modified_at=now,
        )

        self._workflows[workflow_id] = workflow
        self._by_document[document_id] = workflow_id
        logger.info(
            "Workflow created",
            extra={
                "workflow_id": workflow_id,
                "document_id": document_id,
                "template": template.name,
                "step_count": len(steps),
            },
        )

        self._bus.publish(WORKFLOW_CREATED, workflow.to_event_payload())
        return workflow

    def update_step_status(
        self,
        workflow_id: str,
        step_id: str,
        new_status: WorkflowStepStatus | str,
        comment: str | None = None,
    ) -> WorkflowStep:
        workflow = self._require(workflow_id)
        step = workflow.find_step(step_id)
        if step is None:
            raise NotFoundError(
                "step", step_id, f"Step {step_id} not found in workflow {workflow_id}"
            )

        status = WorkflowStepStatus(new_status)
        old_status = step.status
        now = utc_now()

        step.status = status
        if status == WorkflowStepStatus.COMPLETED:
            step.completed_at = now
        if comment:
            step.comments.append(comment)
        workflow.modified_at = now

        workflow.status = rollup_status((s.status for s in workflow.steps), workflow.status)
        logger.info(
            "Workflow step updated",
            extra={
                "workflow_id": workflow_id,
                "step_id": step_id,
                "old_status": old_status.value,
                "new_status": status.value,
                "workflow_status": workflow.status.value,
            },
        )

        self._bus.publish(
            WORKFLOW_STEP_UPDATED,
            {
                "workflowId": workflow_id,
                "stepId": step_id,
                "oldStatus": old_status.value,
                "newStatus": status.value,
                "comment": comment,
            },
        )
        return step

    def move_to_next_step(self, workflow_id: str) -> WorkflowStep:
        """Advance to the next step once the current one is completed.

        The aggregate status is left as is; the next `update_step_status`
        call brings it in line with the now in-progress step.
        """

        workflow = self._require(workflow_id)
        if workflow.current_step_index >= len(workflow.steps) - 1:
            raise InvalidStateError("Already at last step")
        if workflow.current_step.status != WorkflowStepStatus.COMPLETED:
            raise InvalidStateError(
                "Current step must be completed before moving to next step"
            )

        previous = workflow.current_step_index
        workflow.current_step_index += 1
        workflow.modified_at = utc_now()
        next_step = workflow.current_step
        next_step.status = WorkflowStepStatus.IN_PROGRESS

        logger.info(
            "Workflow advanced",
            extra={
                "workflow_id": workflow_id,
                "previous_step": previous,
                "current_step": workflow.current_step_index,
            },
        )
        self._bus.publish(
            WORKFLOW_STEP_CHANGED,
            {
                "workflowId": workflow_id,
                "previousStep": previous,
                "currentStep": workflow.current_step_index,
            },
        )
        return next_step

    def _require(self, workflow_id: str) -> Workflow:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise NotFoundError("workflow", workflow_id)
        return workflow

    # -- reactions ---------------------------------------------------------------

    def _on_document_created(self, payload: Mapping[str, Any]) -> None:
        """Attach the default workflow to a new document (best effort)."""

        document_id = str(payload.get("id", ""))
        try:
            self.create_workflow(document_id, self._default_template)
        except Exception as exc:
            logger.exception(
                "Failed to attach workflow to document", extra={"document_id": document_id}
            )
            self._notifier.notify(
                "error", f"Failed to create workflow for document {document_id}: {exc}"
            )

    def _on_document_status_changed(self, payload: Mapping[str, Any]) -> None:
        document_id = payload.get("documentId")
        if not isinstance(document_id, str):
            return
        workflow = self.get_workflow_for_document(document_id)
        if workflow is None:
            return

        new_status = payload.get("newStatus")
        if new_status == DocumentStatus.APPROVED:
            now = utc_now()
            for step in workflow.steps:
                if step.status != WorkflowStepStatus.COMPLETED:
                    step.status = WorkflowStepStatus.COMPLETED
                    step.completed_at = now
            workflow.status = WorkflowStepStatus.COMPLETED
            workflow.modified_at = now
            logger.info(
                "Workflow completed by document approval",
                extra={"workflow_id": workflow.id, "document_id": document_id},
            )
        elif new_status == DocumentStatus.REJECTED:
            workflow.status = WorkflowStepStatus.REJECTED
            workflow.modified_at = utc_now()
            logger.info(
                "Workflow rejected by document rejection",
                extra={"workflow_id": workflow.id, "document_id": document_id},
            )
