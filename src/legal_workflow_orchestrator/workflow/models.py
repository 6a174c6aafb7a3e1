"""Workflow domain types and the aggregate status rollup."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from legal_workflow_orchestrator.documents.models import utc_now


class WorkflowStepType(str, Enum):
    REVIEW = "review"
    APPROVAL = "approval"
    SIGNATURE = "signature"
    DISTRIBUTION = "distribution"
    CUSTOM = "custom"


class WorkflowStepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    BLOCKED = "blocked"


TERMINAL_STATUSES: frozenset[WorkflowStepStatus] = frozenset(
    {WorkflowStepStatus.COMPLETED, WorkflowStepStatus.REJECTED}
)


class WorkflowStep(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    type: WorkflowStepType
    name: str
    description: str
    assignee: str
    status: WorkflowStepStatus = WorkflowStepStatus.PENDING
    due_date: datetime | None = None
    completed_at: datetime | None = None
    comments: list[str] = Field(default_factory=list)


class Workflow(BaseModel):
    """An ordered sequence of steps attached to one document.

    `current_step_index` always points into `steps`, and `steps` is never empty.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    document_id: str
    name: str
    description: str
    steps: list[WorkflowStep] = Field(min_length=1)
    current_step_index: int = Field(default=0, ge=0)
    status: WorkflowStepStatus = WorkflowStepStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)

    @property
    def current_step(self) -> WorkflowStep:
        return self.steps[self.current_step_index]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def find_step(self, step_id: str) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def to_event_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


def rollup_status(
    statuses: Iterable[WorkflowStepStatus], previous: WorkflowStepStatus
) -> WorkflowStepStatus:
    """Derive the aggregate workflow status from its step statuses.

    First matching rule wins: all completed, any rejected, any in progress,
    any blocked. Otherwise the previous aggregate status is kept, so there is
    no rule that brings a workflow back to pending.
    """

    values = list(statuses)
    if values and all(s == WorkflowStepStatus.COMPLETED for s in values):
        return WorkflowStepStatus.COMPLETED
    if WorkflowStepStatus.REJECTED in values:
        return WorkflowStepStatus.REJECTED
    if WorkflowStepStatus.IN_PROGRESS in values:
        return WorkflowStepStatus.IN_PROGRESS
    if WorkflowStepStatus.BLOCKED in values:
        return WorkflowStepStatus.BLOCKED
    return previous
