"""Workflow template resolution.

A template is an ordered list of step definitions. Templates are data: the
built-in `standard` template is always registered and more can be loaded from
a JSON file. Resolving a name that has no registered template falls back to
the standard steps and only uses the name for display text.

Every template is non-empty and starts with a review step; this is checked when
the template is built, so `resolve` never has to.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from legal_workflow_orchestrator.workflow.models import WorkflowStepType

logger = logging.getLogger(__name__)

STANDARD_TEMPLATE_NAME = "standard"


class StepDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: WorkflowStepType
    name: str
    description: str = ""
    assignee: str


class WorkflowTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str | None = None
    description: str | None = None
    steps: tuple[StepDefinition, ...]

    @field_validator("steps")
    @classmethod
    def _starts_with_review(
        cls, steps: tuple[StepDefinition, ...]
    ) -> tuple[StepDefinition, ...]:
        if not steps:
            raise ValueError("a workflow template needs at least one step")
        if steps[0].type != WorkflowStepType.REVIEW:
            raise ValueError("a workflow template must start with a review step")
        return steps


@dataclass(frozen=True, slots=True)
class ResolvedTemplate:
    name: str
    display_name: str
    description: str
    steps: tuple[StepDefinition, ...]

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "steps": [step.model_dump(mode="json") for step in self.steps],
        }


STANDARD_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        type=WorkflowStepType.REVIEW,
        name="Initial Review",
        description="Review document for completeness and accuracy",
        assignee="legal.reviewer@example.com",
    ),
    StepDefinition(
        type=WorkflowStepType.APPROVAL,
        name="Legal Approval",
        description="Legal department approval",
        assignee="legal.head@example.com",
    ),
    StepDefinition(
        type=WorkflowStepType.SIGNATURE,
        name="Executive Signature",
        description="Get executive signature",
        assignee="executive@example.com",
    ),
)

STANDARD_TEMPLATE = WorkflowTemplate(name=STANDARD_TEMPLATE_NAME, steps=STANDARD_STEPS)

_TEMPLATE_LIST = TypeAdapter(list[WorkflowTemplate])


def load_templates(path: Path) -> list[WorkflowTemplate]:
    """Load a JSON list of templates. Raises pydantic `ValidationError` on bad data."""

    raw = json.loads(path.read_text(encoding="utf-8"))
    templates = _TEMPLATE_LIST.validate_python(raw)
    logger.info(
        "Workflow templates loaded", extra={"path": str(path), "count": len(templates)}
    )
    return templates


class TemplateResolver:
    """Map template names to ordered step definitions."""

    def __init__(self, templates: Iterable[WorkflowTemplate] = ()) -> None:
        self._templates: dict[str, WorkflowTemplate] = {}
        self.register(STANDARD_TEMPLATE)
        for template in templates:
            self.register(template)

    @classmethod
    def from_path(cls, path: Path | None) -> TemplateResolver:
        if path is None:
            return cls()
        return cls(load_templates(path))

    def register(self, template: WorkflowTemplate) -> None:
        if template.name in self._templates:
            logger.info("Replacing workflow template", extra={"template": template.name})
        self._templates[template.name] = template

    def template_names(self) -> list[str]:
        return sorted(self._templates)

    def resolve(self, template_name: str) -> ResolvedTemplate:
        template = self._templates.get(template_name)
        if template is None:
            return ResolvedTemplate(
                name=template_name,
                display_name=f"{template_name} Workflow",
                description=f"Standard workflow for {template_name}",
                steps=STANDARD_STEPS,
            )
        return ResolvedTemplate(
            name=template.name,
            display_name=template.display_name or f"{template.name} Workflow",
            description=template.description or f"Standard workflow for {template.name}",
            steps=template.steps,
        )
