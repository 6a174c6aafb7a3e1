#!/usr/bin/env python3
"""Programmatic usage example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* create a document and let the engine attach its workflow
* walk the workflow to completion and approve the document

Everything lives in memory and is gone when the script exits.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from legal_workflow_orchestrator.core.config import OrchestratorConfig
from legal_workflow_orchestrator.core.errors import InvalidStateError
from legal_workflow_orchestrator.core.events import WORKFLOW_STEP_CHANGED
from legal_workflow_orchestrator.core.orchestrator import Orchestrator
from legal_workflow_orchestrator.documents.models import DocumentStatus
from legal_workflow_orchestrator.workflow.models import WorkflowStepStatus


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one document through its workflow.")
    parser.add_argument("--template", default="contract", help="Document template name")
    parser.add_argument("--title", default="Master Services Agreement", help="Document title")
    parser.add_argument("--author", default=None, help="Document author (optional)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    config = OrchestratorConfig()
    config.setup_logging()

    with Orchestrator(config) as core:
        core.bus.subscribe(
            WORKFLOW_STEP_CHANGED,
            lambda payload: print(f"Advanced to step {payload['currentStep'] + 1}"),
        )

        document = core.documents.create_document(
            args.template, title=args.title, author=args.author
        )
        workflow = core.workflows.get_workflow_for_document(document.id)
        if workflow is None:
            print(f"No workflow attached to {document.id}")
            return 1

        print(f"Created document {document.id}: {document.title}")
        print(f"Workflow: {workflow.name} ({len(workflow.steps)} steps)")

        core.documents.update_status(document.id, DocumentStatus.IN_REVIEW)
        for step in workflow.steps:
            core.workflows.update_step_status(
                workflow.id, step.id, WorkflowStepStatus.COMPLETED, comment="Signed off"
            )
            print(f"  {step.name}: completed by {step.assignee}")
            try:
                core.workflows.move_to_next_step(workflow.id)
            except InvalidStateError:
                break

        core.documents.update_status(document.id, DocumentStatus.APPROVED)
        print(f"Document status: {document.status.value}")
        print(f"Workflow status: {workflow.status.value}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
