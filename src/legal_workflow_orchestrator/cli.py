"""CLI entrypoint for the workflow core.

Everything is in memory, so the CLI is for inspection and demonstration:
- `templates` prints the resolved workflow templates
- `simulate` runs one document through the core and prints the events
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from legal_workflow_orchestrator import __version__
from legal_workflow_orchestrator.core.config import OrchestratorConfig
from legal_workflow_orchestrator.core.errors import WorkflowCoreError
from legal_workflow_orchestrator.core.events import (
    DOCUMENT_CREATED,
    DOCUMENT_STATUS_CHANGED,
    WORKFLOW_CREATED,
    WORKFLOW_STEP_CHANGED,
    WORKFLOW_STEP_UPDATED,
)
from legal_workflow_orchestrator.core.orchestrator import Orchestrator
from legal_workflow_orchestrator.documents.models import DocumentStatus
from legal_workflow_orchestrator.workflow.models import WorkflowStepStatus

logger = logging.getLogger(__name__)

RECORDED_TOPICS = (
    DOCUMENT_CREATED,
    DOCUMENT_STATUS_CHANGED,
    WORKFLOW_CREATED,
    WORKFLOW_STEP_UPDATED,
    WORKFLOW_STEP_CHANGED,
)


def _dump(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, default=str)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="legal-workflow",
        description="In-memory legal document workflow core",
    )
    parser.add_argument(
        "--version", action="version", version=f"legal-workflow-orchestrator {__version__}"
    )
    parser.add_argument(
        "--templates-file",
        default=None,
        help="JSON file with extra workflow templates (overrides LEGAL_WORKFLOW_WORKFLOW_TEMPLATES_PATH)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("templates", help="Print the registered workflow templates as JSON")

    simulate = subparsers.add_parser(
        "simulate",
        help="Create a document, drive its workflow and print every published event",
    )
    simulate.add_argument("--template", default="standard", help="Document template name")
    simulate.add_argument("--title", default=None, help="Document title")
    simulate.add_argument(
        "--outcome",
        choices=("walk", "approve", "reject"),
        default="walk",
        help=(
            "walk: complete and advance every step, then approve the document; "
            "approve: approve the document directly; "
            "reject: reject the first step, then reject the document"
        ),
    )

    return parser


def _simulate(orchestrator: Orchestrator, args: argparse.Namespace) -> dict[str, Any]:
    documents = orchestrator.documents
    workflows = orchestrator.workflows

    document = documents.create_document(args.template, title=args.title)
    workflow = workflows.get_workflow_for_document(document.id)
    if workflow is None:
        raise WorkflowCoreError(f"No workflow was attached to document {document.id}")

    documents.update_status(document.id, DocumentStatus.IN_REVIEW)

    if args.outcome == "walk":
        while True:
            step = workflow.current_step
            workflows.update_step_status(
                workflow.id,
                step.id,
                WorkflowStepStatus.COMPLETED,
                comment=f"Completed by {step.assignee}",
            )
            if workflow.current_step_index >= len(workflow.steps) - 1:
                break
            workflows.move_to_next_step(workflow.id)
        documents.update_status(document.id, DocumentStatus.APPROVED)
    elif args.outcome == "approve":
        documents.update_status(document.id, DocumentStatus.APPROVED)
    else:
        step = workflow.current_step
        workflows.update_step_status(
            workflow.id, step.id, WorkflowStepStatus.REJECTED, comment="Rejected in review"
        )
        documents.update_status(document.id, DocumentStatus.REJECTED)

    return {
        "document": document.to_event_payload(),
        "workflow": workflow.to_event_payload(),
        "terminal": workflow.is_terminal,
    }


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = OrchestratorConfig()
        if args.templates_file:
            config.workflow.templates_path = Path(args.templates_file)
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    config.setup_logging()

    try:
        orchestrator = Orchestrator(config)

        if args.command == "templates":
            templates = orchestrator.templates
            print(
                json.dumps(
                    [templates.resolve(name).to_json() for name in templates.template_names()],
                    indent=2,
                    ensure_ascii=False,
                )
            )
            return 0

        if args.command == "simulate":
            for topic in RECORDED_TOPICS:
                orchestrator.bus.subscribe(
                    topic,
                    lambda payload, topic=topic: print(_dump({"topic": topic, "payload": payload})),
                )
            with orchestrator:
                result = _simulate(orchestrator, args)
            print(_dump(result))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ValidationError as e:
        print("Invalid workflow templates:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    except WorkflowCoreError as e:
        logger.warning(str(e))
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
