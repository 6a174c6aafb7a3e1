"""FastAPI server adapter for legal-workflow-orchestrator.

This module exposes the core's document and workflow operations over REST.

Design intent:
- Keep business logic in `legal_workflow_orchestrator.documents` / `.workflow`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from legal_workflow_orchestrator.server.app import create_app
