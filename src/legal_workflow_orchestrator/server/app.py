"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the orchestrator components.
They are declared `async` so they all run on the event loop thread: the core
stores are not locked and must never be mutated from two threads at once.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legal_workflow_orchestrator import __version__
from legal_workflow_orchestrator.core.errors import InvalidStateError, NotFoundError
from legal_workflow_orchestrator.core.notifications import MemoryNotifier
from legal_workflow_orchestrator.core.orchestrator import Orchestrator
from legal_workflow_orchestrator.documents.models import Document, DocumentStatus
from legal_workflow_orchestrator.server.config import ServerSettings
from legal_workflow_orchestrator.server.models import (
    CreateDocumentRequest,
    CreateWorkflowRequest,
    UpdateDocumentStatusRequest,
    UpdateStepStatusRequest,
)
from legal_workflow_orchestrator.workflow.models import Workflow, WorkflowStep

logger = logging.getLogger(__name__)


def _not_found_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _invalid_state_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app(
    orchestrator: Orchestrator | None = None, settings: ServerSettings | None = None
) -> FastAPI:
    settings = settings or ServerSettings()
    core = orchestrator or Orchestrator()
    core.initialize()

    app = FastAPI(
        title="Legal Workflow Orchestrator",
        version=__version__,
        description="REST API over the document registry and workflow engine.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.orchestrator = core

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(InvalidStateError, _invalid_state_handler)

    documents = core.documents
    workflows = core.workflows

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    # -- documents -----------------------------------------------------------

    @app.post("/api/documents", response_model=Document, status_code=201)
    async def create_document(req: CreateDocumentRequest) -> Document:
        return documents.create_document(
            req.template,
            title=req.title,
            author=req.author,
            tags=req.tags,
            jurisdiction=req.jurisdiction,
        )

    @app.get("/api/documents", response_model=list[Document])
    async def list_documents(
        status: DocumentStatus | None = None,
        author: str | None = None,
        type: str | None = None,  # noqa: A002 (query parameter name)
    ) -> list[Document]:
        criteria: dict[str, object] = {}
        if status is not None:
            criteria["status"] = status
        if author is not None:
            criteria["author"] = author
        if type is not None:
            criteria["type"] = type
        return documents.search_documents(criteria)

    @app.get("/api/documents/{document_id}", response_model=Document)
    async def get_document(document_id: str) -> Document:
        document = documents.get_document(document_id)
        if document is None:
            raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
        return document

    @app.post("/api/documents/{document_id}/status", response_model=Document)
    async def update_document_status(
        document_id: str, req: UpdateDocumentStatusRequest
    ) -> Document:
        return documents.update_status(document_id, req.status)

    @app.get("/api/documents/{document_id}/workflow", response_model=Workflow)
    async def get_document_workflow(document_id: str) -> Workflow:
        workflow = workflows.get_workflow_for_document(document_id)
        if workflow is None:
            raise HTTPException(
                status_code=404, detail=f"No workflow attached to document {document_id}"
            )
        return workflow

    # -- workflows -----------------------------------------------------------

    @app.get("/api/workflows", response_model=list[Workflow])
    async def list_workflows() -> list[Workflow]:
        return workflows.list_workflows()

    @app.post("/api/workflows", response_model=Workflow, status_code=201)
    async def create_workflow(req: CreateWorkflowRequest) -> Workflow:
        return workflows.create_workflow(req.document_id, req.template)

    @app.get("/api/workflows/{workflow_id}", response_model=Workflow)
    async def get_workflow(workflow_id: str) -> Workflow:
        workflow = workflows.get_workflow(workflow_id)
        if workflow is None:
            raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
        return workflow

    @app.post("/api/workflows/{workflow_id}/steps/{step_id}/status", response_model=WorkflowStep)
    async def update_step_status(
        workflow_id: str, step_id: str, req: UpdateStepStatusRequest
    ) -> WorkflowStep:
        return workflows.update_step_status(workflow_id, step_id, req.status, req.comment)

    @app.post("/api/workflows/{workflow_id}/advance", response_model=WorkflowStep)
    async def advance_workflow(workflow_id: str) -> WorkflowStep:
        return workflows.move_to_next_step(workflow_id)

    # -- reference data ------------------------------------------------------

    @app.get("/api/templates")
    async def list_templates() -> list[dict[str, object]]:
        return [core.templates.resolve(name).to_json() for name in core.templates.template_names()]

    @app.get("/api/notifications")
    async def list_notifications() -> list[dict[str, object]]:
        notifier = core.notifier
        if not isinstance(notifier, MemoryNotifier):
            return []
        return [n.to_json() for n in notifier.history()]

    logger.info("REST app created", extra={"version": __version__})
    return app
