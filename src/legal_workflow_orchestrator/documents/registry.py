"""Document registry: owns document metadata and lifecycle status.

The registry knows nothing about workflows. It publishes lifecycle events on
the bus and lets other components react to them.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from legal_workflow_orchestrator.core.config import DocumentConfig
from legal_workflow_orchestrator.core.errors import NotFoundError
from legal_workflow_orchestrator.core.events import (
    DOCUMENT_CREATED,
    DOCUMENT_MODIFIED,
    DOCUMENT_STATUS_CHANGED,
    EventBus,
)
from legal_workflow_orchestrator.core.notifications import LoggingNotifier, Notifier
from legal_workflow_orchestrator.documents.models import Document, DocumentStatus, utc_now
from legal_workflow_orchestrator.documents.policy import DocumentTransitionPolicy, policy_for

logger = logging.getLogger(__name__)

_MISSING = object()


class DocumentRegistry:
    """In-memory store of documents keyed by id."""

    def __init__(
        self,
        bus: EventBus,
        config: DocumentConfig | None = None,
        *,
        policy: DocumentTransitionPolicy | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._bus = bus
        self.config = config or DocumentConfig()
        self._policy = policy or policy_for(self.config.strict_document_transitions)
        self._notifier = notifier or LoggingNotifier()
        self._documents: dict[str, Document] = {}
        self._subscription_ids: list[tuple[str, str]] = []

    def initialize(self) -> None:
        """Subscribe to the document events the registry reacts to."""

        if self._subscription_ids:
            return
        for topic, handler in (
            (DOCUMENT_CREATED, self._on_document_created),
            (DOCUMENT_MODIFIED, self._on_document_modified),
            (DOCUMENT_STATUS_CHANGED, self._on_status_changed),
        ):
            self._subscription_ids.append((topic, self._bus.subscribe(topic, handler)))

    def dispose(self) -> None:
        for topic, sub_id in self._subscription_ids:
            self._bus.unsubscribe(topic, sub_id)
        self._subscription_ids.clear()
        self._documents.clear()

    def create_document(
        self,
        template: str,
        *,
        title: str | None = None,
        author: str | None = None,
        tags: list[str] | None = None,
        jurisdiction: str | None = None,
    ) -> Document:
        doc_id = uuid.uuid4().hex
        now = utc_now()
        document = Document(
            id=doc_id,
            title=title or f"New Document {doc_id}",
            type=template,
            status=DocumentStatus.DRAFT,
            created_at=now,
            modified_at=now,
            author=author or self.config.default_author,
            version=self.config.initial_version,
            tags=list(tags or []),
            jurisdiction=jurisdiction,
        )
        self._documents[doc_id] = document
        logger.info("Document created", extra={"document_id": doc_id, "template": template})

        self._bus.publish(DOCUMENT_CREATED, document.to_event_payload())
        return document

    def update_status(self, document_id: str, new_status: DocumentStatus | str) -> Document:
        document = self._require(document_id)
        target = DocumentStatus(new_status)
        old_status = document.status

        self._policy.check(old_status, target)

        document.status = target
        document.modified_at = utc_now()
        logger.info(
            "Document status changed",
            extra={
                "document_id": document_id,
                "old_status": old_status.value,
                "new_status": target.value,
            },
        )

        self._bus.publish(
            DOCUMENT_STATUS_CHANGED,
            {"documentId": document_id, "oldStatus": old_status.value, "newStatus": target.value},
        )
        return document

    def mark_modified(self, document_id: str) -> Document:
        document = self._require(document_id)
        document.modified_at = utc_now()
        return document

    def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    def search_documents(
        self, criteria: Mapping[str, Any] | None = None, **fields: Any
    ) -> list[Document]:
        """Exact-match conjunction over the provided fields only.

        A field documents do not have matches nothing; no criteria matches all.
        """

        wanted = {**(criteria or {}), **fields}
        return [
            doc
            for doc in self._documents.values()
            if all(getattr(doc, key, _MISSING) == value for key, value in wanted.items())
        ]

    def _require(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError("document", document_id)
        return document

    def _on_document_created(self, payload: Mapping[str, Any]) -> None:
        self._notifier.notify("info", f"Created new document: {payload.get('title')}")

    def _on_document_modified(self, payload: Mapping[str, Any]) -> None:
        document_id = payload.get("documentId")
        if isinstance(document_id, str) and document_id in self._documents:
            self.mark_modified(document_id)

    def _on_status_changed(self, payload: Mapping[str, Any]) -> None:
        self._notifier.notify(
            "info",
            f"Document {payload.get('documentId')} status changed from "
            f"{payload.get('oldStatus')} to {payload.get('newStatus')}",
        )
