"""Document metadata owned by the document registry."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    IN_REVIEW = "in-review"
    APPROVED = "approved"
    REJECTED = "rejected"


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Document(BaseModel):
    """Metadata and lifecycle status of a legal document.

    Instances handed out by the registry are its stored records; mutate them
    only through `DocumentRegistry` operations.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    type: str = Field(description="Template the document was created from")
    status: DocumentStatus = DocumentStatus.DRAFT
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)
    author: str
    version: str = "1.0.0"
    tags: list[str] = Field(default_factory=list)

    jurisdiction: str | None = None
    related_documents: list[str] = Field(default_factory=list)

    def to_event_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
