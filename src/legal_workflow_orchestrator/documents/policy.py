"""Document status transition policies.

The registry consults a policy before every status update. The default policy
allows any status to follow any status; `StrictTransitionPolicy` enforces the
review lifecycle.
"""

from __future__ import annotations

from typing import Protocol

from legal_workflow_orchestrator.core.errors import InvalidStateError
from legal_workflow_orchestrator.documents.models import DocumentStatus

STRICT_TRANSITIONS: dict[DocumentStatus, set[DocumentStatus]] = {
    DocumentStatus.DRAFT: {DocumentStatus.IN_REVIEW},
    DocumentStatus.IN_REVIEW: {
        DocumentStatus.APPROVED,
        DocumentStatus.REJECTED,
        DocumentStatus.DRAFT,
    },
    DocumentStatus.REJECTED: {DocumentStatus.DRAFT},
    DocumentStatus.APPROVED: set(),
}


class DocumentTransitionPolicy(Protocol):
    def check(self, current: DocumentStatus, to: DocumentStatus) -> None:
        """Raise `InvalidStateError` if `current -> to` is not allowed."""
        ...


class PermissiveTransitionPolicy(DocumentTransitionPolicy):
    def check(self, current: DocumentStatus, to: DocumentStatus) -> None:
        return None


class StrictTransitionPolicy(DocumentTransitionPolicy):
    def __init__(
        self, transitions: dict[DocumentStatus, set[DocumentStatus]] | None = None
    ) -> None:
        self._transitions = transitions if transitions is not None else STRICT_TRANSITIONS

    def check(self, current: DocumentStatus, to: DocumentStatus) -> None:
        allowed = self._transitions.get(current, set())
        if to not in allowed:
            raise InvalidStateError(
                f"Illegal document transition: {current.value} -> {to.value}"
            )


def policy_for(strict: bool) -> DocumentTransitionPolicy:
    return StrictTransitionPolicy() if strict else PermissiveTransitionPolicy()
