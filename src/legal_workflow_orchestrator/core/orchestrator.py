"""Composition root wiring the bus, registry, resolver and engine."""

from __future__ import annotations

import logging
from types import TracebackType

from legal_workflow_orchestrator.core.config import OrchestratorConfig
from legal_workflow_orchestrator.core.events import EventBus
from legal_workflow_orchestrator.core.notifications import MemoryNotifier, Notifier
from legal_workflow_orchestrator.documents.registry import DocumentRegistry
from legal_workflow_orchestrator.workflow.engine import WorkflowEngine
from legal_workflow_orchestrator.workflow.templates import TemplateResolver

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns one instance of every core component.

    Components receive their collaborators through their constructors; there is
    no module-level state, so several orchestrators can live side by side
    (tests rely on this).
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        *,
        bus: EventBus | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Build the components.

        Args:
            config: Configuration object. If None, loads from environment.
            bus: Event bus to publish on. A private one is created if None.
            notifier: Sink for user notifications. Defaults to an in-memory one.
        """
        self.config = config or OrchestratorConfig()
        self.bus = bus or EventBus()
        self.notifier: Notifier = notifier or MemoryNotifier(
            maxlen=self.config.workflow.notification_history
        )

        self.templates = TemplateResolver.from_path(self.config.workflow.templates_path)
        self.documents = DocumentRegistry(
            self.bus, self.config.documents, notifier=self.notifier
        )
        self.workflows = WorkflowEngine(
            self.bus,
            self.templates,
            default_template=self.config.workflow.default_template,
            notifier=self.notifier,
        )
        self._initialized = False

    def initialize(self) -> Orchestrator:
        if self._initialized:
            return self
        # Engine first: its document.created reaction must run before anything
        # that reads the attached workflow.
        self.workflows.initialize()
        self.documents.initialize()
        self._initialized = True
        logger.info(
            "Orchestrator initialized",
            extra={"templates": self.templates.template_names()},
        )
        return self

    def dispose(self) -> None:
        self.documents.dispose()
        self.workflows.dispose()
        self._initialized = False
        logger.info("Orchestrator disposed")

    def __enter__(self) -> Orchestrator:
        return self.initialize()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()
