"""Test configuration and fixtures."""

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from legal_workflow_orchestrator.core.config import (
    DocumentConfig,
    OrchestratorConfig,
    WorkflowConfig,
)
from legal_workflow_orchestrator.core.events import EventBus
from legal_workflow_orchestrator.core.notifications import MemoryNotifier
from legal_workflow_orchestrator.core.orchestrator import Orchestrator
from legal_workflow_orchestrator.workflow.engine import WorkflowEngine


class EventRecorder:
    """Collects (topic, payload) pairs published on a bus."""

    def __init__(self, bus: EventBus, *topics: str) -> None:
        self.events: list[tuple[str, Any]] = []
        for topic in topics:
            bus.subscribe(topic, lambda payload, topic=topic: self.events.append((topic, payload)))

    def payloads(self, topic: str) -> list[Any]:
        return [payload for t, payload in self.events if t == topic]

    def topics(self) -> list[str]:
        return [t for t, _ in self.events]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's `.env` and LEGAL_WORKFLOW_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("LEGAL_WORKFLOW_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def bus() -> EventBus:
    """Provide a fresh event bus."""
    return EventBus()


@pytest.fixture
def notifier() -> MemoryNotifier:
    return MemoryNotifier()


@pytest.fixture
def engine(bus: EventBus, notifier: MemoryNotifier) -> WorkflowEngine:
    """Provide an initialized workflow engine on its own bus."""
    workflow_engine = WorkflowEngine(bus, notifier=notifier)
    workflow_engine.initialize()
    return workflow_engine


@pytest.fixture
def orchestrator_config() -> OrchestratorConfig:
    """Provide a test orchestrator configuration."""
    return OrchestratorConfig(
        log_level="DEBUG",
        debug=True,
        documents=DocumentConfig(default_author="tester@example.com"),
        workflow=WorkflowConfig(default_template="standard"),
    )


@pytest.fixture
def orchestrator(orchestrator_config: OrchestratorConfig) -> Iterator[Orchestrator]:
    """Provide an initialized orchestrator, disposed after the test."""
    with Orchestrator(orchestrator_config) as core:
        yield core


@pytest.fixture
def record_events() -> Callable[..., EventRecorder]:
    """Provide a factory attaching an EventRecorder to a bus."""
    return EventRecorder
