"""Unit tests for the workflow engine.

Covers creation, step updates, sequential advancement and the reactions to
document lifecycle events.
"""

from __future__ import annotations

import itertools

import pytest

from legal_workflow_orchestrator.core.errors import (
    DuplicateWorkflowError,
    InvalidStateError,
    NotFoundError,
)
from legal_workflow_orchestrator.core.events import (
    DOCUMENT_CREATED,
    DOCUMENT_STATUS_CHANGED,
    WORKFLOW_CREATED,
    WORKFLOW_STEP_CHANGED,
    WORKFLOW_STEP_UPDATED,
    EventBus,
)
from legal_workflow_orchestrator.core.notifications import MemoryNotifier
from legal_workflow_orchestrator.workflow.engine import WorkflowEngine
from legal_workflow_orchestrator.workflow.models import (
    Workflow,
    WorkflowStepStatus,
    WorkflowStepType,
)
from legal_workflow_orchestrator.workflow.templates import (
    StepDefinition,
    TemplateResolver,
    WorkflowTemplate,
)

S = WorkflowStepStatus


def _engine_with_steps(bus: EventBus, count: int) -> tuple[WorkflowEngine, Workflow]:
    types = [WorkflowStepType.REVIEW] + [WorkflowStepType.CUSTOM] * (count - 1)
    template = WorkflowTemplate(
        name=f"steps-{count}",
        steps=tuple(
            StepDefinition(type=t, name=f"Step {i}", assignee=f"user{i}@x")
            for i, t in enumerate(types)
        ),
    )
    engine = WorkflowEngine(bus, TemplateResolver([template]))
    return engine, engine.create_workflow("doc", template.name)


def _set_statuses(engine: WorkflowEngine, workflow: Workflow, statuses: tuple[S, ...]) -> None:
    for step, status in zip(workflow.steps, statuses, strict=True):
        engine.update_step_status(workflow.id, step.id, status)


# -- creation ---------------------------------------------------------------------


def test_create_workflow_shape(bus: EventBus, engine: WorkflowEngine, record_events) -> None:
    recorder = record_events(bus, WORKFLOW_CREATED)

    wf = engine.create_workflow("doc-1", "standard")

    assert wf.document_id == "doc-1"
    assert wf.name == "standard Workflow"
    assert wf.description == "Standard workflow for standard"
    assert wf.current_step_index == 0
    assert wf.status == S.PENDING
    assert [s.id for s in wf.steps] == [f"{wf.id}-1", f"{wf.id}-2", f"{wf.id}-3"]
    assert all(s.status == S.PENDING for s in wf.steps)
    assert [s.type for s in wf.steps] == [
        WorkflowStepType.REVIEW,
        WorkflowStepType.APPROVAL,
        WorkflowStepType.SIGNATURE,
    ]
    assert engine.get_workflow(wf.id) is wf
    assert engine.get_workflow_for_document("doc-1") is wf

    (payload,) = recorder.payloads(WORKFLOW_CREATED)
    assert payload["id"] == wf.id
    assert payload["documentId"] == "doc-1"
    assert payload["currentStepIndex"] == 0
    assert "document_id" not in payload
    assert len(payload["steps"]) == 3


def test_second_workflow_for_same_document_is_rejected(engine: WorkflowEngine) -> None:
    first = engine.create_workflow("doc-1", "standard")

    with pytest.raises(DuplicateWorkflowError) as excinfo:
        engine.create_workflow("doc-1", "other")

    assert isinstance(excinfo.value, InvalidStateError)
    assert excinfo.value.existing_workflow_id == first.id
    assert engine.list_workflows() == [first]


def test_lookup_by_document_is_stable(engine: WorkflowEngine) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    engine.create_workflow("doc-2", "standard")

    assert engine.get_workflow_for_document("doc-1") is wf
    assert engine.get_workflow_for_document("doc-1") is wf
    assert engine.get_workflow_for_document("unknown") is None
    assert engine.get_workflow("unknown") is None


# -- step updates ------------------------------------------------------------------


def test_update_step_status_stamps_completion_and_comment(
    bus: EventBus, engine: WorkflowEngine, record_events
) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    step = wf.steps[0]
    recorder = record_events(bus, WORKFLOW_STEP_UPDATED)

    returned = engine.update_step_status(wf.id, step.id, S.COMPLETED, comment="Looks good")

    assert returned is step
    assert step.status == S.COMPLETED
    assert step.completed_at is not None
    assert step.comments == ["Looks good"]
    assert recorder.payloads(WORKFLOW_STEP_UPDATED) == [
        {
            "workflowId": wf.id,
            "stepId": step.id,
            "oldStatus": "pending",
            "newStatus": "completed",
            "comment": "Looks good",
        }
    ]


def test_update_step_status_without_comment(engine: WorkflowEngine) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    step = wf.steps[1]

    engine.update_step_status(wf.id, step.id, "blocked")

    assert step.status == S.BLOCKED
    assert step.completed_at is None
    assert step.comments == []
    assert wf.status == S.BLOCKED


def test_update_step_status_unknown_workflow(bus: EventBus, engine, record_events) -> None:
    recorder = record_events(bus, WORKFLOW_STEP_UPDATED)
    with pytest.raises(NotFoundError) as excinfo:
        engine.update_step_status("missing", "missing-1", S.COMPLETED)
    assert excinfo.value.kind == "workflow"
    assert recorder.events == []


def test_update_step_status_unknown_step(engine: WorkflowEngine) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    with pytest.raises(NotFoundError) as excinfo:
        engine.update_step_status(wf.id, f"{wf.id}-99", S.COMPLETED)
    assert excinfo.value.kind == "step"


@pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
def test_all_completed_rolls_up_to_completed_in_any_order(
    engine: WorkflowEngine, order: tuple[int, ...]
) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    engine.update_step_status(wf.id, wf.steps[order[0]].id, S.REJECTED)
    for idx in order:
        engine.update_step_status(wf.id, wf.steps[idx].id, S.COMPLETED)
    assert wf.status == S.COMPLETED


def test_any_rejected_step_rejects_workflow(bus: EventBus) -> None:
    for statuses in itertools.product(list(S), repeat=3):
        if S.REJECTED not in statuses:
            continue
        engine, wf = _engine_with_steps(bus, 3)
        _set_statuses(engine, wf, statuses)
        assert wf.status == S.REJECTED, statuses


# -- advancement -------------------------------------------------------------------


@pytest.mark.parametrize("count", [2, 3, 5])
def test_move_requires_current_step_completed(bus: EventBus, count: int) -> None:
    for status in (S.PENDING, S.IN_PROGRESS, S.REJECTED, S.BLOCKED):
        engine, wf = _engine_with_steps(bus, count)
        engine.update_step_status(wf.id, wf.steps[0].id, status)
        with pytest.raises(InvalidStateError):
            engine.move_to_next_step(wf.id)
        assert wf.current_step_index == 0


@pytest.mark.parametrize("count", [1, 2, 4])
def test_move_fails_at_last_step_regardless_of_status(bus: EventBus, count: int) -> None:
    engine, wf = _engine_with_steps(bus, count)
    for _ in range(count - 1):
        engine.update_step_status(wf.id, wf.current_step.id, S.COMPLETED)
        engine.move_to_next_step(wf.id)

    assert wf.current_step_index == count - 1
    for status in S:
        engine.update_step_status(wf.id, wf.current_step.id, status)
        with pytest.raises(InvalidStateError, match="last step"):
            engine.move_to_next_step(wf.id)
    assert wf.current_step_index == count - 1


def test_move_unknown_workflow(engine: WorkflowEngine) -> None:
    with pytest.raises(NotFoundError):
        engine.move_to_next_step("missing")


def test_move_to_next_step_publishes_indices(
    bus: EventBus, engine: WorkflowEngine, record_events
) -> None:
    wf = engine.create_workflow("doc-1", "standard")
    engine.update_step_status(wf.id, wf.steps[0].id, S.COMPLETED)
    recorder = record_events(bus, WORKFLOW_STEP_CHANGED)

    next_step = engine.move_to_next_step(wf.id)

    assert next_step is wf.steps[1]
    assert recorder.payloads(WORKFLOW_STEP_CHANGED) == [
        {"workflowId": wf.id, "previousStep": 0, "currentStep": 1}
    ]


def test_scenario_a_rollup_gap_and_stale_status_after_move(engine: WorkflowEngine) -> None:
    wf = engine.create_workflow("doc1", "standard")
    assert len(wf.steps) == 3
    assert wf.current_step_index == 0
    assert wf.status == S.PENDING

    # Completed + Pending + Pending matches no rollup rule: status is kept.
    engine.update_step_status(wf.id, wf.steps[0].id, S.COMPLETED)
    assert wf.status == S.PENDING

    engine.move_to_next_step(wf.id)
    assert wf.current_step_index == 1
    assert wf.steps[1].status == S.IN_PROGRESS
    # Advancing does not recompute the aggregate status.
    assert wf.status == S.PENDING

    engine.update_step_status(wf.id, wf.steps[2].id, S.PENDING)
    assert wf.status == S.IN_PROGRESS


def test_regression_to_all_pending_keeps_in_progress(engine: WorkflowEngine) -> None:
    wf = engine.create_workflow("doc1", "standard")
    engine.update_step_status(wf.id, wf.steps[0].id, S.IN_PROGRESS)
    assert wf.status == S.IN_PROGRESS

    engine.update_step_status(wf.id, wf.steps[0].id, S.PENDING)
    assert all(s.status == S.PENDING for s in wf.steps)
    assert wf.status == S.IN_PROGRESS


# -- document event reactions ------------------------------------------------------


def test_document_created_attaches_standard_workflow(
    bus: EventBus, engine: WorkflowEngine, record_events
) -> None:
    recorder = record_events(bus, WORKFLOW_CREATED)

    bus.publish(DOCUMENT_CREATED, {"id": "doc1", "title": "NDA"})

    wf = engine.get_workflow_for_document("doc1")
    assert wf is not None
    assert wf.name == "standard Workflow"
    assert len(recorder.payloads(WORKFLOW_CREATED)) == 1


def test_document_created_failure_is_notified_not_raised(
    bus: EventBus, engine: WorkflowEngine, notifier: MemoryNotifier
) -> None:
    existing = engine.create_workflow("doc1", "standard")

    bus.publish(DOCUMENT_CREATED, {"id": "doc1"})

    assert engine.list_workflows() == [existing]
    (note,) = notifier.history()
    assert note.severity == "error"
    assert note.message.startswith("Failed to create workflow for document doc1")


@pytest.mark.parametrize("statuses", list(itertools.product(list(S), repeat=3)))
def test_document_approval_completes_every_step(
    bus: EventBus, statuses: tuple[S, ...]
) -> None:
    engine, wf = _engine_with_steps(bus, 3)
    engine.initialize()
    _set_statuses(engine, wf, statuses)

    bus.publish(
        DOCUMENT_STATUS_CHANGED,
        {"documentId": "doc", "oldStatus": "in-review", "newStatus": "approved"},
    )

    assert all(s.status == S.COMPLETED for s in wf.steps)
    assert all(s.completed_at is not None for s in wf.steps)
    assert wf.status == S.COMPLETED


def test_scenario_b_document_rejection_leaves_steps_untouched(
    bus: EventBus, engine: WorkflowEngine
) -> None:
    wf = engine.create_workflow("doc1", "standard")
    engine.update_step_status(wf.id, wf.steps[0].id, S.COMPLETED)
    before = [s.status for s in wf.steps]

    bus.publish(DOCUMENT_STATUS_CHANGED, {"documentId": "doc1", "newStatus": "rejected"})

    assert wf.status == S.REJECTED
    assert [s.status for s in wf.steps] == before


def test_other_document_statuses_do_not_touch_workflow(
    bus: EventBus, engine: WorkflowEngine
) -> None:
    wf = engine.create_workflow("doc1", "standard")

    bus.publish(DOCUMENT_STATUS_CHANGED, {"documentId": "doc1", "newStatus": "in-review"})
    bus.publish(DOCUMENT_STATUS_CHANGED, {"documentId": "doc1", "newStatus": "draft"})
    bus.publish(DOCUMENT_STATUS_CHANGED, {"documentId": "unknown", "newStatus": "approved"})

    assert wf.status == S.PENDING
    assert all(s.status == S.PENDING for s in wf.steps)


def test_scenario_c_unknown_workflow_id() -> None:
    engine = WorkflowEngine(EventBus())
    with pytest.raises(NotFoundError):
        engine.update_step_status("does-not-exist", "step-1", S.COMPLETED)


def test_dispose_unsubscribes_and_clears(bus: EventBus, engine: WorkflowEngine) -> None:
    engine.create_workflow("doc1", "standard")
    engine.dispose()

    assert engine.list_workflows() == []
    assert engine.get_workflow_for_document("doc1") is None
    assert not bus.has_subscribers(DOCUMENT_CREATED)
    assert not bus.has_subscribers(DOCUMENT_STATUS_CHANGED)

    bus.publish(DOCUMENT_CREATED, {"id": "doc2"})
    assert engine.list_workflows() == []
