"""
Tests for WorkflowExecutor (procurement_services.workflow_executor).

Covers:
- execute_transition() success, role gate, missing transition, duplicate
  terminal outcome and reason gate
- record_creation() trace
- Outcome sink receives one record per traced outcome
"""

from uuid import uuid4

import pytest

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    ValidationError,
)
from procurement_services.workflow_executor import (
    OUTCOME_CREATED,
    OUTCOME_DUPLICATE,
    OUTCOME_SUCCESS,
    OUTCOME_UNAUTHORIZED,
    TRACE_TYPE_WORKFLOW_TRANSITION,
    WorkflowExecutor,
)

# ---------------------------------------------------------------------------
# Reusable test data builders
# ---------------------------------------------------------------------------

DOCUMENT_WORKFLOW = Workflow(
    name="document",
    description="test lifecycle",
    initial_state="draft",
    states=("draft", "review", "approved", "rejected"),
    transitions=(
        Transition("draft", "review", action="submit"),
        Transition("review", "approved", action="approve", roles=("purchasing_manager",)),
        Transition(
            "review",
            "rejected",
            action="reject",
            roles=("purchasing_manager",),
            requires_reason=True,
        ),
    ),
    terminal_states=("approved", "rejected"),
)


@pytest.fixture
def executor(deterministic_clock):
    return WorkflowExecutor(clock=deterministic_clock)


@pytest.fixture
def sink():
    return []


# =============================================================================
# execute_transition
# =============================================================================


class TestExecuteTransition:

    def test_success_returns_transition(self, executor, pm, sink):
        transition = executor.execute_transition(
            DOCUMENT_WORKFLOW, "document", uuid4(), "review", "approve", pm,
            outcome_sink=sink.append,
        )
        assert transition.to_state == "approved"
        assert len(sink) == 1
        record = sink[0]
        assert record["trace_type"] == TRACE_TYPE_WORKFLOW_TRANSITION
        assert record["outcome"] == OUTCOME_SUCCESS
        assert record["from_state"] == "review"
        assert record["to_state"] == "approved"
        assert record["actor_role"] == "purchasing_manager"

    def test_any_role_when_roles_empty(self, executor, vendor):
        transition = executor.execute_transition(
            DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "submit", vendor
        )
        assert transition.to_state == "review"

    def test_role_gate(self, executor, vendor, sink):
        with pytest.raises(AuthorizationError) as exc_info:
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "review", "approve", vendor,
                outcome_sink=sink.append,
            )
        assert exc_info.value.required_roles == ("purchasing_manager",)
        assert sink[0]["outcome"] == OUTCOME_UNAUTHORIZED

    def test_role_checked_before_state(self, executor, vendor):
        # Wrong role AND wrong state: the role error wins
        with pytest.raises(AuthorizationError):
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "approve", vendor
            )

    def test_no_transition_is_invalid_state(self, executor, pm):
        with pytest.raises(InvalidStateError) as exc_info:
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "approve", pm
            )
        err = exc_info.value
        assert err.current_state == "draft"
        assert err.action == "approve"
        assert err.allowed_states == ("review",)

    def test_repeating_terminal_action_is_conflict(self, executor, pm, sink):
        with pytest.raises(ConflictError):
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "approved", "approve", pm,
                outcome_sink=sink.append,
            )
        assert sink[0]["outcome"] == OUTCOME_DUPLICATE

    def test_other_action_from_terminal_is_invalid_state(self, executor, pm):
        with pytest.raises(InvalidStateError):
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "approved", "reject", pm, reason="x"
            )

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_gate(self, executor, pm, reason):
        with pytest.raises(ValidationError) as exc_info:
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "review", "reject", pm, reason=reason
            )
        assert exc_info.value.field == "reason"

    def test_unknown_action_is_programming_error(self, executor, pm):
        with pytest.raises(ValueError):
            executor.execute_transition(
                DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "teleport", pm
            )

    def test_details_carried_on_record(self, executor, pm, sink):
        executor.execute_transition(
            DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "submit", pm,
            details={"note": "first pass"}, outcome_sink=sink.append,
        )
        assert sink[0]["details"] == {"note": "first pass"}

    def test_trace_logged(self, executor, pm, captured_logs):
        entity_id = uuid4()
        executor.execute_transition(
            DOCUMENT_WORKFLOW, "document", entity_id, "draft", "submit", pm
        )
        traces = [r for r in captured_logs() if r["message"] == "workflow_transition"]
        assert traces[-1]["entity_id"] == str(entity_id)
        assert traces[-1]["level"] == "INFO"

    def test_clock_timestamp(self, executor, pm, sink, deterministic_clock):
        executor.execute_transition(
            DOCUMENT_WORKFLOW, "document", uuid4(), "draft", "submit", pm,
            outcome_sink=sink.append,
        )
        assert sink[0]["ts"] == deterministic_clock.now().isoformat()


class TestRecordCreation:

    def test_created_record(self, executor, pm, sink):
        executor.record_creation(
            DOCUMENT_WORKFLOW, "document", uuid4(), pm, outcome_sink=sink.append
        )
        record = sink[0]
        assert record["outcome"] == OUTCOME_CREATED
        assert record["action"] == "create"
        assert record["from_state"] is None
        assert record["to_state"] == "draft"

    def test_created_in_explicit_state(self, executor, vendor, sink):
        executor.record_creation(
            DOCUMENT_WORKFLOW, "document", uuid4(), vendor, state="review",
            outcome_sink=sink.append,
        )
        assert sink[0]["to_state"] == "review"
        assert sink[0]["actor_role"] == "vendor"
