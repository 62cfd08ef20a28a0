"""
procurement_services.workflow_executor -- Central transition enforcement.

Responsibility:
    The only code that interprets a module's ``Workflow`` table.  Given an
    entity's current state, an action and the calling actor, it either
    returns the matching ``Transition`` or raises the typed error that
    explains why the action is not allowed.  Every outcome is traced.

Architecture position:
    Services layer.  Imports from procurement_kernel only.  Module services
    call ``execute_transition`` before mutating a document and
    ``record_creation`` after inserting one.

Invariants enforced:
    - Role checks happen once, here, from ``Transition.roles``.
    - An action with no row for the current state raises
      InvalidStateError, except that repeating the action that produced a
      terminal state raises ConflictError (duplicate outcome).
    - ``requires_reason`` transitions reject blank reasons with
      ValidationError.
    - The executor never mutates the entity; the caller writes the new
      state with a compare-and-swap save.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any
from uuid import UUID

from procurement_kernel.domain.actor import Actor
from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    ValidationError,
)
from procurement_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.workflow_executor")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_CREATED = "created"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_UNAUTHORIZED = "unauthorized"
OUTCOME_REASON_MISSING = "reason_missing"

OutcomeSink = Callable[[dict], None]


def _emit_workflow_trace(
    workflow_name: str,
    action: str,
    entity_type: str,
    entity_id: UUID,
    from_state: str | None,
    outcome: str,
    reason: str,
    duration_ms: float,
    actor: Actor,
    ts: str,
    to_state: str | None = None,
    details: dict[str, Any] | None = None,
    outcome_sink: OutcomeSink | None = None,
) -> None:
    """Emit a structured workflow transition record."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": ts,
        "workflow": workflow_name,
        "action": action,
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
        "actor_id": str(actor.actor_id),
        "actor_role": actor.role.value,
    }
    if to_state is not None:
        record["to_state"] = to_state
    if details:
        record["details"] = details
    for key, val in LogContext.get_all().items():
        record.setdefault(key, val)

    if outcome in (OUTCOME_SUCCESS, OUTCOME_CREATED):
        logger.info("workflow_transition", extra=record)
    else:
        logger.warning("workflow_transition", extra=record)

    if outcome_sink is not None:
        outcome_sink(dict(record, message="workflow_transition"))


class WorkflowExecutor:
    """Executes workflow transitions with role and reason enforcement.

    Thin coordinator: the tables live in each module's ``workflows.py``;
    persistence and cross-entity rules live in the module services.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()

    def execute_transition(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: UUID,
        current_state: str,
        action: str,
        actor: Actor,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
        outcome_sink: OutcomeSink | None = None,
    ) -> Transition:
        """Resolve ``action`` from ``current_state`` or raise.

        Raises:
            AuthorizationError: actor role not listed on the action.
            ConflictError: the action already produced this terminal state.
            InvalidStateError: no transition for (current_state, action).
            ValidationError: the transition requires a reason and none given.
        """
        t0 = time.monotonic()

        def trace(outcome: str, why: str, to_state: str | None = None) -> None:
            _emit_workflow_trace(
                workflow_name=workflow.name,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                from_state=current_state,
                outcome=outcome,
                reason=why,
                duration_ms=(time.monotonic() - t0) * 1000,
                actor=actor,
                ts=self._clock.now().isoformat(),
                to_state=to_state,
                details=details,
                outcome_sink=outcome_sink,
            )

        candidates = [t for t in workflow.transitions if t.action == action]
        if not candidates:
            raise ValueError(f"Workflow '{workflow.name}' has no action '{action}'")

        # 1. Role gate
        allowed_roles = {role for t in candidates for role in t.roles}
        if allowed_roles and actor.role.value not in allowed_roles:
            trace(OUTCOME_UNAUTHORIZED, f"role '{actor.role.value}' may not {action}")
            raise AuthorizationError(
                actor.role.value, f"{action} {entity_type}", tuple(sorted(allowed_roles))
            )

        # 2. Transition lookup
        transition = workflow.find(current_state, action)
        if transition is None:
            sources = workflow.sources_for(action)
            if (
                current_state in workflow.terminal_states
                and current_state in workflow.targets_for(action)
            ):
                trace(OUTCOME_DUPLICATE, f"already {current_state}")
                raise ConflictError(
                    entity_type, entity_id, f"already {current_state}"
                )
            trace(
                OUTCOME_NO_TRANSITION,
                f"No transition from '{current_state}' via action '{action}' "
                f"in workflow '{workflow.name}'",
            )
            raise InvalidStateError(
                entity_type, entity_id, current_state, action, sources
            )

        # 3. Reason gate
        if transition.requires_reason and not (reason or "").strip():
            trace(OUTCOME_REASON_MISSING, "reason is required")
            raise ValidationError("reason", f"a reason is required to {action}")

        trace(OUTCOME_SUCCESS, "transition allowed", to_state=transition.to_state)
        return transition

    def record_creation(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: UUID,
        actor: Actor,
        state: str | None = None,
        details: dict[str, Any] | None = None,
        outcome_sink: OutcomeSink | None = None,
    ) -> None:
        """Trace the birth of a document (in its initial state unless given)."""
        _emit_workflow_trace(
            workflow_name=workflow.name,
            action="create",
            entity_type=entity_type,
            entity_id=entity_id,
            from_state=None,
            outcome=OUTCOME_CREATED,
            reason="document created",
            duration_ms=0.0,
            actor=actor,
            ts=self._clock.now().isoformat(),
            to_state=state or workflow.initial_state,
            details=details,
            outcome_sink=outcome_sink,
        )
