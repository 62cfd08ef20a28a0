"""
Shared helpers for module services.

Used by procurement_modules/*/service.py to reduce duplication in actor
checks, boundary parsing, transaction scoping and state transitions.

Architecture: Modules layer.  Imports only from procurement_kernel,
procurement_services and procurement_config.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from procurement_config import ProcurementSettings
from procurement_kernel.db.types import HUNDRED, ZERO, to_decimal
from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.exceptions import AuthorizationError, ValidationError
from procurement_kernel.logging_config import LogContext, get_logger
from procurement_kernel.repository import SqlAlchemyRepository
from procurement_kernel.services.sequence_service import SequenceService
from procurement_services.audit import AuditPublisher, AuditSink
from procurement_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.service")

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------------------
# Actor checks
# ---------------------------------------------------------------------------


def require_role(actor: Actor, role: ActorRole, action: str) -> None:
    """Raise AuthorizationError unless ``actor`` has ``role``."""
    if actor.role is not role:
        raise AuthorizationError(actor.role.value, action, (role.value,))


def require_vendor_scope(actor: Actor, vendor_id: UUID, action: str) -> None:
    """Vendors may only touch their own documents; managers see all."""
    if actor.is_vendor and actor.vendor_id != vendor_id:
        raise AuthorizationError(
            actor.role.value,
            action,
            reason="document belongs to another vendor",
        )


# ---------------------------------------------------------------------------
# Boundary parsing
# ---------------------------------------------------------------------------


def require_text(value: Any, field: str) -> str:
    """Non-blank string, stripped."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "must not be blank")
    return value.strip()


def optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "must be a string")
    return value.strip() or None


def parse_date(value: Any, field: str) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(field, f"not a valid calendar date: {value!r}") from exc
    raise ValidationError(field, "a date is required")


def parse_percent(value: Any, field: str, upper: Decimal | None = HUNDRED) -> Decimal:
    """Percent >= 0 and, unless ``upper`` is None, <= upper."""
    result = to_decimal(value, field)
    if result < ZERO:
        raise ValidationError(field, "must not be negative")
    if upper is not None and result > upper:
        raise ValidationError(field, f"must not exceed {upper}")
    return result


def parse_positive(value: Any, field: str) -> Decimal:
    result = to_decimal(value, field)
    if result <= ZERO:
        raise ValidationError(field, "must be greater than zero")
    return result


def parse_non_negative(value: Any, field: str) -> Decimal:
    result = to_decimal(value, field)
    if result < ZERO:
        raise ValidationError(field, "must not be negative")
    return result


def parse_int(value: Any, field: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer")
    if value < minimum:
        raise ValidationError(field, f"must be at least {minimum}")
    return value


def parse_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, f"not a valid id: {value!r}") from exc


def parse_choice(choices: type[E], value: Any, field: str) -> E:
    """Enum member for ``value``; an unknown value is a ValidationError."""
    try:
        return choices(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in choices)
        raise ValidationError(field, f"must be one of: {allowed}") from exc


# ---------------------------------------------------------------------------
# Service base
# ---------------------------------------------------------------------------


class DocumentService:
    """
    Common wiring for the document services.

    Contract
    --------
    * Every public mutating method runs inside ``_operation``, which owns
      the transaction: commit on success, rollback and re-raise otherwise.
    * Audit records collected during the operation are published only after
      the commit succeeded.  Sink failures never undo the commit.
    * State changes go through ``_apply_transition``: the workflow executor
      decides, the repository writes with a compare-and-swap on status.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit_sink: AuditSink | None = None,
        settings: ProcurementSettings | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._repo = SqlAlchemyRepository(session)
        self._executor = WorkflowExecutor(clock=self._clock)
        self._audit = AuditPublisher(audit_sink)
        self._sequences = SequenceService(session)
        self._settings = settings or ProcurementSettings.with_defaults()

    @contextmanager
    def _operation(self, actor: Actor, name: str, **fields: Any) -> Iterator[list[dict]]:
        records: list[dict] = []
        correlation_id = LogContext.get("correlation_id") or uuid4().hex
        with LogContext.bind(
            correlation_id=correlation_id, actor_id=actor.actor_id, actor_role=actor.role.value
        ):
            logger.info(f"{name}_started", extra=fields)
            try:
                with self._repo.transaction():
                    yield records
            except Exception as exc:
                logger.warning(
                    f"{name}_rolled_back",
                    extra=dict(fields, error_code=getattr(exc, "code", type(exc).__name__)),
                )
                raise
            logger.info(f"{name}_committed", extra=fields)
            self._audit.publish(records)

    def _apply_transition(
        self,
        row: Any,
        workflow: Workflow,
        action: str,
        actor: Actor,
        records: list[dict],
        *,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
        **changes: Any,
    ) -> Transition:
        """Fire ``action`` on ``row`` and persist the new status."""
        prior = row.status
        transition = self._executor.execute_transition(
            workflow,
            row.entity_type,
            row.id,
            prior,
            action,
            actor,
            reason=reason,
            details=details,
            outcome_sink=records.append,
        )
        row.status = transition.to_state
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_by_id = actor.actor_id
        self._repo.save(row, expected_status=prior)
        return transition

    def _record_creation(
        self,
        row: Any,
        workflow: Workflow,
        actor: Actor,
        records: list[dict],
        details: dict[str, Any] | None = None,
    ) -> None:
        self._executor.record_creation(
            workflow,
            row.entity_type,
            row.id,
            actor,
            state=row.status,
            details=details,
            outcome_sink=records.append,
        )
