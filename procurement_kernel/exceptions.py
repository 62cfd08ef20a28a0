"""
Typed Exception Hierarchy for the Procurement Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every workflow operation either returns the updated document or raises one
of the exceptions below. Callers catch by type and read structured
attributes; they never parse message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (entity id, current vs expected state)

Example:
    try:
        loi_service.issue(actor, quotation_id, "quotation", terms)
    except ConflictError as e:
        loi = loi_service.get(e.existing_id)   # idempotent retry
    except PreconditionError as e:
        api_response(code=e.code, state=e.current_state)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ProcurementError (base)
    |
    +-- ValidationError            malformed or missing input
    +-- InvalidStateError          action not allowed from the current state
    +-- ConflictError              duplicate / idempotency / lost-update
    +-- PreconditionError          predecessor not in the required state
    +-- NotFoundError              unknown id
    +-- AuthorizationError         caller role may not perform the action

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                 | When Raised
---------------------|--------------------------------------------------------
VALIDATION_ERROR     | Blank reason, non-positive price, bad percent, bad date
INVALID_STATE        | Editing an accepted enquiry, accepting a non-sent LOI
CONFLICT             | Second LOI for a source, second open invoice, stale write
PRECONDITION_FAILED  | Invoice for an unconfirmed order, order from a sent LOI
NOT_FOUND            | Entity id does not exist
UNAUTHORIZED_ACTOR   | Vendor approving a component, PM accepting an LOI

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Errors are never retried by the kernel. Retry policy belongs to the
   calling layer.
2. No transition partially applies. Services validate before writing and
   roll back on any exception, so the stored snapshot is unchanged.
===============================================================================
"""

from typing import Any


class ProcurementError(Exception):
    """
    Base exception for all procurement kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PROCUREMENT_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Structured payload suitable for an API error body."""
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, value in vars(self).items():
            if not key.startswith("_"):
                payload[key] = value
        return payload


class ValidationError(ProcurementError):
    """Input is malformed or a required field is missing."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidStateError(ProcurementError):
    """The action is not allowed from the entity's current state."""

    code: str = "INVALID_STATE"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        current_state: str,
        action: str,
        allowed_states: tuple[str, ...] = (),
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_state = current_state
        self.action = action
        self.allowed_states = tuple(allowed_states)
        allowed = ", ".join(self.allowed_states) or "none"
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id} in state "
            f"'{current_state}' (allowed from: {allowed})"
        )


class ConflictError(ProcurementError):
    """
    Duplicate creation or a concurrent modification.

    ``existing_id`` is set when the conflict is an idempotency hit, so the
    caller can fetch and return the document that already exists.
    """

    code: str = "CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        reason: str,
        existing_id: Any = None,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id) if entity_id is not None else None
        self.reason = reason
        self.existing_id = existing_id
        super().__init__(f"Conflict on {entity_type} {entity_id}: {reason}")


class PreconditionError(ProcurementError):
    """A predecessor document is not in the state the operation requires."""

    code: str = "PRECONDITION_FAILED"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        current_state: str,
        required_states: tuple[str, ...],
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_state = current_state
        self.required_states = tuple(required_states)
        super().__init__(
            f"{entity_type} {entity_id} is '{current_state}', "
            f"required: {', '.join(self.required_states)}"
        )


class NotFoundError(ProcurementError):
    """Entity with given ID was not found."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} not found: {entity_id}")


class AuthorizationError(ProcurementError):
    """The caller's role may not perform the requested action."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(
        self,
        actor_role: str,
        action: str,
        required_roles: tuple[str, ...] = (),
        reason: str | None = None,
    ):
        self.actor_role = actor_role
        self.action = action
        self.required_roles = tuple(required_roles)
        detail = reason or f"requires one of: {', '.join(self.required_roles)}"
        super().__init__(f"Role '{actor_role}' may not {action}: {detail}")
