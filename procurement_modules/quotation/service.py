"""
Quotation Module Service (``procurement_modules.quotation.service``).

Responsibility
--------------
Vendor quotation issuance and the negotiation loop around it.

Negotiation protocol
--------------------
The purchasing manager answers a quotation with ``file_counter``:

* ``accept``    -- quotation -> accepted; counter born ``accepted``.
* ``reject``    -- quotation -> rejected (reason required); counter born
  ``rejected``.
* ``negotiate`` -- quotation -> negotiating; counter born ``pending`` with
  proposed lines and notes.

The vendor answers a pending ``negotiate`` counter with
``resolve_counter``; the decision propagates to the quotation.  Filing a
new counter supersedes any counter still pending.  Whenever a quotation
becomes accepted its enquiry becomes accepted in the same transaction.

Invariants enforced
-------------------
* ``total_amount`` = sum of line totals computed by
  ``procurement_engines.pricing.quotation_line_total``.
* Quotation status is written with a compare-and-swap on the status the
  decision was based on; of two concurrent accepts exactly one commits.
* A quotation is accepted at most once (repeat -> ConflictError).

Failure modes
-------------
* ValidationError -- bad dates, percents, items, missing reason or notes.
* PreconditionError -- the enquiry is no longer open for quotations.
* InvalidStateError / ConflictError -- action not allowed from the
  current state / already done or lost a race.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID, uuid4

from procurement_engines.pricing import document_total
from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import PreconditionError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_modules._lines import line_snapshots, parse_priced_lines
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_date,
    parse_percent,
    parse_uuid,
    require_role,
    require_text,
    require_vendor_scope,
)
from procurement_modules.catalog.orm import ComponentModel
from procurement_modules.enquiry.models import EnquiryStatus
from procurement_modules.enquiry.orm import EnquiryModel
from procurement_modules.enquiry.workflows import ENQUIRY_WORKFLOW
from procurement_modules.quotation.models import (
    CounterAction,
    CounterFilingResult,
    CounterQuotation,
    CounterStatus,
    Quotation,
)
from procurement_modules.quotation.orm import (
    CounterQuotationItemModel,
    CounterQuotationModel,
    QuotationItemModel,
    QuotationModel,
)
from procurement_modules.quotation.workflows import (
    COUNTER_QUOTATION_WORKFLOW,
    QUOTATION_WORKFLOW,
)

logger = get_logger("modules.quotation.service")

_QUOTABLE = (EnquiryStatus.RAISED.value, EnquiryStatus.QUOTED.value)

# Status a counter is born with, per action.
_COUNTER_INITIAL_STATUS = {
    CounterAction.ACCEPT: CounterStatus.ACCEPTED,
    CounterAction.REJECT: CounterStatus.REJECTED,
    CounterAction.NEGOTIATE: CounterStatus.PENDING,
}


def _parse_action(value: Any, field: str = "action") -> CounterAction:
    try:
        return CounterAction(value)
    except ValueError as exc:
        allowed = ", ".join(a.value for a in CounterAction)
        raise ValidationError(field, f"must be one of: {allowed}") from exc


class QuotationService(DocumentService):
    """
    Quotation and counter-quotation facade.

    Contract
    --------
    * ``create_quotation`` and ``resolve_counter`` are vendor operations on
      the vendor's own enquiries and quotations.
    * ``file_counter`` is the purchasing manager's answer to a quotation.
    """

    # ------------------------------------------------------------------
    # Quotations
    # ------------------------------------------------------------------

    def create_quotation(
        self,
        actor: Actor,
        enquiry_id: UUID,
        items: Sequence[Mapping[str, Any]],
        *,
        valid_till: Any,
        expected_delivery_date: Any,
        advance_payment_percent: Any = 0,
        notes: str | None = None,
    ) -> Quotation:
        """
        Quote an enquiry.

        Item pricing fields default to the component's catalog values at
        this moment; the quotation keeps them as its own snapshot.
        """
        require_role(actor, ActorRole.VENDOR, "create quotation")
        valid_till = parse_date(valid_till, "valid_till")
        delivery = parse_date(expected_delivery_date, "expected_delivery_date")
        if delivery < self._clock.today():
            raise ValidationError("expected_delivery_date", "must not be in the past")
        advance_pct = parse_percent(advance_payment_percent, "advance_payment_percent")
        notes = optional_text(notes, "notes")

        with self._operation(
            actor, "quotation_create", enquiry_id=str(enquiry_id)
        ) as records:
            enquiry = self._repo.get(EnquiryModel, enquiry_id)
            require_vendor_scope(actor, enquiry.vendor_id, "quote enquiry")
            if enquiry.status not in _QUOTABLE:
                raise PreconditionError(
                    enquiry.entity_type, enquiry.id, enquiry.status, _QUOTABLE
                )

            lines = parse_priced_lines(
                items, self._catalog_snapshots(items), scope="catalog components"
            )
            row = QuotationModel(
                id=uuid4(),
                quotation_number=self._sequences.next_document_number(
                    SequenceService.QUOTATION
                ),
                enquiry_id=enquiry.id,
                vendor_id=actor.vendor_id,
                valid_till=valid_till,
                expected_delivery_date=delivery,
                advance_payment_percent=advance_pct,
                total_amount=document_total(line.line_total for line in lines),
                notes=notes,
                status=QUOTATION_WORKFLOW.initial_state,
                created_by_id=actor.actor_id,
            )
            row.items = [
                QuotationItemModel.from_input(line, number, actor.actor_id)
                for number, line in enumerate(lines, start=1)
            ]
            self._repo.add(row)
            self._record_creation(
                row,
                QUOTATION_WORKFLOW,
                actor,
                records,
                details={"total_amount": str(row.total_amount)},
            )
            self._apply_transition(
                enquiry,
                ENQUIRY_WORKFLOW,
                "quote",
                actor,
                records,
                details={"quotation_id": str(row.id)},
            )
            return row.to_dto()

    def _catalog_snapshots(self, items: Any) -> dict[UUID, dict]:
        snapshots = {}
        for item in items or ():
            if not isinstance(item, Mapping):
                continue
            try:
                component_id = parse_uuid(item.get("component_id"), "component_id")
            except ValidationError:
                continue
            component = self._repo.find(ComponentModel, component_id)
            if component is not None:
                snapshots[component_id] = component.pricing_snapshot()
        return snapshots

    # ------------------------------------------------------------------
    # Negotiation
    # ------------------------------------------------------------------

    def file_counter(
        self,
        actor: Actor,
        quotation_id: UUID,
        action: CounterAction | str,
        payload: Mapping[str, Any] | None = None,
    ) -> CounterFilingResult:
        """
        Answer a quotation with ``accept``, ``reject`` or ``negotiate``.

        payload keys: ``rejection_reason`` (reject), ``items`` and
        ``negotiation_notes`` (negotiate), optional ``valid_till``,
        ``expected_delivery_date`` and ``advance_payment_percent``.
        """
        require_role(actor, ActorRole.PURCHASING_MANAGER, "file counter quotation")
        action = _parse_action(action.value if isinstance(action, CounterAction) else action)
        payload = dict(payload or {})

        reason = notes = None
        if action is CounterAction.REJECT:
            reason = require_text(payload.get("rejection_reason"), "rejection_reason")
        if action is CounterAction.NEGOTIATE:
            if not payload.get("items"):
                raise ValidationError("items", "a negotiate counter needs at least one line")
            notes = require_text(payload.get("negotiation_notes"), "negotiation_notes")
        valid_till = payload.get("valid_till")
        valid_till = parse_date(valid_till, "valid_till") if valid_till is not None else None
        delivery = payload.get("expected_delivery_date")
        delivery = (
            parse_date(delivery, "expected_delivery_date") if delivery is not None else None
        )
        advance_pct = payload.get("advance_payment_percent")
        advance_pct = (
            parse_percent(advance_pct, "advance_payment_percent")
            if advance_pct is not None
            else None
        )

        with self._operation(
            actor,
            "quotation_file_counter",
            quotation_id=str(quotation_id),
            counter_action=action.value,
        ) as records:
            quotation = self._repo.get(QuotationModel, quotation_id)

            lines = ()
            if action is CounterAction.NEGOTIATE:
                lines = parse_priced_lines(
                    payload["items"],
                    line_snapshots(quotation.items),
                    scope="quoted components",
                )

            counter_id = uuid4()
            self._apply_transition(
                quotation,
                QUOTATION_WORKFLOW,
                action.value,
                actor,
                records,
                reason=reason,
                details={"counter_id": str(counter_id)},
            )

            counter = CounterQuotationModel(
                id=counter_id,
                counter_number=self._sequences.next_document_number(
                    SequenceService.COUNTER_QUOTATION
                ),
                quotation_id=quotation.id,
                action=action.value,
                status=_COUNTER_INITIAL_STATUS[action].value,
                total_amount=(
                    document_total(line.line_total for line in lines)
                    if lines
                    else quotation.total_amount
                ),
                advance_payment_percent=(
                    advance_pct if advance_pct is not None else quotation.advance_payment_percent
                ),
                valid_till=valid_till,
                expected_delivery_date=delivery,
                rejection_reason=reason,
                negotiation_notes=notes,
                created_by_id=actor.actor_id,
            )
            counter.items = [
                CounterQuotationItemModel.from_input(line, number, actor.actor_id)
                for number, line in enumerate(lines, start=1)
            ]
            self._supersede_pending(quotation.id, counter, actor, records)
            self._repo.add(counter)
            self._record_creation(
                counter,
                COUNTER_QUOTATION_WORKFLOW,
                actor,
                records,
                details={"counter_action": action.value},
            )

            if action is CounterAction.ACCEPT:
                self._accept_enquiry(quotation, actor, records)

            return CounterFilingResult(counter=counter.to_dto(), quotation=quotation.to_dto())

    def resolve_counter(
        self,
        actor: Actor,
        counter_id: UUID,
        decision: str,
        reason: str | None = None,
    ) -> CounterFilingResult:
        """Vendor accepts or rejects a pending ``negotiate`` counter."""
        decision = _parse_action(decision, "decision")
        if decision is CounterAction.NEGOTIATE:
            raise ValidationError("decision", "must be one of: accept, reject")

        with self._operation(
            actor,
            "quotation_resolve_counter",
            counter_id=str(counter_id),
            decision=decision.value,
        ) as records:
            counter = self._repo.get(CounterQuotationModel, counter_id)
            quotation = self._repo.get(QuotationModel, counter.quotation_id)
            require_vendor_scope(actor, quotation.vendor_id, "resolve counter quotation")

            changes = {}
            if decision is CounterAction.REJECT:
                changes["rejection_reason"] = (reason or "").strip() or None
            self._apply_transition(
                counter,
                COUNTER_QUOTATION_WORKFLOW,
                decision.value,
                actor,
                records,
                reason=reason,
                **changes,
            )
            self._apply_transition(
                quotation,
                QUOTATION_WORKFLOW,
                decision.value,
                actor,
                records,
                reason=reason,
                details={"counter_id": str(counter.id)},
            )
            if decision is CounterAction.ACCEPT:
                self._accept_enquiry(quotation, actor, records)

            return CounterFilingResult(counter=counter.to_dto(), quotation=quotation.to_dto())

    def _supersede_pending(
        self,
        quotation_id: UUID,
        replacement: CounterQuotationModel,
        actor: Actor,
        records: list[dict],
    ) -> None:
        pending = self._repo.query(
            CounterQuotationModel,
            quotation_id=quotation_id,
            status=CounterStatus.PENDING.value,
        )
        for old in pending:
            self._apply_transition(
                old,
                COUNTER_QUOTATION_WORKFLOW,
                "supersede",
                actor,
                records,
                details={"superseded_by": replacement.counter_number},
                superseded_by_id=replacement.id,
            )

    def _accept_enquiry(self, quotation: QuotationModel, actor: Actor, records: list[dict]) -> None:
        enquiry = self._repo.get(EnquiryModel, quotation.enquiry_id)
        self._apply_transition(
            enquiry,
            ENQUIRY_WORKFLOW,
            "accept",
            actor,
            records,
            details={"quotation_id": str(quotation.id)},
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, quotation_id: UUID) -> Quotation:
        return self._repo.get(QuotationModel, quotation_id).to_dto()

    def get_counter(self, counter_id: UUID) -> CounterQuotation:
        return self._repo.get(CounterQuotationModel, counter_id).to_dto()

    def list_counters(self, quotation_id: UUID) -> list[CounterQuotation]:
        """Negotiation history, oldest first."""
        rows = self._repo.query(
            CounterQuotationModel,
            order_by=CounterQuotationModel.counter_number,
            quotation_id=quotation_id,
        )
        return [row.to_dto() for row in rows]

    def list_quotations(
        self,
        enquiry_id: UUID | None = None,
        vendor_id: UUID | None = None,
    ) -> list[Quotation]:
        filters: dict[str, Any] = {}
        if enquiry_id is not None:
            filters["enquiry_id"] = enquiry_id
        if vendor_id is not None:
            filters["vendor_id"] = vendor_id
        rows = self._repo.query(
            QuotationModel, order_by=QuotationModel.quotation_number, **filters
        )
        return [row.to_dto() for row in rows]
