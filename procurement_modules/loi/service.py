"""
LOI Module Service (``procurement_modules.loi.service``).

Responsibility
--------------
Issue letters of intent from accepted quotations and record the vendor's
answer.

Invariants enforced
-------------------
* The source must be ``accepted``.
* One LOI per deal.  A deal is the pair (quotation, accepted ``negotiate``
  counter or none); issuing from the quotation or from any accepted
  counter of the same deal resolves to the same pair and the same
  ``source_key``.  A repeat returns ConflictError carrying ``existing_id``
  and leaves the first LOI untouched.
* ``accept``/``reject`` only from ``sent``.

Failure modes
-------------
* PreconditionError -- source not accepted.
* ConflictError -- LOI already issued for the deal.
* InvalidStateError -- vendor answer outside ``sent``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from procurement_kernel.domain.actor import Actor, ActorRole
from procurement_kernel.exceptions import ConflictError, PreconditionError, ValidationError
from procurement_kernel.logging_config import get_logger
from procurement_kernel.services.sequence_service import SequenceService
from procurement_kernel.utils.idempotency import generate_idempotency_key
from procurement_modules._service_helpers import (
    DocumentService,
    optional_text,
    parse_choice,
    parse_date,
    parse_percent,
    require_role,
    require_vendor_scope,
)
from procurement_modules.loi.models import LOI, LOISourceType
from procurement_modules.loi.orm import LOIItemModel, LOIModel
from procurement_modules.loi.workflows import LOI_WORKFLOW
from procurement_modules.quotation.models import CounterAction, CounterStatus, QuotationStatus
from procurement_modules.quotation.orm import CounterQuotationModel, QuotationModel

logger = get_logger("modules.loi.service")

TERM_FIELDS = ("terms_and_conditions", "expected_delivery_date", "advance_payment_percent")

_ACCEPTED = (QuotationStatus.ACCEPTED.value,)


def source_key_for(quotation_id: UUID, counter_id: UUID | None) -> str:
    """Idempotency key of the deal (quotation, counter-or-none)."""
    return generate_idempotency_key("loi", "issue", quotation_id, counter_id)


class LOIService(DocumentService):
    """
    LOI issuance and vendor response.

    Contract
    --------
    * ``issue`` is a purchasing-manager operation; ``accept`` and
      ``reject`` belong to the vendor the LOI is addressed to.
    * ``confirm`` is not exposed; ``OrderService.confirm_from_loi`` fires
      it inside the order-creation transaction.
    """

    def issue(
        self,
        actor: Actor,
        source_id: UUID,
        source_type: LOISourceType | str,
        terms: Mapping[str, Any] | None = None,
    ) -> LOI:
        """Issue the LOI for an accepted quotation or counter quotation."""
        require_role(actor, ActorRole.PURCHASING_MANAGER, "issue loi")
        try:
            source_type = LOISourceType(source_type)
        except ValueError as exc:
            raise ValidationError(
                "source_type", "must be 'quotation' or 'counter_quotation'"
            ) from exc
        terms = dict(terms or {})
        for key in terms:
            if key not in TERM_FIELDS:
                raise ValidationError(key, "not an LOI term")

        key = None
        try:
            with self._operation(
                actor, "loi_issue", source_id=str(source_id), source_type=source_type.value
            ) as records:
                quotation, counter = self._resolve_deal(source_id, source_type)
                key = source_key_for(quotation.id, counter.id if counter else None)
                self._reject_duplicate(key)

                basis = counter or quotation
                advance_pct = terms.get("advance_payment_percent")
                delivery = terms.get("expected_delivery_date")
                row = LOIModel(
                    loi_number=self._sequences.next_document_number(SequenceService.LOI),
                    quotation_id=quotation.id,
                    counter_quotation_id=counter.id if counter else None,
                    vendor_id=quotation.vendor_id,
                    source_key=key,
                    terms_and_conditions=optional_text(
                        terms.get("terms_and_conditions"), "terms_and_conditions"
                    ),
                    expected_delivery_date=(
                        parse_date(delivery, "expected_delivery_date")
                        if delivery is not None
                        else basis.expected_delivery_date or quotation.expected_delivery_date
                    ),
                    advance_payment_percent=(
                        parse_percent(advance_pct, "advance_payment_percent")
                        if advance_pct is not None
                        else basis.advance_payment_percent
                    ),
                    total_amount=basis.total_amount,
                    status=LOI_WORKFLOW.initial_state,
                    created_by_id=actor.actor_id,
                )
                row.items = [
                    LOIItemModel.copy_of(line, actor.actor_id)
                    for line in (counter.items if counter else quotation.items)
                ]
                self._repo.add(row)
                self._record_creation(
                    row, LOI_WORKFLOW, actor, records, details={"source_key": key}
                )
                return row.to_dto()
        except ConflictError as exc:
            if exc.existing_id is not None or key is None:
                raise
            # Lost the race on the unique key; report the winner.
            existing = self._find_by_key(key)
            if existing is None:
                raise
            raise ConflictError(
                "loi", existing.id, "an LOI already exists for this source",
                existing_id=existing.id,
            ) from exc

    def accept(self, actor: Actor, loi_id: UUID) -> LOI:
        return self._respond(actor, loi_id, "accept")

    def reject(self, actor: Actor, loi_id: UUID, reason: str | None = None) -> LOI:
        return self._respond(actor, loi_id, "reject", reason)

    def _respond(self, actor: Actor, loi_id: UUID, action: str, reason: str | None = None) -> LOI:
        with self._operation(actor, f"loi_{action}", loi_id=str(loi_id)) as records:
            row = self._repo.get(LOIModel, loi_id)
            require_vendor_scope(actor, row.vendor_id, f"{action} loi")
            changes: dict[str, Any] = {"vendor_response_date": self._clock.today()}
            if action == "reject":
                changes["rejection_reason"] = optional_text(reason, "reason")
            self._apply_transition(
                row, LOI_WORKFLOW, action, actor, records, reason=reason, **changes
            )
            return row.to_dto()

    # ------------------------------------------------------------------
    # Deal resolution
    # ------------------------------------------------------------------

    def _resolve_deal(
        self, source_id: UUID, source_type: LOISourceType
    ) -> tuple[QuotationModel, CounterQuotationModel | None]:
        if source_type is LOISourceType.QUOTATION:
            quotation = self._repo.get(QuotationModel, source_id)
            self._require_accepted(quotation)
            return quotation, self._accepted_negotiation(quotation.id)

        counter = self._repo.get(CounterQuotationModel, source_id)
        self._require_accepted(counter)
        quotation = self._repo.get(QuotationModel, counter.quotation_id)
        self._require_accepted(quotation)
        if counter.action == CounterAction.NEGOTIATE.value:
            return quotation, counter
        # An accept counter closes the deal on the quotation's own terms.
        return quotation, self._accepted_negotiation(quotation.id)

    @staticmethod
    def _require_accepted(row: Any) -> None:
        if row.status != CounterStatus.ACCEPTED.value:
            raise PreconditionError(row.entity_type, row.id, row.status, _ACCEPTED)

    def _accepted_negotiation(self, quotation_id: UUID) -> CounterQuotationModel | None:
        rows = self._repo.query(
            CounterQuotationModel,
            quotation_id=quotation_id,
            action=CounterAction.NEGOTIATE.value,
            status=CounterStatus.ACCEPTED.value,
        )
        return rows[0] if rows else None

    def _find_by_key(self, key: str) -> LOIModel | None:
        rows = self._repo.query(LOIModel, source_key=key)
        return rows[0] if rows else None

    def _reject_duplicate(self, key: str) -> None:
        existing = self._find_by_key(key)
        if existing is not None:
            logger.warning(
                "loi_duplicate_issue_rejected",
                extra={"source_key": key, "existing_loi_id": str(existing.id)},
            )
            raise ConflictError(
                existing.entity_type,
                existing.id,
                "an LOI already exists for this source",
                existing_id=existing.id,
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, loi_id: UUID) -> LOI:
        return self._repo.get(LOIModel, loi_id).to_dto()

    def find_for_source(
        self, source_id: UUID, source_type: LOISourceType | str
    ) -> LOI | None:
        """The LOI already issued for the deal behind a source, if any."""
        source_type = parse_choice(LOISourceType, source_type, "source_type")
        if source_type is LOISourceType.QUOTATION:
            quotation_id = source_id
            counter = self._accepted_negotiation(source_id)
        else:
            counter = self._repo.get(CounterQuotationModel, source_id)
            quotation_id = counter.quotation_id
            if counter.action != CounterAction.NEGOTIATE.value:
                counter = self._accepted_negotiation(quotation_id)
        row = self._find_by_key(source_key_for(quotation_id, counter.id if counter else None))
        return row.to_dto() if row else None
