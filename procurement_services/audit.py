"""
procurement_services.audit -- Notification/audit sink delivery.

Responsibility:
    Hands each committed workflow record to an external sink (notification
    fan-out, audit store, message bus).  Delivery is fire-and-forget: a
    sink failure is logged and never undoes the transition that already
    committed.

Architecture position:
    Services layer.  Module services publish only after their transaction
    commits, so a sink never sees a record for a rolled-back change.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from procurement_kernel.logging_config import get_logger

logger = get_logger("services.audit")


@runtime_checkable
class AuditSink(Protocol):
    """Receives one structured record per committed transition."""

    def __call__(self, record: dict) -> None: ...


class AuditPublisher:
    """Delivers committed records to an optional sink."""

    def __init__(self, sink: AuditSink | None = None) -> None:
        self._sink = sink

    def publish(self, records: Iterable[dict]) -> int:
        """Deliver records in order; returns how many the sink accepted."""
        delivered = 0
        if self._sink is None:
            return delivered
        for record in records:
            try:
                self._sink(record)
            except Exception:
                # Transition already committed; delivery is best effort.
                logger.warning(
                    "audit_sink_delivery_failed",
                    exc_info=True,
                    extra={
                        "workflow": record.get("workflow"),
                        "action": record.get("action"),
                        "entity_id": record.get("entity_id"),
                    },
                )
                continue
            delivered += 1
        return delivered
