"""
SequenceService -- monotonic document numbers via locked counter rows.

Responsibility:
    Allocates strictly increasing numbers per document type and formats
    them as human document numbers (``PQ-000001``, ``INV-000042``).  Uses a
    dedicated counter table with ``SELECT ... FOR UPDATE`` so concurrent
    allocations for the same sequence serialize on one row.

Architecture position:
    Kernel > Services.  Called by every module service that creates a
    document, inside that service's transaction.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth.
      The SQL aggregate-max-plus-one pattern is never used.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the number.

Failure modes:
    - IntegrityError if two transactions create the same, never-seeded
      counter at once.  ``initialize_sequences()`` seeds every well-known
      sequence at schema creation so this only affects ad-hoc names.
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from procurement_kernel.db.base import Base
from procurement_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One row per named sequence with its last allocated value."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly-monotonic
        integer.  Never commits; the caller owns the transaction.

    Usage:
        number = SequenceService(session).next_document_number(SequenceService.QUOTATION)
        # "PQ-000001"
    """

    COMPONENT = "component"
    ENQUIRY = "enquiry"
    QUOTATION = "quotation"
    COUNTER_QUOTATION = "counter_quotation"
    LOI = "loi"
    ORDER = "order"
    INVOICE = "invoice"
    PAYMENT = "payment"

    PREFIXES: dict[str, str] = {
        COMPONENT: "CMP",
        ENQUIRY: "ENQ",
        QUOTATION: "PQ",
        COUNTER_QUOTATION: "VC",
        LOI: "LOI",
        ORDER: "PO",
        INVOICE: "INV",
        PAYMENT: "PAY",
    }

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Next value for a named sequence.

        Postconditions:
            Returns an integer > 0 strictly greater than any value
            previously returned for this name.  The counter row stays
            locked until the caller's transaction ends.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_document_number(self, sequence_name: str) -> str:
        """Allocate and format a document number, e.g. ``LOI-000007``."""
        prefix = self.PREFIXES[sequence_name]
        return f"{prefix}-{self.next_value(sequence_name):06d}"

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def initialize_sequences(self) -> None:
        """Seed a zero counter for every well-known document sequence."""
        existing = set(
            self._session.execute(select(SequenceCounter.name)).scalars().all()
        )
        for name in self.PREFIXES:
            if name not in existing:
                self._session.add(SequenceCounter(name=name, current_value=0))
        self._session.flush()
