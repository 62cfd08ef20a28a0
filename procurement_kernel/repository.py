"""
Module: procurement_kernel.repository
Responsibility: Persistence interface the document services are written
    against, plus its SQLAlchemy implementation.
Architecture position: Kernel.  Imports db/ and exceptions only.  Module
    services hold a Repository; they never call session.commit() directly.

Invariants enforced:
    - Snapshot reads: ``find``/``get`` return the entity as loaded in the
      caller's session.
    - Compare-and-swap writes: ``save(entity, expected_status=...)`` fails
      with ConflictError when the status the caller based its decision on
      is no longer the stored status.  Every versioned table maps a
      ``version`` column as SQLAlchemy's ``version_id_col``, so an UPDATE
      whose version no longer matches affects zero rows and surfaces as
      ConflictError instead of a lost update.
    - Atomicity: ``transaction()`` commits everything written inside it or
      nothing at all.

Failure modes:
    - NotFoundError from ``get`` when the id does not exist.
    - ConflictError on stale version, stale status, or a unique-constraint
      violation (idempotency keys).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from procurement_kernel.db.base import Base
from procurement_kernel.exceptions import ConflictError, NotFoundError
from procurement_kernel.logging_config import get_logger

logger = get_logger("repository")

T = TypeVar("T", bound=Base)


def entity_label(model: type[Base] | Base) -> str:
    """Human entity name used in error payloads (falls back to the table)."""
    return getattr(model, "entity_type", None) or model.__tablename__


class Repository(ABC):
    """
    Abstract persistence collaborator.

    Contract:
        find/get/query are snapshot reads.  add/save/delete stage writes
        that become visible to other readers only when the enclosing
        ``transaction()`` commits.
    """

    @abstractmethod
    def find(self, model: type[T], entity_id: UUID) -> T | None:
        ...

    def get(self, model: type[T], entity_id: UUID) -> T:
        """Like ``find`` but raises NotFoundError."""
        entity = self.find(model, entity_id)
        if entity is None:
            raise NotFoundError(entity_label(model), entity_id)
        return entity

    @abstractmethod
    def query(
        self, model: type[T], *, order_by: Any = None, **filters: Any
    ) -> list[T]:
        ...

    @abstractmethod
    def add(self, entity: T) -> T:
        ...

    @abstractmethod
    def save(self, entity: T, expected_status: str | None = None) -> T:
        ...

    @abstractmethod
    def delete(self, entity: Base) -> None:
        ...

    @abstractmethod
    def transaction(self) -> Any:
        ...


class SqlAlchemyRepository(Repository):
    """
    Repository over a SQLAlchemy Session.

    Guarantees:
        - Writes are flushed immediately so constraint and version
          violations surface inside the operation that caused them.
        - ``transaction()`` commits on success and rolls back on any
          exception, re-raising it.
    """

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def find(self, model: type[T], entity_id: UUID) -> T | None:
        return self._session.get(model, entity_id)

    def query(
        self, model: type[T], *, order_by: Any = None, **filters: Any
    ) -> list[T]:
        stmt = select(model).filter_by(**filters)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self._session.execute(stmt).scalars().all())

    def add(self, entity: T) -> T:
        self._session.add(entity)
        self._flush(entity)
        return entity

    def save(self, entity: T, expected_status: str | None = None) -> T:
        if expected_status is not None:
            stored = self._loaded_status(entity)
            if stored != expected_status:
                logger.warning(
                    "compare_and_swap_failed",
                    extra={
                        "entity_type": entity_label(entity),
                        "entity_id": str(entity.id),
                        "expected_status": expected_status,
                        "stored_status": stored,
                    },
                )
                raise ConflictError(
                    entity_label(entity),
                    entity.id,
                    f"expected status '{expected_status}', found '{stored}'",
                )
        self._flush(entity)
        return entity

    def delete(self, entity: Base) -> None:
        self._session.delete(entity)
        self._flush(entity)

    @contextmanager
    def transaction(self) -> Iterator[SqlAlchemyRepository]:
        try:
            yield self
            self._session.commit()
        except StaleDataError as exc:
            self._session.rollback()
            raise ConflictError(
                "document", None, "modified by a concurrent transaction"
            ) from exc
        except Exception:
            self._session.rollback()
            raise

    # ------------------------------------------------------------------

    @staticmethod
    def _loaded_status(entity: Base) -> str | None:
        """Status as it was loaded, before any in-memory change."""
        history = inspect(entity).attrs.status.history
        if history.deleted:
            return history.deleted[0]
        return getattr(entity, "status")

    def _flush(self, entity: Base) -> None:
        try:
            self._session.flush()
        except StaleDataError as exc:
            logger.warning(
                "stale_write_rejected",
                extra={
                    "entity_type": entity_label(entity),
                    "entity_id": str(entity.id),
                },
            )
            raise ConflictError(
                entity_label(entity),
                entity.id,
                "modified by a concurrent transaction",
            ) from exc
        except IntegrityError as exc:
            logger.warning(
                "unique_constraint_rejected",
                extra={
                    "entity_type": entity_label(entity),
                    "entity_id": str(entity.id),
                    "error": str(exc.orig),
                },
            )
            raise ConflictError(
                entity_label(entity),
                entity.id,
                "violates a uniqueness constraint",
            ) from exc
