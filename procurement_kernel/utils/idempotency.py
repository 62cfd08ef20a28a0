"""
Idempotency key generation utilities.

Idempotency keys make document creation safe to retry: the same source
always produces the same key, and the key carries a unique constraint, so a
second creation attempt is detected instead of producing a duplicate.
"""

from uuid import UUID


def generate_idempotency_key(
    producer: str,
    document_type: str,
    *source_ids: UUID | str | None,
) -> str:
    """
    Generate an idempotency key for a document derived from one or more
    source documents.

    Format: producer:document_type:source_id[:source_id...]

    A ``None`` source id (e.g. "no counter quotation") is rendered as ``-``
    so that (quotation, None) and (quotation, counter) produce distinct keys.

    Example:
        >>> generate_idempotency_key("loi", "issue", quotation_id, None)
        "loi:issue:550e8400-e29b-41d4-a716-446655440000:-"
    """
    parts = [producer, document_type]
    parts.extend("-" if sid is None else str(sid) for sid in source_ids)
    return ":".join(parts)


def parse_idempotency_key(key: str) -> tuple[str, str, tuple[str | None, ...]]:
    """
    Split a key into (producer, document_type, source_ids).

    Raises:
        ValueError: If key has fewer than three parts.
    """
    parts = key.split(":")
    if len(parts) < 3:
        raise ValueError(f"Invalid idempotency key format: {key}")
    sources = tuple(None if p == "-" else p for p in parts[2:])
    return parts[0], parts[1], sources
