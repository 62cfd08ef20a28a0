"""
Configuration Loader (``procurement_config.loader``).

Responsibility
--------------
Reads a settings YAML file and flattens it into the keyword arguments of
``ProcurementSettings``.  Internal tooling: runtime callers go through
``procurement_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown top-level section  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

_KNOWN_SECTIONS = {"config_id", "version", "currency", "ledger", "catalog"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def flatten_settings(data: dict[str, Any]) -> dict[str, Any]:
    """
    Map the sectioned YAML layout onto ``ProcurementSettings`` fields.

    Raises:
        ValueError: if the document has an unknown top-level key.
    """
    unknown = set(data) - _KNOWN_SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    flat: dict[str, Any] = {}
    for key in ("config_id", "version", "currency"):
        if key in data:
            flat[key] = data[key]

    ledger = data.get("ledger") or {}
    for key in ("settlement_tolerance", "display_decimal_places", "overpayment_policy"):
        if key in ledger:
            flat[key] = ledger[key]

    catalog = data.get("catalog") or {}
    if "approved_editable_fields" in catalog:
        flat["approved_editable_fields"] = tuple(catalog["approved_editable_fields"])

    return flat


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
