"""
procurement_config -- single public entrypoint for lifecycle settings.

Responsibility:
    ``get_active_config()`` is the only way services obtain settings.  It
    reads YAML (shipped ``defaults.yaml`` or the file named by the
    ``PROCUREMENT_CONFIG`` environment variable) and returns a frozen
    ``ProcurementSettings``.

Architecture position:
    Configuration.  Sits above ``procurement_kernel`` and below
    ``procurement_modules``.  The kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- configured path does not exist.
    - ``ValueError`` -- unknown section or invalid value.

Audit relevance:
    Every call emits a ``PROCUREMENT_CONFIG_TRACE`` record with the config
    id, version and checksum, tying each operation back to the settings
    that governed it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from procurement_config.loader import compute_checksum, flatten_settings, load_yaml_file
from procurement_config.settings import OverpaymentPolicy, ProcurementSettings

_logger = logging.getLogger("procurement_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_ENV_VAR = "PROCUREMENT_CONFIG"


def get_active_config(path: Path | str | None = None) -> ProcurementSettings:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``path``, then ``$PROCUREMENT_CONFIG``, then
    the shipped defaults.  Not cached; callers hold the returned settings.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_PATH
    path = Path(path)

    raw = load_yaml_file(path)
    settings = ProcurementSettings.from_dict(
        dict(flatten_settings(raw), checksum=compute_checksum(raw))
    )

    _logger.info(
        "PROCUREMENT_CONFIG_TRACE",
        extra={
            "trace_type": "PROCUREMENT_CONFIG_TRACE",
            "config_id": settings.config_id,
            "config_version": settings.version,
            "checksum": settings.checksum,
            "source_path": str(path),
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "OverpaymentPolicy",
    "ProcurementSettings",
    "get_active_config",
]
