"""
Procurement Settings Schema.

Defines the structure and defaults for lifecycle settings.  Values are
loaded from YAML at runtime via ``procurement_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Self

from procurement_kernel.logging_config import get_logger

logger = get_logger("config.settings")


class OverpaymentPolicy(str, Enum):
    """What to do with a payment larger than the pending balance."""

    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True)
class ProcurementSettings:
    """
    Settings for the procurement lifecycle.

        settings = ProcurementSettings(overpayment_policy=OverpaymentPolicy.REJECT)
    """

    config_id: str = "procurement-default"
    version: int = 1
    currency: str = "INR"

    settlement_tolerance: Decimal = Decimal("0.01")
    display_decimal_places: int = 2
    overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.ALLOW

    approved_editable_fields: tuple[str, ...] = field(
        default=("price_per_unit", "stock", "min_order_qty", "lead_time_days"),
    )

    checksum: str | None = None

    def __post_init__(self) -> None:
        if self.settlement_tolerance < 0:
            logger.warning(
                "procurement_settings_invalid",
                extra={"settlement_tolerance": str(self.settlement_tolerance)},
            )
            raise ValueError("settlement_tolerance must be >= 0")
        if self.display_decimal_places < 0:
            raise ValueError("display_decimal_places must be >= 0")
        if len(self.currency) != 3:
            raise ValueError(f"currency must be a 3-letter code, got {self.currency!r}")
        logger.info(
            "procurement_settings_initialized",
            extra={
                "config_id": self.config_id,
                "config_version": self.version,
                "currency": self.currency,
                "settlement_tolerance": str(self.settlement_tolerance),
                "overpayment_policy": self.overpayment_policy.value,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create settings with the shipped defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create settings from a flat dictionary (e.g. parsed YAML)."""
        logger.info(
            "procurement_settings_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        if "settlement_tolerance" in values:
            values["settlement_tolerance"] = Decimal(str(values["settlement_tolerance"]))
        if "overpayment_policy" in values:
            values["overpayment_policy"] = OverpaymentPolicy(values["overpayment_policy"])
        if "approved_editable_fields" in values:
            values["approved_editable_fields"] = tuple(values["approved_editable_fields"])
        if "currency" in values:
            values["currency"] = str(values["currency"]).upper()
        return cls(**values)
