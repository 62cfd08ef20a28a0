"""
Catalog Module (``procurement_modules.catalog``).

Vendor-submitted components and their purchasing-manager approval.
Quotations snapshot component pricing at creation; later catalog edits do
not reach them.
"""

from procurement_modules.catalog.models import (
    Component,
    ComponentEditResult,
    ComponentStatus,
)
from procurement_modules.catalog.service import CatalogService
from procurement_modules.catalog.workflows import COMPONENT_WORKFLOW

__all__ = [
    "COMPONENT_WORKFLOW",
    "CatalogService",
    "Component",
    "ComponentEditResult",
    "ComponentStatus",
]
