"""
Order Module (``procurement_modules.order``).

Purchase orders created from accepted LOIs.  Creating the order confirms
the LOI atomically.
"""

from procurement_modules.order.models import Order, OrderStatus
from procurement_modules.order.service import OrderService
from procurement_modules.order.workflows import ORDER_WORKFLOW

__all__ = [
    "ORDER_WORKFLOW",
    "Order",
    "OrderService",
    "OrderStatus",
]
