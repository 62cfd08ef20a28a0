"""Read-only query selectors."""

from procurement_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
