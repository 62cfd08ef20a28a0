"""
Procurement Kernel

Shared core for the procurement document lifecycle:
- Typed error taxonomy
- Structured JSON logging
- Central state-transition tables
- Compare-and-swap persistence behind a repository interface
- Fixed-point money with explicit rounding
"""

__version__ = "0.1.0"
