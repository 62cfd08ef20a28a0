"""Kernel services."""
