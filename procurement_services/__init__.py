"""
procurement_services -- Cross-module coordination services.

Sits above procurement_kernel and below procurement_modules:
- workflow_executor: central transition-table enforcement and tracing
- audit: fire-and-forget delivery of committed transition records
"""
