"""
Catalog Workflows.

Component approval: a vendor submits, a purchasing manager approves or
rejects, a rejected component goes back to pending when the vendor edits it.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.catalog.workflows")

_PM = ("purchasing_manager",)
_VENDOR = ("vendor",)

COMPONENT_WORKFLOW = Workflow(
    name="component",
    description="Component approval lifecycle",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve", roles=_PM),
        Transition("pending", "rejected", action="reject", roles=_PM, requires_reason=True),
        Transition("rejected", "pending", action="resubmit", roles=_VENDOR),
    ),
    terminal_states=("approved",),
)

logger.info(
    "catalog_component_workflow_registered",
    extra={
        "workflow_name": COMPONENT_WORKFLOW.name,
        "state_count": len(COMPONENT_WORKFLOW.states),
        "transition_count": len(COMPONENT_WORKFLOW.transitions),
        "initial_state": COMPONENT_WORKFLOW.initial_state,
    },
)
