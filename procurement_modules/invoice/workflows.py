"""
Invoice Workflows.

Linear: pending -> received -> accepted -> paid, with a rejected exit
(reason required) from pending or received.  A rejected invoice frees the
order for a fresh invoice.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.invoice.workflows")

_PM = ("purchasing_manager",)

INVOICE_WORKFLOW = Workflow(
    name="invoice",
    description="Vendor invoice lifecycle",
    initial_state="pending",
    states=("pending", "received", "accepted", "rejected", "paid"),
    transitions=(
        Transition("pending", "received", action="mark_received", roles=_PM),
        Transition("received", "accepted", action="accept", roles=_PM),
        Transition("pending", "rejected", action="reject", roles=_PM, requires_reason=True),
        Transition("received", "rejected", action="reject", roles=_PM, requires_reason=True),
        Transition("accepted", "paid", action="mark_paid", roles=_PM),
    ),
    terminal_states=("rejected", "paid"),
)

logger.info(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
        "initial_state": INVOICE_WORKFLOW.initial_state,
    },
)
