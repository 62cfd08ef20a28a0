"""
Payment Workflows.

The purchasing manager completes or fails a payment; the vendor
acknowledges a completed payment by sending a receipt.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.payment.workflows")

_PM = ("purchasing_manager",)

PAYMENT_WORKFLOW = Workflow(
    name="payment",
    description="Payment event lifecycle",
    initial_state="pending",
    states=("pending", "completed", "receipt_sent", "failed"),
    transitions=(
        Transition("pending", "completed", action="complete", roles=_PM),
        Transition("completed", "receipt_sent", action="send_receipt", roles=("vendor",)),
        Transition("pending", "failed", action="fail", roles=_PM),
        Transition("completed", "failed", action="fail", roles=_PM),
    ),
    terminal_states=("receipt_sent", "failed"),
)

logger.info(
    "payment_workflow_registered",
    extra={
        "workflow_name": PAYMENT_WORKFLOW.name,
        "state_count": len(PAYMENT_WORKFLOW.states),
        "transition_count": len(PAYMENT_WORKFLOW.transitions),
        "initial_state": PAYMENT_WORKFLOW.initial_state,
    },
)
