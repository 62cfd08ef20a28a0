"""
Order Workflows.

Created ``pending`` from an accepted LOI, acknowledged by the vendor, and
completed by the purchasing manager once its invoice is paid.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.order.workflows")

ORDER_WORKFLOW = Workflow(
    name="order",
    description="Purchase order lifecycle",
    initial_state="pending",
    states=("pending", "confirmed", "completed"),
    transitions=(
        Transition("pending", "confirmed", action="confirm", roles=("vendor",)),
        Transition("confirmed", "completed", action="complete", roles=("purchasing_manager",)),
    ),
    terminal_states=("completed",),
)

logger.info(
    "order_workflow_registered",
    extra={
        "workflow_name": ORDER_WORKFLOW.name,
        "state_count": len(ORDER_WORKFLOW.states),
        "transition_count": len(ORDER_WORKFLOW.transitions),
        "initial_state": ORDER_WORKFLOW.initial_state,
    },
)
