"""
LOI Workflows.

The vendor accepts or rejects a sent LOI.  ``confirm`` is fired only by
order creation, never as a direct action.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.loi.workflows")

LOI_WORKFLOW = Workflow(
    name="loi",
    description="Letter of intent lifecycle",
    initial_state="sent",
    states=("sent", "accepted", "rejected", "confirmed"),
    transitions=(
        Transition("sent", "accepted", action="accept", roles=("vendor",)),
        Transition("sent", "rejected", action="reject", roles=("vendor",)),
        Transition("accepted", "confirmed", action="confirm", roles=("purchasing_manager",)),
    ),
    # Repeating accept/reject is an invalid state, not a duplicate.
    terminal_states=("confirmed",),
)

logger.info(
    "loi_workflow_registered",
    extra={
        "workflow_name": LOI_WORKFLOW.name,
        "state_count": len(LOI_WORKFLOW.states),
        "transition_count": len(LOI_WORKFLOW.transitions),
        "initial_state": LOI_WORKFLOW.initial_state,
    },
)
