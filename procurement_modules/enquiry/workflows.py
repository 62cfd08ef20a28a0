"""
Enquiry Workflows.

An enquiry is quoted by its vendor, accepted when one of its quotations is
accepted, or rejected by the vendor with a reason.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.enquiry.workflows")

_VENDOR = ("vendor",)

ENQUIRY_WORKFLOW = Workflow(
    name="enquiry",
    description="Enquiry lifecycle",
    initial_state="raised",
    states=("raised", "quoted", "accepted", "rejected"),
    transitions=(
        Transition("raised", "quoted", action="quote", roles=_VENDOR),
        Transition("quoted", "quoted", action="quote", roles=_VENDOR),
        # Follows the acceptance of one of its quotations, by either party.
        Transition("quoted", "accepted", action="accept"),
        Transition("raised", "rejected", action="reject", roles=_VENDOR, requires_reason=True),
        Transition("quoted", "rejected", action="reject", roles=_VENDOR, requires_reason=True),
    ),
    terminal_states=("accepted", "rejected"),
)

logger.info(
    "enquiry_workflow_registered",
    extra={
        "workflow_name": ENQUIRY_WORKFLOW.name,
        "state_count": len(ENQUIRY_WORKFLOW.states),
        "transition_count": len(ENQUIRY_WORKFLOW.transitions),
        "initial_state": ENQUIRY_WORKFLOW.initial_state,
    },
)
