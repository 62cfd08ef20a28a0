"""
Quotation Workflows.

Quotation: sent or negotiating, until accepted or rejected.  Counter
quotation: a ``negotiate`` counter waits ``pending`` for the vendor's
answer, or is superseded by a newer counter.
"""

from procurement_kernel.domain.workflow import Transition, Workflow
from procurement_kernel.logging_config import get_logger

logger = get_logger("modules.quotation.workflows")

QUOTATION_WORKFLOW = Workflow(
    name="quotation",
    description="Quotation negotiation lifecycle",
    initial_state="sent",
    states=("sent", "negotiating", "accepted", "rejected"),
    transitions=(
        Transition("sent", "accepted", action="accept"),
        Transition("sent", "rejected", action="reject", requires_reason=True),
        Transition("sent", "negotiating", action="negotiate"),
        Transition("negotiating", "negotiating", action="negotiate"),
        Transition("negotiating", "accepted", action="accept"),
        Transition("negotiating", "rejected", action="reject", requires_reason=True),
    ),
    terminal_states=("accepted", "rejected"),
)

COUNTER_QUOTATION_WORKFLOW = Workflow(
    name="counter_quotation",
    description="Counter quotation resolution",
    initial_state="pending",
    states=("pending", "accepted", "rejected"),
    transitions=(
        Transition("pending", "accepted", action="accept", roles=("vendor",)),
        Transition(
            "pending", "rejected", action="reject", roles=("vendor",), requires_reason=True
        ),
        Transition("pending", "rejected", action="supersede", roles=("purchasing_manager",)),
    ),
    terminal_states=("accepted", "rejected"),
)

for _workflow in (QUOTATION_WORKFLOW, COUNTER_QUOTATION_WORKFLOW):
    logger.info(
        "quotation_workflow_registered",
        extra={
            "workflow_name": _workflow.name,
            "state_count": len(_workflow.states),
            "transition_count": len(_workflow.transitions),
            "initial_state": _workflow.initial_state,
        },
    )
