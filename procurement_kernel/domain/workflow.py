"""
Canonical workflow types (``procurement_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document state machines.  Every module declares its
lifecycle as a ``Workflow`` of ``Transition`` rows (from-state x action ->
to-state) and the workflow executor is the only code that interprets them.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* (from_state, action) is unique within a workflow.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transition:
    """A valid state transition.

    ``roles`` lists the actor roles allowed to fire it; empty means any role.
    ``requires_reason`` makes a non-blank reason mandatory.
    """
    from_state: str
    to_state: str
    action: str
    roles: tuple[str, ...] = ()
    requires_reason: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"Workflow {self.name}: transition {t.action!r} "
                        f"references unknown state {state!r}"
                    )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    f"has outgoing transition {t.action!r}"
                )
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(
                    f"Workflow {self.name}: duplicate transition {key!r}"
                )
            seen.add(key)

    def find(self, from_state: str, action: str) -> Transition | None:
        """Return the transition for (from_state, action), if any."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def sources_for(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` is allowed."""
        return tuple(t.from_state for t in self.transitions if t.action == action)

    def targets_for(self, action: str) -> tuple[str, ...]:
        return tuple(t.to_state for t in self.transitions if t.action == action)
