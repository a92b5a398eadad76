"""Leave request state machine.

    pending_manager ──manager_approved──▶ pending_hr ──hr_approved──▶ approved
          │                                   │
          ├─manager_rejected─▶ rejected ◀─────┤ hr_rejected
          └─cancelled────────▶ cancelled ◀────┘ cancelled

``rejected``, ``cancelled`` and ``approved`` are absorbing. Submission is
not a transition here: the starting status comes from routing.
"""

from __future__ import annotations

from taskedin.common.constants import LeaveAction, LeaveStatus
from taskedin.common.exceptions import StateConflictException

TRANSITIONS: dict[tuple[LeaveStatus, LeaveAction], LeaveStatus] = {
    (LeaveStatus.pending_manager, LeaveAction.manager_approved): LeaveStatus.pending_hr,
    (LeaveStatus.pending_manager, LeaveAction.manager_rejected): LeaveStatus.rejected,
    (LeaveStatus.pending_manager, LeaveAction.cancelled): LeaveStatus.cancelled,
    (LeaveStatus.pending_hr, LeaveAction.hr_approved): LeaveStatus.approved,
    (LeaveStatus.pending_hr, LeaveAction.hr_rejected): LeaveStatus.rejected,
    (LeaveStatus.pending_hr, LeaveAction.cancelled): LeaveStatus.cancelled,
}

_REJECTION_MESSAGES: dict[LeaveAction, str] = {
    LeaveAction.manager_approved: "Request is not pending manager approval.",
    LeaveAction.manager_rejected: "Request is not pending manager approval.",
    LeaveAction.hr_approved: "Request is not pending HR approval.",
    LeaveAction.hr_rejected: "Request is not pending HR approval.",
    LeaveAction.cancelled: "Cannot cancel request that has already been processed.",
}


def transition(status: LeaveStatus, action: LeaveAction) -> LeaveStatus:
    """Return the status reached by applying ``action`` in ``status``."""
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise StateConflictException(
            _REJECTION_MESSAGES.get(
                action, f"Cannot apply '{action.value}' to a {status.value} request."
            ),
        ) from None


def manager_action_for(approve: bool) -> LeaveAction:
    return LeaveAction.manager_approved if approve else LeaveAction.manager_rejected


def hr_action_for(approve: bool) -> LeaveAction:
    return LeaveAction.hr_approved if approve else LeaveAction.hr_rejected
