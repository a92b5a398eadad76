"""Initial routing of a new leave request through the approval chain."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from taskedin.common.constants import LeaveStatus
from taskedin.common.exceptions import StateConflictException
from taskedin.core_hr.models import Employee

NO_MANAGER_MESSAGE = (
    "Request Failed: No direct manager assigned. "
    "Please contact HR to assign a manager."
)


@dataclass(frozen=True)
class Route:
    status: LeaveStatus
    approver_id: uuid.UUID


def resolve_route(employee: Employee, *, auto_approve: bool) -> Route:
    """Return the starting status and the recorded approver.

    The requester's own id is stored as a placeholder approver when the
    request skips the manager stage (auto-approved or department head).
    """
    if auto_approve:
        return Route(LeaveStatus.approved, employee.id)

    if employee.is_department_head:
        return Route(LeaveStatus.pending_hr, employee.id)

    # Managers with a manager route like everyone else
    if employee.manager_id is None:
        raise StateConflictException(
            NO_MANAGER_MESSAGE, error_type="no-manager-assigned",
        )
    return Route(LeaveStatus.pending_manager, employee.manager_id)
