"""Routing resolver tests: starting status and recorded approver."""

from __future__ import annotations

import uuid
from typing import Optional

import pytest

from taskedin.common.constants import LeaveStatus, UserRole
from taskedin.common.exceptions import StateConflictException
from taskedin.core_hr.models import Employee
from taskedin.leave.routing import resolve_route


def _employee(role: UserRole, manager_id: Optional[uuid.UUID] = None) -> Employee:
    return Employee(
        id=uuid.uuid4(),
        first_name="Test",
        last_name="User",
        email="test@taskedin.test",
        role=role,
        manager_id=manager_id,
    )


class TestResolveRoute:

    def test_auto_approval_skips_the_chain(self):
        emp = _employee(UserRole.employee, manager_id=uuid.uuid4())
        route = resolve_route(emp, auto_approve=True)
        assert route.status == LeaveStatus.approved
        assert route.approver_id == emp.id

    def test_auto_approval_needs_no_manager(self):
        emp = _employee(UserRole.employee)
        assert resolve_route(emp, auto_approve=True).status == LeaveStatus.approved

    def test_department_head_goes_straight_to_hr(self):
        head = _employee(UserRole.manager)
        route = resolve_route(head, auto_approve=False)
        assert route.status == LeaveStatus.pending_hr
        assert route.approver_id == head.id

    def test_manager_with_manager_routes_upward(self):
        boss_id = uuid.uuid4()
        mgr = _employee(UserRole.manager, manager_id=boss_id)
        route = resolve_route(mgr, auto_approve=False)
        assert route.status == LeaveStatus.pending_manager
        assert route.approver_id == boss_id

    def test_employee_routes_to_manager(self):
        manager_id = uuid.uuid4()
        route = resolve_route(
            _employee(UserRole.employee, manager_id=manager_id), auto_approve=False,
        )
        assert route.status == LeaveStatus.pending_manager
        assert route.approver_id == manager_id

    @pytest.mark.parametrize(
        "role", [UserRole.employee, UserRole.hr_admin, UserRole.system_admin],
    )
    def test_no_manager_assigned_fails(self, role):
        with pytest.raises(StateConflictException) as exc_info:
            resolve_route(_employee(role), auto_approve=False)
        assert exc_info.value.error_type == "no-manager-assigned"
        assert "No direct manager assigned" in exc_info.value.detail
