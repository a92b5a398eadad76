"""Leave administration and read-path tests.

Covers leave-type settings, balance provisioning and bulk updates, the
balance summary, the standalone conflict check and the approval dashboards.
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from taskedin.common.constants import LeaveStatus, LeaveType, UserRole
from taskedin.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from taskedin.leave.ledger import BalanceLedger
from taskedin.leave.schemas import BalanceUpdateItem, LeaveSettingUpdate

from tests.factories import (
    seed_balance,
    seed_config,
    seed_department,
    seed_employee,
    seed_request,
    seed_team,
)


# ── Settings ────────────────────────────────────────────────────────

class TestLeaveSettings:

    async def test_defaults_when_nothing_stored(self, service):
        settings = await service.get_leave_settings()

        assert [s.leave_type for s in settings] == list(LeaveType)
        by_type = {s.leave_type: s for s in settings}
        assert by_type[LeaveType.annual].default_balance == 21
        assert by_type[LeaveType.unpaid].default_balance == 7
        assert not any(s.auto_approve_enabled for s in settings)

    async def test_update_only_touches_given_types(self, db, service):
        await seed_config(db, LeaveType.annual, default_balance=25)

        settings = await service.update_leave_settings([
            LeaveSettingUpdate(
                leave_type=LeaveType.sick,
                default_balance=10,
                auto_approve_enabled=True,
                auto_approve_threshold_days=2,
            ),
        ])

        by_type = {s.leave_type: s for s in settings}
        assert by_type[LeaveType.sick].default_balance == 10
        assert by_type[LeaveType.sick].auto_approve_enabled is True
        assert by_type[LeaveType.sick].auto_approve_threshold_days == 2
        assert by_type[LeaveType.annual].default_balance == 25

    async def test_update_existing_row(self, db, service):
        await seed_config(db, LeaveType.emergency, default_balance=3)

        await service.update_leave_settings([
            LeaveSettingUpdate(
                leave_type=LeaveType.emergency,
                default_balance=5,
                bypass_conflict_check=True,
            ),
        ])

        by_type = {s.leave_type: s for s in await service.get_leave_settings()}
        assert by_type[LeaveType.emergency].default_balance == 5
        assert by_type[LeaveType.emergency].bypass_conflict_check is True


# ── Balance provisioning ────────────────────────────────────────────

class TestInitializeBalances:

    async def test_creates_every_type_at_default(self, db, service):
        team = await seed_team(db)
        await seed_config(db, LeaveType.sick, default_balance=12)

        result = await service.initialize_balances([team.alice.id, team.bob.id], 2026)

        assert result.users_processed == 2
        assert result.records_created == 2 * len(LeaveType)
        assert result.message == (
            "Leave balances for 2026 initialized for 2 users "
            "(12 balance records created)"
        )
        sick = await BalanceLedger.get_balance(db, team.alice.id, LeaveType.sick, 2026)
        annual = await BalanceLedger.get_balance(db, team.alice.id, LeaveType.annual, 2026)
        assert sick.total_days == 12
        assert annual.total_days == 21
        assert annual.used_days == 0

    async def test_existing_records_are_kept(self, db, service):
        team = await seed_team(db)
        existing = await seed_balance(db, team.alice.id, total_days=15, used_days=4)

        result = await service.initialize_balances([team.alice.id], 2026)

        assert result.records_created == len(LeaveType) - 1
        assert existing.total_days == 15
        assert existing.used_days == 4

        again = await service.initialize_balances([team.alice.id], 2026)
        assert again.records_created == 0

    async def test_year_defaults_to_clock(self, db, service):
        team = await seed_team(db)
        result = await service.initialize_balances([team.alice.id])
        assert result.year == 2026

    async def test_duplicate_ids_processed_once(self, db, service):
        team = await seed_team(db)
        result = await service.initialize_balances([team.alice.id, team.alice.id], 2026)
        assert result.users_processed == 1

    async def test_empty_batch(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.initialize_balances([], 2026)
        assert exc_info.value.errors == {"user_ids": ["No users specified."]}

    async def test_batch_too_large(self, service):
        ids = [uuid.uuid4() for _ in range(1001)]
        with pytest.raises(ValidationException) as exc_info:
            await service.initialize_balances(ids, 2026)
        assert "Maximum 1000" in exc_info.value.errors["user_ids"][0]

    async def test_unknown_employee_rejects_whole_batch(self, db, service):
        team = await seed_team(db)
        stranger = uuid.uuid4()
        with pytest.raises(ValidationException) as exc_info:
            await service.initialize_balances([team.alice.id, stranger], 2026)
        assert str(stranger) in exc_info.value.errors["user_ids"][0]
        assert await BalanceLedger.get_balance(
            db, team.alice.id, LeaveType.annual, 2026,
        ) is None


class TestUpdateBalances:

    async def test_sets_total_and_keeps_used(self, db, service):
        team = await seed_team(db)
        alice_annual = await seed_balance(db, team.alice.id, total_days=21, used_days=6)

        result = await service.update_balances(
            [team.alice.id, team.bob.id],
            [BalanceUpdateItem(leave_type=LeaveType.annual, total_days=30)],
            2026,
        )

        assert result.records_updated == 1
        assert result.records_created == 1
        assert alice_annual.total_days == 30
        assert alice_annual.used_days == 6
        bob_annual = await BalanceLedger.get_balance(db, team.bob.id, LeaveType.annual, 2026)
        assert bob_annual.total_days == 30
        assert bob_annual.used_days == 0

    async def test_no_updates(self, db, service):
        team = await seed_team(db)
        with pytest.raises(ValidationException):
            await service.update_balances([team.alice.id], [], 2026)


# ── Read paths ──────────────────────────────────────────────────────

class TestBalanceSummary:

    async def test_zero_fills_missing_types(self, db, service):
        team = await seed_team(db)
        await seed_balance(db, team.alice.id, total_days=21, used_days=5)

        balances = await service.get_balances(team.alice.id, 2026)

        assert len(balances) == len(LeaveType)
        by_type = {b.leave_type: b for b in balances}
        assert by_type[LeaveType.annual].remaining_days == 16
        assert by_type[LeaveType.sick].total_days == 0
        assert by_type[LeaveType.sick].remaining_days == 0

    async def test_other_year_not_reported(self, db, service):
        team = await seed_team(db)
        await seed_balance(db, team.alice.id, year=2025, total_days=21)
        balances = await service.get_balances(team.alice.id)
        assert all(b.year == 2026 and b.total_days == 0 for b in balances)


class TestCheckConflict:

    async def test_reports_without_submitting(self, db, service):
        team = await seed_team(db)
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 6), end_date=date(2026, 4, 7),
            status=LeaveStatus.approved,
        )
        result = await service.check_conflict(team.alice.id, date(2026, 4, 7), date(2026, 4, 9))
        assert result.has_conflict is True
        assert result.conflicting_employee_name == "Bob Jones"

    async def test_invalid_range(self, db, service):
        team = await seed_team(db)
        with pytest.raises(ValidationException):
            await service.check_conflict(team.alice.id, date(2026, 4, 9), date(2026, 4, 7))


# ── Dashboards ──────────────────────────────────────────────────────

class TestPendingApprovalCount:

    async def test_manager_sees_own_queue(self, db, service):
        team = await seed_team(db)
        for emp in (team.alice, team.bob):
            await seed_request(
                db, emp, start_date=date(2026, 4, 6), end_date=date(2026, 4, 6),
            )
        await seed_request(
            db, team.alice, start_date=date(2026, 5, 6), end_date=date(2026, 5, 6),
            status=LeaveStatus.pending_hr,
        )

        count = await service.get_pending_approval_count(team.manager.id)
        assert count.pending_manager_approval == 2
        assert count.pending_hr_approval == 0
        assert count.total_pending == 2

    async def test_hr_sees_department_of_approver(self, db, service):
        team = await seed_team(db)
        sales = await seed_department(db, name="Sales", code="SAL")
        sales_mgr = await seed_employee(
            db, first_name="Sam", role=UserRole.manager, department_id=sales.id,
        )
        seller = await seed_employee(
            db, first_name="Sue", department_id=sales.id, manager_id=sales_mgr.id,
        )
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 6),
            status=LeaveStatus.pending_hr,
        )
        await seed_request(
            db, seller, start_date=date(2026, 4, 6), end_date=date(2026, 4, 6),
            status=LeaveStatus.pending_hr,
        )

        count = await service.get_pending_approval_count(team.hr.id)
        assert count.pending_hr_approval == 1

    async def test_system_admin_sees_everything(self, db, service):
        team = await seed_team(db)
        admin = await seed_employee(db, first_name="Ada", role=UserRole.system_admin)
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 6),
            status=LeaveStatus.pending_hr,
        )
        count = await service.get_pending_approval_count(admin.id)
        assert count.pending_hr_approval == 1

    async def test_employee_has_nothing_to_approve(self, db, service):
        team = await seed_team(db)
        count = await service.get_pending_approval_count(team.alice.id)
        assert count.total_pending == 0


class TestDepartmentCoverage:

    async def test_counts_approved_leave_on_date(self, db, service):
        team = await seed_team(db)
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 8),
            status=LeaveStatus.approved,
        )
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 6), end_date=date(2026, 4, 8),
        )

        coverage = await service.get_department_coverage(team.manager.id, date(2026, 4, 7))

        assert len(coverage) == 1
        row = coverage[0]
        assert row.department_name == "Engineering"
        assert row.total_employees == 5
        assert row.on_leave_count == 1
        assert row.available_count == 4
        assert row.capacity_percentage == 80.0

    async def test_hr_sees_all_departments(self, db, service):
        team = await seed_team(db)
        sales = await seed_department(db, name="Sales", code="SAL")
        await seed_employee(db, first_name="Sue", department_id=sales.id)

        coverage = await service.get_department_coverage(team.hr.id)
        assert [c.department_name for c in coverage] == ["Engineering", "Sales"]

    async def test_inactive_employees_are_not_counted(self, db, service):
        team = await seed_team(db)
        await seed_employee(db, first_name="Gone", department_id=team.dept.id, is_active=False)
        coverage = await service.get_department_coverage(team.manager.id)
        assert coverage[0].total_employees == 5

    async def test_employee_forbidden(self, db, service):
        team = await seed_team(db)
        with pytest.raises(ForbiddenException):
            await service.get_department_coverage(team.alice.id)

    async def test_inactive_requester_not_found(self, db, service):
        ghost = await seed_employee(db, role=UserRole.manager, is_active=False)
        with pytest.raises(NotFoundException):
            await service.get_department_coverage(ghost.id)


class TestLeaveCalendar:

    async def _seed_calendar(self, db):
        team = await seed_team(db)
        alice_leave = await seed_request(
            db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 8),
            status=LeaveStatus.approved,
        )
        bob_leave = await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 2),
            status=LeaveStatus.approved,
        )
        manager_leave = await seed_request(
            db, team.manager, start_date=date(2026, 4, 20), end_date=date(2026, 4, 21),
            status=LeaveStatus.approved,
        )
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 13), end_date=date(2026, 4, 13),
        )
        await seed_request(
            db, team.bob, start_date=date(2026, 6, 1), end_date=date(2026, 6, 1),
            status=LeaveStatus.cancelled,
        )
        return team, alice_leave, bob_leave, manager_leave

    async def test_hr_sees_leave_grouped_by_approver(self, db, service):
        team, alice_leave, bob_leave, manager_leave = await self._seed_calendar(db)

        calendar = await service.get_calendar_data(team.hr.id)

        assert calendar.leaves is None
        groups = calendar.grouped_by_manager
        assert [g.manager_name for g in groups] == ["Hana Head", "Mona Manager"]
        assert groups[0].manager_id == team.head.id
        assert [e.id for e in groups[0].leaves] == [manager_leave.id]
        assert groups[1].department_id == team.dept.id
        assert [e.id for e in groups[1].leaves] == [bob_leave.id, alice_leave.id]
        assert groups[1].leaves[1].employee_name == "Alice Smith"
        assert groups[1].leaves[1].number_of_days == 3

    async def test_system_admin_sees_every_group(self, db, service):
        team, *_ = await self._seed_calendar(db)
        admin = await seed_employee(db, first_name="Ada", role=UserRole.system_admin)

        calendar = await service.get_calendar_data(admin.id)

        assert len(calendar.grouped_by_manager) == 2

    async def test_manager_sees_own_team(self, db, service):
        team, alice_leave, bob_leave, _ = await self._seed_calendar(db)

        calendar = await service.get_calendar_data(team.manager.id)

        assert calendar.grouped_by_manager is None
        assert [e.id for e in calendar.leaves] == [bob_leave.id, alice_leave.id]

    async def test_employee_sees_only_own_leave(self, db, service):
        team, alice_leave, *_ = await self._seed_calendar(db)

        calendar = await service.get_calendar_data(team.alice.id)

        assert [e.id for e in calendar.leaves] == [alice_leave.id]
        assert calendar.leaves[0].leave_type == LeaveType.annual

    async def test_window_overlap_is_inclusive(self, db, service):
        team, alice_leave, bob_leave, _ = await self._seed_calendar(db)

        calendar = await service.get_calendar_data(
            team.manager.id, date(2026, 4, 2), date(2026, 4, 6),
        )
        assert [e.id for e in calendar.leaves] == [bob_leave.id, alice_leave.id]

        calendar = await service.get_calendar_data(
            team.manager.id, start_date=date(2026, 4, 3),
        )
        assert [e.id for e in calendar.leaves] == [alice_leave.id]

        calendar = await service.get_calendar_data(
            team.manager.id, end_date=date(2026, 4, 5),
        )
        assert [e.id for e in calendar.leaves] == [bob_leave.id]

    async def test_invalid_window(self, db, service):
        team = await seed_team(db)
        with pytest.raises(ValidationException):
            await service.get_calendar_data(
                team.alice.id, date(2026, 4, 9), date(2026, 4, 7),
            )
