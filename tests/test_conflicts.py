"""Conflict detector tests for the submission, manager and HR scopes."""

from __future__ import annotations

from datetime import date

from taskedin.common.constants import LeaveStatus
from taskedin.leave.conflicts import NO_CONFLICT, ConflictDetector

from tests.factories import seed_employee, seed_request, seed_team


class TestSubmissionCheck:

    async def test_no_requests_no_conflict(self, db):
        team = await seed_team(db)
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 1), date(2026, 4, 3),
        )
        assert result == NO_CONFLICT
        assert result.message == "No conflicts found."

    async def test_own_pending_request_conflicts(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 8),
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 8), date(2026, 4, 10),
        )
        assert result.has_conflict is True
        assert result.conflicting_employee_name == "You"
        assert result.message == (
            "You already have a leave request (pending_manager) for Apr 06 - Apr 08."
        )

    async def test_own_terminal_requests_do_not_conflict(self, db):
        team = await seed_team(db)
        for status in (LeaveStatus.rejected, LeaveStatus.cancelled):
            await seed_request(
                db, team.alice, start_date=date(2026, 4, 6), end_date=date(2026, 4, 8),
                status=status,
            )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 6), date(2026, 4, 8),
        )
        assert result.has_conflict is False

    async def test_single_day_edge_overlap_counts(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.approved,
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 5), date(2026, 4, 5),
        )
        assert result.has_conflict is True
        assert result.conflicting_employee_name == "Bob Jones"
        assert result.message == (
            "Conflict detected: Bob Jones already has approved leave during this period."
        )

    async def test_adjacent_ranges_do_not_overlap(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.approved,
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 6), date(2026, 4, 7),
        )
        assert result.has_conflict is False

    async def test_pending_colleague_does_not_block_submission(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.pending_hr,
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 2), date(2026, 4, 3),
        )
        assert result.has_conflict is False

    async def test_other_team_does_not_conflict(self, db):
        team = await seed_team(db)
        other = await seed_employee(
            db, first_name="Olga", manager_id=team.head.id,
        )
        await seed_request(
            db, other, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.approved,
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 1), date(2026, 4, 5),
        )
        assert result.has_conflict is False

    async def test_self_conflict_reported_before_team(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.approved,
        )
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 3), end_date=date(2026, 4, 3),
            status=LeaveStatus.approved,
        )
        result = await ConflictDetector.check_submission(
            db, team.alice, date(2026, 4, 2), date(2026, 4, 4),
        )
        assert result.conflicting_employee_name == "You"

    async def test_without_manager_only_self_is_checked(self, db):
        team = await seed_team(db)
        await seed_request(
            db, team.manager, start_date=date(2026, 4, 1), end_date=date(2026, 4, 5),
            status=LeaveStatus.approved, manager_id=team.hr.id,
        )
        result = await ConflictDetector.check_submission(
            db, team.hr, date(2026, 4, 1), date(2026, 4, 5),
        )
        assert result.has_conflict is False


class TestApprovalScopes:

    async def test_manager_scope_sees_pending_hr_and_approved(self, db):
        team = await seed_team(db)
        target = await seed_request(
            db, team.alice, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
        )
        for status in (LeaveStatus.pending_hr, LeaveStatus.approved):
            other = await seed_request(
                db, team.bob, start_date=date(2026, 4, 3), end_date=date(2026, 4, 4),
                status=status,
            )
            clash = await ConflictDetector.find_manager_scope_conflict(
                db, target, team.manager.id,
            )
            assert clash is not None
            assert clash.id == other.id
            assert clash.employee.full_name == "Bob Jones"
            other.status = LeaveStatus.cancelled
            await db.flush()

    async def test_manager_scope_ignores_pending_manager(self, db):
        team = await seed_team(db)
        target = await seed_request(
            db, team.alice, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
        )
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
        )
        clash = await ConflictDetector.find_manager_scope_conflict(
            db, target, team.manager.id,
        )
        assert clash is None

    async def test_hr_scope_sees_only_approved(self, db):
        team = await seed_team(db)
        target = await seed_request(
            db, team.alice, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
            status=LeaveStatus.pending_hr,
        )
        await seed_request(
            db, team.bob, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
            status=LeaveStatus.pending_hr,
        )
        assert await ConflictDetector.find_hr_scope_conflict(db, target) is None

        approved = await seed_request(
            db, team.bob, start_date=date(2026, 4, 3), end_date=date(2026, 4, 9),
            status=LeaveStatus.approved,
        )
        clash = await ConflictDetector.find_hr_scope_conflict(db, target)
        assert clash is not None
        assert clash.id == approved.id

    async def test_hr_scope_uses_recorded_manager(self, db):
        team = await seed_team(db)
        head_request = await seed_request(
            db, team.head, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
            status=LeaveStatus.pending_hr, manager_id=team.head.id,
        )
        # Alice reports to Mona, not to the head
        await seed_request(
            db, team.alice, start_date=date(2026, 4, 1), end_date=date(2026, 4, 3),
            status=LeaveStatus.approved,
        )
        assert await ConflictDetector.find_hr_scope_conflict(db, head_request) is None

