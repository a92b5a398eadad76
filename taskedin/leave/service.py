"""Leave service layer: request lifecycle, balance administration, dashboards.

Business logic:
  - Submission: policy → conflict check → capacity check → routing →
    optional auto-approval debit → audit → notify
  - Cancellation, manager action and HR action through the central
    transition table in ``workflow``
  - Balance summary, provisioning and admin updates
  - Leave-type settings, pending approval counts, department coverage,
    the approved-leave calendar

Every lifecycle operation commits its own transaction and enqueues its
notifications only after the commit succeeds.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from taskedin.common.clock import Clock, utcnow
from taskedin.common.constants import (
    MAX_BALANCE_BATCH_SIZE,
    LeaveAction,
    LeaveStatus,
    LeaveType,
    NotificationType,
    UserRole,
)
from taskedin.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    StateConflictException,
    ValidationException,
)
from taskedin.core_hr.models import Department, Employee
from taskedin.core_hr.service import EmployeeService
from taskedin.leave import workflow
from taskedin.leave.attachments import validate_stored_path
from taskedin.leave.audit import LeaveAuditTrail
from taskedin.leave.conflicts import ConflictCheckResult, ConflictDetector
from taskedin.leave.ledger import BalanceLedger
from taskedin.leave.models import LeaveBalance, LeaveRequest, LeaveTypeConfig
from taskedin.leave.policy import effective_config, evaluate_policy
from taskedin.leave.routing import resolve_route
from taskedin.leave.schemas import (
    BalanceBatchOut,
    BalanceUpdateItem,
    CalendarDataOut,
    CalendarLeaveOut,
    CalendarManagerGroupOut,
    DepartmentCoverageOut,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveSettingOut,
    LeaveSettingUpdate,
    PendingApprovalCountOut,
)
from taskedin.notifications import templates
from taskedin.notifications.queue import NotificationQueue

logger = logging.getLogger(__name__)

AUTO_APPROVED_COMMENT = "Auto-approved by system policy"
SUBMITTED_COMMENT = "Request submitted"
CANCELLED_COMMENT = "Cancelled by user"

_HR_ROLES = (UserRole.hr_admin, UserRole.system_admin)

# (recipient, subject, body, kind)
Outgoing = tuple[uuid.UUID, str, str, NotificationType]

_ACTION = NotificationType.action_required


def _outcome_kind(approve: bool) -> NotificationType:
    return NotificationType.approval if approve else NotificationType.alert


def _type_label(leave_type: LeaveType) -> str:
    return leave_type.value.replace("_", " ").title()


def _calendar_entry(leave_request: LeaveRequest) -> CalendarLeaveOut:
    employee = leave_request.employee
    return CalendarLeaveOut(
        id=leave_request.id,
        employee_id=leave_request.employee_id,
        employee_name=employee.full_name if employee else "Unknown",
        leave_type=leave_request.leave_type,
        start_date=leave_request.start_date,
        end_date=leave_request.end_date,
        number_of_days=leave_request.number_of_days,
    )


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Leave lifecycle bound to one session, one notification queue and a clock.

    Unlike the static helpers it composes (``BalanceLedger``,
    ``ConflictDetector``, ``EmployeeService``), this class is instantiated
    per request: every operation needs the injected clock for timestamps and
    the queue for post-commit notifications, so both travel with the session.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifications: NotificationQueue,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.notifications = notifications
        self.clock = clock

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _commit_and_notify(self, outgoing: Sequence[Outgoing]) -> None:
        await self.db.commit()
        for user_id, subject, body, kind in outgoing:
            self.notifications.enqueue(user_id, subject, body, kind)

    async def _get_request_for_update(self, request_id: uuid.UUID) -> LeaveRequest:
        result = await self.db.execute(
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.employee))
            .where(LeaveRequest.id == request_id)
            .with_for_update()
        )
        leave_request = result.scalars().first()
        if leave_request is None:
            raise NotFoundException("LeaveRequest", request_id)
        return leave_request

    async def _get_config(self, leave_type: LeaveType) -> Optional[LeaveTypeConfig]:
        return await self.db.get(LeaveTypeConfig, leave_type)

    def _apply(
        self,
        leave_request: LeaveRequest,
        actor_id: uuid.UUID,
        action: LeaveAction,
        comment: Optional[str],
    ) -> LeaveStatus:
        """Move the request through ``action`` and stage its audit entry."""
        new_status = workflow.transition(leave_request.status, action)
        now = self.clock()
        leave_request.status = new_status
        leave_request.updated_at = now
        LeaveAuditTrail.record_transition(
            self.db,
            leave_request_id=leave_request.id,
            actor_id=actor_id,
            action=action,
            resulting_status=new_status,
            comment=comment,
            created_at=now,
        )
        return new_status

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise ValidationException(
                {"end_date": ["End date must be on or after start date."]}
            )

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    async def submit(
        self,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
    ) -> LeaveRequest:
        """Create a leave request, auto-approving it when policy allows."""
        self._validate_range(data.start_date, data.end_date)
        if data.attachment_path is not None:
            validate_stored_path(data.attachment_path)

        employee = await EmployeeService.get_employee(self.db, employee_id)
        days = (data.end_date - data.start_date).days + 1
        fiscal_year = data.start_date.year

        decision = evaluate_policy(await self._get_config(data.leave_type), days)

        await EmployeeService.lock_employees(self.db, employee.id, employee.manager_id)

        if not decision.bypass_conflict:
            conflict = await ConflictDetector.check_submission(
                self.db, employee, data.start_date, data.end_date,
            )
            if conflict.has_conflict:
                raise StateConflictException(
                    f"Cannot submit request: {conflict.message}",
                    error_type="schedule-conflict",
                )

        balance = await BalanceLedger.check_and_reserve(
            self.db, employee.id, data.leave_type, fiscal_year, days,
        )
        route = resolve_route(employee, auto_approve=decision.auto_approve)

        now = self.clock()
        if decision.auto_approve:
            BalanceLedger.debit(balance, days, now=now)

        leave_request = LeaveRequest(
            id=uuid.uuid4(),
            employee_id=employee.id,
            manager_id=route.approver_id,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            number_of_days=days,
            fiscal_year=fiscal_year,
            notes=data.notes,
            attachment_path=data.attachment_path,
            status=route.status,
            created_at=now,
            updated_at=now,
        )
        self.db.add(leave_request)
        LeaveAuditTrail.record_transition(
            self.db,
            leave_request_id=leave_request.id,
            actor_id=employee.id,
            action=(
                LeaveAction.hr_approved if decision.auto_approve
                else LeaveAction.submitted
            ),
            resulting_status=route.status,
            comment=AUTO_APPROVED_COMMENT if decision.auto_approve else SUBMITTED_COMMENT,
            created_at=now,
        )
        await self.db.flush()

        label = _type_label(data.leave_type)
        outgoing: list[Outgoing] = []
        if decision.auto_approve:
            subject, body = templates.status_update(
                "Auto-Approved", label, data.start_date, data.end_date,
            )
            outgoing.append((employee.id, subject, body, NotificationType.approval))
        else:
            subject, body = templates.new_request(
                employee.full_name, label, data.start_date, data.end_date, days,
            )
            if route.status == LeaveStatus.pending_manager:
                outgoing.append((route.approver_id, subject, body, _ACTION))
            else:
                hr_users = await EmployeeService.list_hr_in_department(
                    self.db, employee.department_id,
                )
                outgoing.extend((hr.id, subject, body, _ACTION) for hr in hr_users)

        await self._commit_and_notify(outgoing)
        logger.info(
            "Leave request %s submitted by %s: %s %s-%s (%d days) -> %s",
            leave_request.id, employee.id, data.leave_type.value,
            data.start_date, data.end_date, days, route.status.value,
        )
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    async def cancel(self, actor_id: uuid.UUID, request_id: uuid.UUID) -> LeaveRequest:
        leave_request = await self._get_request_for_update(request_id)

        if leave_request.employee_id != actor_id:
            raise ForbiddenException("You can only cancel your own requests.")

        self._apply(leave_request, actor_id, LeaveAction.cancelled, CANCELLED_COMMENT)

        subject, body = templates.cancelled(
            leave_request.start_date, leave_request.end_date,
        )
        await self._commit_and_notify(
            [(leave_request.employee_id, subject, body, NotificationType.info)]
        )
        logger.info("Leave request %s cancelled by %s", request_id, actor_id)
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Manager action
    # ─────────────────────────────────────────────────────────────────

    async def manager_action(
        self,
        manager_id: uuid.UUID,
        request_id: uuid.UUID,
        approve: bool,
        comment: Optional[str] = None,
    ) -> LeaveRequest:
        leave_request = await self._get_request_for_update(request_id)

        if leave_request.employee_id == manager_id:
            raise ForbiddenException("You cannot approve your own leave request.")
        if leave_request.manager_id != manager_id:
            raise ForbiddenException("You are not the manager of this request.")

        action = workflow.manager_action_for(approve)
        workflow.transition(leave_request.status, action)  # raises on wrong status

        if approve:
            await EmployeeService.lock_employees(
                self.db, manager_id, leave_request.employee_id,
            )
            clash = await ConflictDetector.find_manager_scope_conflict(
                self.db, leave_request, manager_id,
            )
            if clash is not None:
                raise StateConflictException(
                    f"Cannot approve: {clash.employee.full_name} already has a "
                    f"leave request for this period that is pending HR approval "
                    f"or approved.",
                    error_type="schedule-conflict",
                )

        self._apply(leave_request, manager_id, action, comment)
        await self.db.flush()

        label = _type_label(leave_request.leave_type)
        employee = leave_request.employee
        subject, body = templates.status_update(
            "Approved by Manager" if approve else "Rejected by Manager",
            label, leave_request.start_date, leave_request.end_date,
        )
        outgoing: list[Outgoing] = [
            (leave_request.employee_id, subject, body, _outcome_kind(approve)),
        ]

        if approve:
            manager = await EmployeeService.find_employee(self.db, manager_id)
            hr_users = await EmployeeService.list_hr_in_department(
                self.db, manager.department_id if manager else None,
            )
            subject, body = templates.manager_action_to_hr(
                manager.full_name if manager else "Manager",
                employee.full_name if employee else "Employee",
                label,
                leave_request.number_of_days,
            )
            outgoing.extend((hr.id, subject, body, _ACTION) for hr in hr_users)

        await self._commit_and_notify(outgoing)
        logger.info(
            "Leave request %s %s by manager %s",
            request_id, action.value, manager_id,
        )
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # HR action
    # ─────────────────────────────────────────────────────────────────

    async def hr_action(
        self,
        hr_id: uuid.UUID,
        request_id: uuid.UUID,
        approve: bool,
        comment: Optional[str] = None,
    ) -> LeaveRequest:
        leave_request = await self._get_request_for_update(request_id)

        if leave_request.employee_id == hr_id:
            raise ForbiddenException("You cannot approve your own leave request.")

        action = workflow.hr_action_for(approve)
        workflow.transition(leave_request.status, action)  # raises on wrong status

        if approve:
            await EmployeeService.lock_employees(
                self.db, leave_request.manager_id, leave_request.employee_id,
            )
            clash = await ConflictDetector.find_hr_scope_conflict(
                self.db, leave_request,
            )
            if clash is not None:
                raise StateConflictException(
                    f"Cannot approve: {clash.employee.full_name} already has an "
                    f"approved leave for this period.",
                    error_type="schedule-conflict",
                )
            balance = await BalanceLedger.recheck_for_approval(self.db, leave_request)
            BalanceLedger.debit(balance, leave_request.number_of_days, now=self.clock())

        self._apply(leave_request, hr_id, action, comment)
        await self.db.flush()

        subject, body = templates.status_update(
            "Final Approved" if approve else "Rejected by HR",
            _type_label(leave_request.leave_type),
            leave_request.start_date,
            leave_request.end_date,
        )
        await self._commit_and_notify(
            [(leave_request.employee_id, subject, body, _outcome_kind(approve))]
        )
        logger.info(
            "Leave request %s %s by HR %s", request_id, action.value, hr_id,
        )
        return leave_request

    # ─────────────────────────────────────────────────────────────────
    # Read paths
    # ─────────────────────────────────────────────────────────────────

    async def get_history(self, viewer: Employee, request_id: uuid.UUID):
        """Audit trail of a request, visible to its owner, approver and HR."""
        leave_request = await self.db.get(LeaveRequest, request_id)
        if leave_request is None:
            raise NotFoundException("LeaveRequest", request_id)
        if viewer.role not in _HR_ROLES and viewer.id not in (
            leave_request.employee_id,
            leave_request.manager_id,
        ):
            raise ForbiddenException("You cannot view the history of this request.")
        return await LeaveAuditTrail.get_history(self.db, request_id)

    async def check_conflict(
        self,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> ConflictCheckResult:
        """Run the submission-time conflict check without submitting."""
        self._validate_range(start_date, end_date)
        employee = await EmployeeService.get_employee(self.db, employee_id)
        return await ConflictDetector.check_submission(
            self.db, employee, start_date, end_date,
        )

    async def get_balances(
        self,
        employee_id: uuid.UUID,
        year: Optional[int] = None,
    ) -> list[LeaveBalanceOut]:
        """One row per leave type for the year; missing records report zeros."""
        target_year = year or self.clock().year
        result = await self.db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.year == target_year,
            )
        )
        by_type = {b.leave_type: b for b in result.scalars().all()}

        balances: list[LeaveBalanceOut] = []
        for leave_type in LeaveType:
            record = by_type.get(leave_type)
            if record is None:
                balances.append(LeaveBalanceOut(leave_type=leave_type, year=target_year))
            else:
                balances.append(
                    LeaveBalanceOut(
                        leave_type=leave_type,
                        year=target_year,
                        total_days=record.total_days,
                        used_days=record.used_days,
                        remaining_days=record.remaining_days,
                    )
                )
        return balances

    # ─────────────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────────────

    async def get_leave_settings(self) -> list[LeaveSettingOut]:
        result = await self.db.execute(select(LeaveTypeConfig))
        stored = {c.leave_type: c for c in result.scalars().all()}
        return [
            LeaveSettingOut.model_validate(
                effective_config(leave_type, stored.get(leave_type))
            )
            for leave_type in LeaveType
        ]

    async def update_leave_settings(
        self,
        items: Sequence[LeaveSettingUpdate],
    ) -> list[LeaveSettingOut]:
        """Upsert the given types; unspecified types keep their settings."""
        now = self.clock()
        for item in items:
            config = await self._get_config(item.leave_type)
            if config is None:
                config = LeaveTypeConfig(leave_type=item.leave_type)
                self.db.add(config)
            config.default_balance = item.default_balance
            config.auto_approve_enabled = item.auto_approve_enabled
            config.auto_approve_threshold_days = item.auto_approve_threshold_days
            config.bypass_conflict_check = item.bypass_conflict_check
            config.updated_at = now
        await self.db.commit()
        logger.info(
            "Leave settings updated for %s",
            ", ".join(i.leave_type.value for i in items) or "no types",
        )
        return await self.get_leave_settings()

    # ─────────────────────────────────────────────────────────────────
    # Balance provisioning
    # ─────────────────────────────────────────────────────────────────

    async def _validate_batch(self, user_ids: Sequence[uuid.UUID]) -> list[uuid.UUID]:
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            raise ValidationException({"user_ids": ["No users specified."]})
        if len(unique_ids) > MAX_BALANCE_BATCH_SIZE:
            raise ValidationException(
                {
                    "user_ids": [
                        f"Too many users selected. Maximum {MAX_BALANCE_BATCH_SIZE} "
                        f"users per request."
                    ]
                }
            )
        result = await self.db.execute(
            select(Employee.id).where(Employee.id.in_(unique_ids))
        )
        known = set(result.scalars().all())
        unknown = [str(i) for i in unique_ids if i not in known]
        if unknown:
            raise ValidationException(
                {"user_ids": [f"Unknown employee id(s): {', '.join(unknown)}."]}
            )
        return unique_ids

    async def _existing_balances(
        self,
        user_ids: Sequence[uuid.UUID],
        year: int,
    ) -> dict[tuple[uuid.UUID, LeaveType], LeaveBalance]:
        result = await self.db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id.in_(user_ids),
                LeaveBalance.year == year,
            )
        )
        return {(b.employee_id, b.leave_type): b for b in result.scalars().all()}

    async def initialize_balances(
        self,
        user_ids: Sequence[uuid.UUID],
        year: Optional[int] = None,
    ) -> BalanceBatchOut:
        """Create missing balance records at each type's default allowance."""
        target_year = year or self.clock().year
        ids = await self._validate_batch(user_ids)

        result = await self.db.execute(select(LeaveTypeConfig))
        stored = {c.leave_type: c for c in result.scalars().all()}
        existing = await self._existing_balances(ids, target_year)

        created = 0
        for employee_id in ids:
            for leave_type in LeaveType:
                if (employee_id, leave_type) in existing:
                    continue
                config = effective_config(leave_type, stored.get(leave_type))
                self.db.add(
                    LeaveBalance(
                        employee_id=employee_id,
                        leave_type=leave_type,
                        year=target_year,
                        total_days=config.default_balance,
                        used_days=0,
                    )
                )
                created += 1

        await self.db.commit()
        logger.info(
            "Initialized %d balance records for %d users in %d",
            created, len(ids), target_year,
        )
        return BalanceBatchOut(
            year=target_year,
            users_processed=len(ids),
            records_created=created,
            message=(
                f"Leave balances for {target_year} initialized for {len(ids)} "
                f"users ({created} balance records created)"
            ),
        )

    async def update_balances(
        self,
        user_ids: Sequence[uuid.UUID],
        updates: Sequence[BalanceUpdateItem],
        year: Optional[int] = None,
    ) -> BalanceBatchOut:
        """Set ``total_days`` per type; ``used_days`` is never touched."""
        if not updates:
            raise ValidationException({"updates": ["No balance updates specified."]})
        target_year = year or self.clock().year
        ids = await self._validate_batch(user_ids)
        existing = await self._existing_balances(ids, target_year)

        now = self.clock()
        created = updated = 0
        for employee_id in ids:
            for item in updates:
                record = existing.get((employee_id, item.leave_type))
                if record is None:
                    record = LeaveBalance(
                        employee_id=employee_id,
                        leave_type=item.leave_type,
                        year=target_year,
                        total_days=item.total_days,
                        used_days=0,
                    )
                    self.db.add(record)
                    existing[(employee_id, item.leave_type)] = record
                    created += 1
                else:
                    record.total_days = item.total_days
                    record.updated_at = now
                    updated += 1

        await self.db.commit()
        logger.info(
            "Balance update for %d users in %d: %d updated, %d created",
            len(ids), target_year, updated, created,
        )
        return BalanceBatchOut(
            year=target_year,
            users_processed=len(ids),
            records_created=created,
            records_updated=updated,
            message=(
                f"Updated {updated} balance records for {target_year}, created "
                f"{created} new records for {len(ids)} users"
            ),
        )

    # ─────────────────────────────────────────────────────────────────
    # Dashboards
    # ─────────────────────────────────────────────────────────────────

    async def get_pending_approval_count(
        self,
        user_id: uuid.UUID,
    ) -> PendingApprovalCountOut:
        user = await EmployeeService.get_employee(self.db, user_id)
        pending_manager = pending_hr = 0

        if user.role == UserRole.manager:
            pending_manager = (
                await self.db.execute(
                    select(func.count(LeaveRequest.id)).where(
                        LeaveRequest.manager_id == user.id,
                        LeaveRequest.status == LeaveStatus.pending_manager,
                    )
                )
            ).scalar_one()
        elif user.role == UserRole.hr_admin:
            # Department of the recorded approver, not of the requester
            if user.department_id is not None:
                approver = aliased(Employee)
                pending_hr = (
                    await self.db.execute(
                        select(func.count(LeaveRequest.id))
                        .join(approver, LeaveRequest.manager_id == approver.id)
                        .where(
                            LeaveRequest.status == LeaveStatus.pending_hr,
                            approver.department_id == user.department_id,
                        )
                    )
                ).scalar_one()
        elif user.role == UserRole.system_admin:
            pending_hr = (
                await self.db.execute(
                    select(func.count(LeaveRequest.id)).where(
                        LeaveRequest.status == LeaveStatus.pending_hr,
                    )
                )
            ).scalar_one()

        return PendingApprovalCountOut(
            pending_manager_approval=pending_manager,
            pending_hr_approval=pending_hr,
            total_pending=pending_manager + pending_hr,
        )

    async def get_department_coverage(
        self,
        requester_id: uuid.UUID,
        on_date: Optional[date] = None,
    ) -> list[DepartmentCoverageOut]:
        """Headcount available per department on ``on_date`` (today by default)."""
        target_date = on_date or self.clock().date()
        requester = await EmployeeService.get_employee(self.db, requester_id)

        if requester.role in _HR_ROLES:
            department_filter = None
        elif requester.role == UserRole.manager:
            if requester.department_id is None:
                return []
            department_filter = requester.department_id
        else:
            raise ForbiddenException(
                "Only Managers and HR can view department coverage."
            )

        totals_q = (
            select(Department.id, Department.name, func.count(Employee.id))
            .join(Employee, Employee.department_id == Department.id)
            .where(Employee.is_active.is_(True))
            .group_by(Department.id, Department.name)
            .order_by(Department.name)
        )
        on_leave_q = (
            select(Employee.department_id, func.count(Employee.id.distinct()))
            .join(LeaveRequest, LeaveRequest.employee_id == Employee.id)
            .where(
                Employee.is_active.is_(True),
                Employee.department_id.is_not(None),
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date <= target_date,
                LeaveRequest.end_date >= target_date,
            )
            .group_by(Employee.department_id)
        )
        if department_filter is not None:
            totals_q = totals_q.where(Department.id == department_filter)
            on_leave_q = on_leave_q.where(Employee.department_id == department_filter)

        on_leave = dict((await self.db.execute(on_leave_q)).all())

        coverage: list[DepartmentCoverageOut] = []
        for department_id, name, total in (await self.db.execute(totals_q)).all():
            away = on_leave.get(department_id, 0)
            available = total - away
            coverage.append(
                DepartmentCoverageOut(
                    department_id=department_id,
                    department_name=name,
                    total_employees=total,
                    on_leave_count=away,
                    available_count=available,
                    capacity_percentage=(
                        round(available / total * 100, 1) if total else 0.0
                    ),
                )
            )
        return coverage

    async def get_calendar_data(
        self,
        user_id: uuid.UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CalendarDataOut:
        """Approved leave overlapping the window, scoped by the caller's role."""
        if start_date is not None and end_date is not None:
            self._validate_range(start_date, end_date)
        user = await EmployeeService.get_employee(self.db, user_id)

        query = (
            select(LeaveRequest)
            .options(
                selectinload(LeaveRequest.employee),
                selectinload(LeaveRequest.manager),
            )
            .where(LeaveRequest.status == LeaveStatus.approved)
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
        )
        if start_date is not None:
            query = query.where(LeaveRequest.end_date >= start_date)
        if end_date is not None:
            query = query.where(LeaveRequest.start_date <= end_date)

        if user.role in _HR_ROLES:
            groups: dict[uuid.UUID, CalendarManagerGroupOut] = {}
            for leave_request in (await self.db.execute(query)).scalars().all():
                group = groups.get(leave_request.manager_id)
                if group is None:
                    manager = leave_request.manager
                    group = groups[leave_request.manager_id] = CalendarManagerGroupOut(
                        manager_id=leave_request.manager_id,
                        manager_name=manager.full_name if manager else "Unknown",
                        department_id=manager.department_id if manager else None,
                    )
                group.leaves.append(_calendar_entry(leave_request))
            return CalendarDataOut(
                grouped_by_manager=sorted(groups.values(), key=lambda g: g.manager_name),
            )

        if user.role == UserRole.manager:
            query = query.where(LeaveRequest.manager_id == user.id)
        else:
            query = query.where(LeaveRequest.employee_id == user.id)
        result = await self.db.execute(query)
        return CalendarDataOut(
            leaves=[_calendar_entry(r) for r in result.scalars().all()],
        )
