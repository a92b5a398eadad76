"""Schedule-conflict detection.

Three scopes are checked at different lifecycle stages, each with its own
status set:

  - submission:  the requester's own pending/approved requests, then
                 approved requests of colleagues sharing their manager
  - manager:     requests under the acting manager that are pending HR or
                 approved
  - HR:          approved requests sharing the request's recorded manager

All ranges are inclusive on both ends.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskedin.common.constants import (
    ACTIVE_STATUSES,
    NOTIFICATION_DATE_FORMAT,
    LeaveStatus,
)
from taskedin.core_hr.models import Employee
from taskedin.leave.models import LeaveRequest


@dataclass(frozen=True)
class ConflictCheckResult:
    has_conflict: bool
    conflicting_employee_name: Optional[str]
    message: str


NO_CONFLICT = ConflictCheckResult(False, None, "No conflicts found.")


def _overlaps(start_date: date, end_date: date):
    return (
        LeaveRequest.start_date <= end_date,
        LeaveRequest.end_date >= start_date,
    )


def _fmt(d: date) -> str:
    return d.strftime(NOTIFICATION_DATE_FORMAT)


class ConflictDetector:
    """Async overlap queries against ``leave_requests``."""

    @staticmethod
    async def check_submission(
        db: AsyncSession,
        employee: Employee,
        start_date: date,
        end_date: date,
    ) -> ConflictCheckResult:
        """Self-conflict first, then team-conflict."""
        query = (
            select(LeaveRequest)
            .where(
                LeaveRequest.employee_id == employee.id,
                LeaveRequest.status.in_(list(ACTIVE_STATUSES)),
                *_overlaps(start_date, end_date),
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .limit(1)
        )
        own = (await db.execute(query)).scalars().first()
        if own is not None:
            return ConflictCheckResult(
                has_conflict=True,
                conflicting_employee_name="You",
                message=(
                    f"You already have a leave request ({own.status.value}) "
                    f"for {_fmt(own.start_date)} - {_fmt(own.end_date)}."
                ),
            )

        # No manager means no team to collide with
        if employee.manager_id is None:
            return NO_CONFLICT

        result = await db.execute(
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.employee))
            .where(
                LeaveRequest.employee_id != employee.id,
                LeaveRequest.manager_id == employee.manager_id,
                LeaveRequest.status == LeaveStatus.approved,
                *_overlaps(start_date, end_date),
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .limit(1)
        )
        colleague_request = result.scalars().first()
        if colleague_request is None:
            return NO_CONFLICT

        name = colleague_request.employee.full_name
        return ConflictCheckResult(
            has_conflict=True,
            conflicting_employee_name=name,
            message=(
                f"Conflict detected: {name} already has approved leave "
                f"during this period."
            ),
        )

    @staticmethod
    async def find_manager_scope_conflict(
        db: AsyncSession,
        leave_request: LeaveRequest,
        manager_id: uuid.UUID,
    ) -> Optional[LeaveRequest]:
        """Another request under ``manager_id`` already past manager approval."""
        result = await db.execute(
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.employee))
            .where(
                LeaveRequest.id != leave_request.id,
                LeaveRequest.manager_id == manager_id,
                LeaveRequest.status.in_(
                    (LeaveStatus.pending_hr, LeaveStatus.approved)
                ),
                *_overlaps(leave_request.start_date, leave_request.end_date),
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def find_hr_scope_conflict(
        db: AsyncSession,
        leave_request: LeaveRequest,
    ) -> Optional[LeaveRequest]:
        """An approved request sharing this request's recorded manager."""
        result = await db.execute(
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.employee))
            .where(
                LeaveRequest.id != leave_request.id,
                LeaveRequest.manager_id == leave_request.manager_id,
                LeaveRequest.status == LeaveStatus.approved,
                *_overlaps(leave_request.start_date, leave_request.end_date),
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .limit(1)
        )
        return result.scalars().first()
