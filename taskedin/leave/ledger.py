"""Balance ledger: capacity checks with pending reservation, and debits.

``used_days`` only ever grows, and only at final approval or auto-approval.
A check never mutates anything; a debit never re-checks.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskedin.common.constants import PENDING_STATUSES, LeaveType
from taskedin.common.exceptions import StateConflictException
from taskedin.leave.models import LeaveBalance, LeaveRequest

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Async balance lookups, reservation arithmetic and debits."""

    @staticmethod
    async def get_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
        *,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        query = select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type == leave_type,
            LeaveBalance.year == year,
        )
        if for_update:
            query = query.with_for_update()
        return (await db.execute(query)).scalars().first()

    @staticmethod
    async def pending_reservation(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
    ) -> int:
        """Days held by the employee's other requests still awaiting approval."""
        query = select(func.coalesce(func.sum(LeaveRequest.number_of_days), 0)).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.leave_type == leave_type,
            LeaveRequest.fiscal_year == year,
            LeaveRequest.status.in_(list(PENDING_STATUSES)),
        )
        return int((await db.execute(query)).scalar_one())

    @staticmethod
    async def check_and_reserve(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
        requested_days: int,
    ) -> LeaveBalance:
        """Verify ``requested_days`` fit after pending reservations.

        Returns the (row-locked) balance so an auto-approval can debit it
        without a second lookup. Nothing is written here.
        """
        balance = await BalanceLedger.get_balance(
            db, employee_id, leave_type, year, for_update=True,
        )
        if balance is None:
            raise StateConflictException(
                f"No leave balance record found for {leave_type.value} in {year}.",
                error_type="missing-balance",
            )

        pending = await BalanceLedger.pending_reservation(
            db, employee_id, leave_type, year,
        )
        remaining = balance.remaining_days
        if remaining - pending < requested_days:
            logger.warning(
                "Insufficient %s balance for employee %s in %s: "
                "remaining=%s pending=%s requested=%s",
                leave_type.value, employee_id, year, remaining, pending, requested_days,
            )
            raise StateConflictException(
                f"Insufficient leave balance for {year}. Remaining: {remaining}, "
                f"Pending: {pending}, Requested: {requested_days}.",
                error_type="insufficient-balance",
                errors={
                    "remaining_days": remaining,
                    "pending_days": pending,
                    "requested_days": requested_days,
                },
            )
        return balance

    @staticmethod
    async def recheck_for_approval(
        db: AsyncSession,
        leave_request: LeaveRequest,
    ) -> LeaveBalance:
        """Final-approval re-check: the request's own days against remaining.

        The request being approved is itself one of the pending
        reservations, so only the plain remaining balance is compared.
        """
        balance = await BalanceLedger.get_balance(
            db,
            leave_request.employee_id,
            leave_request.leave_type,
            leave_request.fiscal_year,
            for_update=True,
        )
        if balance is None:
            raise StateConflictException(
                f"Leave balance record not found for {leave_request.fiscal_year}.",
                error_type="missing-balance",
            )
        if balance.remaining_days < leave_request.number_of_days:
            raise StateConflictException(
                "Insufficient leave balance.",
                error_type="insufficient-balance",
                errors={
                    "remaining_days": balance.remaining_days,
                    "requested_days": leave_request.number_of_days,
                },
            )
        return balance

    @staticmethod
    def debit(balance: LeaveBalance, days: int, *, now: datetime) -> None:
        """Consume ``days``; the caller has already verified capacity."""
        balance.used_days += days
        balance.updated_at = now
