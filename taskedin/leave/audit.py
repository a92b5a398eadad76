"""Leave audit trail: one append-only row per status transition."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskedin.common.constants import LeaveAction, LeaveStatus
from taskedin.leave.models import LeaveAuditLog


class LeaveAuditTrail:

    @staticmethod
    def record_transition(
        db: AsyncSession,
        *,
        leave_request_id: uuid.UUID,
        actor_id: uuid.UUID,
        action: LeaveAction,
        resulting_status: LeaveStatus,
        created_at: datetime,
        comment: Optional[str] = None,
    ) -> LeaveAuditLog:
        """Stage an audit entry on the session (flushed with the transition)."""
        entry = LeaveAuditLog(
            leave_request_id=leave_request_id,
            actor_id=actor_id,
            action=action,
            resulting_status=resulting_status,
            comment=comment,
            created_at=created_at,
        )
        db.add(entry)
        return entry

    @staticmethod
    async def get_history(
        db: AsyncSession,
        leave_request_id: uuid.UUID,
    ) -> Sequence[LeaveAuditLog]:
        """All entries for a request, oldest first; ties keep insertion order."""
        result = await db.execute(
            select(LeaveAuditLog)
            .options(selectinload(LeaveAuditLog.actor))
            .where(LeaveAuditLog.leave_request_id == leave_request_id)
            .order_by(LeaveAuditLog.created_at.asc(), LeaveAuditLog.id.asc())
        )
        return result.scalars().all()
