"""Identity / role lookups used by the leave engine.

Read-only: nothing here mutates employee records.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskedin.common.constants import UserRole
from taskedin.common.exceptions import NotFoundException
from taskedin.core_hr.models import Employee


class EmployeeService:
    """Async lookups over the organisational hierarchy."""

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Employee:
        """Return an active employee or raise NotFoundException."""
        result = await db.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.is_active.is_(True),
            )
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def find_employee(
        db: AsyncSession,
        employee_id: Optional[uuid.UUID],
    ) -> Optional[Employee]:
        if employee_id is None:
            return None
        return await db.get(Employee, employee_id)

    @staticmethod
    async def list_hr_in_department(
        db: AsyncSession,
        department_id: Optional[uuid.UUID],
    ) -> Sequence[Employee]:
        """Every active HR user of a department. No department → nobody."""
        if department_id is None:
            return []
        result = await db.execute(
            select(Employee)
            .where(
                Employee.role == UserRole.hr_admin,
                Employee.department_id == department_id,
                Employee.is_active.is_(True),
            )
            .order_by(Employee.id)
        )
        return result.scalars().all()

    @staticmethod
    async def lock_employees(
        db: AsyncSession,
        *employee_ids: Optional[uuid.UUID],
    ) -> None:
        """Take row locks on the given employees in a fixed (sorted) order.

        Lifecycle operations lock the team scope they check against so that
        two sibling approvals cannot both pass the same conflict check.
        """
        ids = sorted({i for i in employee_ids if i is not None}, key=str)
        if not ids:
            return
        await db.execute(
            select(Employee.id)
            .where(Employee.id.in_(ids))
            .order_by(Employee.id)
            .with_for_update()
        )
