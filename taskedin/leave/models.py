"""Leave ORM models: LeaveTypeConfig, LeaveBalance, LeaveRequest, LeaveAuditLog."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskedin.common.constants import LeaveAction, LeaveStatus, LeaveType
from taskedin.database import Base


class LeaveTypeConfig(Base):
    """Per-type policy. A missing row means the built-in defaults apply."""

    __tablename__ = "leave_type_configs"

    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False),
        primary_key=True,
    )
    default_balance: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    auto_approve_enabled: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False,
    )
    auto_approve_threshold_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0,
    )
    bypass_conflict_check: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )


class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "leave_type", "year", name="uq_leave_balance"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    used_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped["taskedin.core_hr.models.Employee"] = relationship(
        back_populates="leave_balances"
    )

    @property
    def remaining_days(self) -> int:
        return self.total_days - self.used_days


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_dates"),
        sa.Index("ix_leave_requests_employee_year", "employee_id", "leave_type", "fiscal_year"),
        sa.Index("ix_leave_requests_manager_status", "manager_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    # Current approver: the manager while pending_manager, the requester
    # themself once routed straight to HR or auto-approved.
    manager_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    number_of_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    fiscal_year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    attachment_path: Mapped[Optional[str]] = mapped_column(sa.String(500))
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", create_type=False),
        nullable=False,
        default=LeaveStatus.pending_manager,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped["taskedin.core_hr.models.Employee"] = relationship(
        back_populates="leave_requests", foreign_keys=[employee_id]
    )
    manager: Mapped["taskedin.core_hr.models.Employee"] = relationship(
        foreign_keys=[manager_id]
    )
    audit_entries: Mapped[list[LeaveAuditLog]] = relationship(
        back_populates="leave_request",
        order_by="LeaveAuditLog.id",
    )


class LeaveAuditLog(Base):
    """Append-only: one row per status transition, never updated."""

    __tablename__ = "leave_audit_logs"
    __table_args__ = (
        sa.Index("ix_leave_audit_request_created", "leave_request_id", "created_at"),
    )

    # Integer key doubles as a stable tie-breaker for equal timestamps.
    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    leave_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_requests.id"), nullable=False
    )
    actor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    action: Mapped[LeaveAction] = mapped_column(
        sa.Enum(LeaveAction, name="leave_action", create_type=False),
        nullable=False,
    )
    resulting_status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", create_type=False),
        nullable=False,
    )
    comment: Mapped[Optional[str]] = mapped_column(sa.String(1000))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )

    # Relationships
    leave_request: Mapped[LeaveRequest] = relationship(back_populates="audit_entries")
    actor: Mapped["taskedin.core_hr.models.Employee"] = relationship()
