"""Leave Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from taskedin.common.constants import LeaveAction, LeaveStatus, LeaveType


# ═════════════════════════════════════════════════════════════════════
# Leave Request
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request.

    ``end_date >= start_date`` is enforced by the service so that the
    failure surfaces as a domain validation error.
    """

    leave_type: LeaveType
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    notes: Optional[str] = Field(None, max_length=1000)
    attachment_path: Optional[str] = Field(
        None,
        max_length=500,
        description="Path returned by POST /attachments",
    )


class LeaveActionRequest(BaseModel):
    """Manager or HR decision on a pending request."""

    approve: bool
    comment: Optional[str] = Field(None, max_length=1000)


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    manager_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: int
    fiscal_year: int
    status: LeaveStatus
    notes: Optional[str] = None
    attachment_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeaveAuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    leave_request_id: uuid.UUID
    actor_id: uuid.UUID
    action: LeaveAction
    resulting_status: LeaveStatus
    comment: Optional[str] = None
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Conflicts
# ═════════════════════════════════════════════════════════════════════


class ConflictCheckOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    has_conflict: bool
    conflicting_employee_name: Optional[str] = None
    message: str


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Balance for one leave type; zero-filled when no record exists."""

    leave_type: LeaveType
    year: int
    total_days: int = 0
    used_days: int = 0
    remaining_days: int = 0


class InitializeBalancesRequest(BaseModel):
    user_ids: list[uuid.UUID]
    year: Optional[int] = Field(None, ge=2000, le=2100)


class BalanceUpdateItem(BaseModel):
    leave_type: LeaveType
    total_days: int = Field(..., ge=0, le=366)


class UpdateBalancesRequest(BaseModel):
    user_ids: list[uuid.UUID]
    updates: list[BalanceUpdateItem]
    year: Optional[int] = Field(None, ge=2000, le=2100)


class BalanceBatchOut(BaseModel):
    year: int
    users_processed: int
    records_created: int = 0
    records_updated: int = 0
    message: str


# ═════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════


class LeaveSettingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    leave_type: LeaveType
    default_balance: int
    auto_approve_enabled: bool
    auto_approve_threshold_days: int
    bypass_conflict_check: bool


class LeaveSettingUpdate(BaseModel):
    leave_type: LeaveType
    default_balance: int = Field(..., ge=0, le=366)
    auto_approve_enabled: bool = False
    auto_approve_threshold_days: int = Field(0, ge=0, le=366)
    bypass_conflict_check: bool = False


# ═════════════════════════════════════════════════════════════════════
# Dashboards
# ═════════════════════════════════════════════════════════════════════


class PendingApprovalCountOut(BaseModel):
    pending_manager_approval: int = 0
    pending_hr_approval: int = 0
    total_pending: int = 0


class DepartmentCoverageOut(BaseModel):
    department_id: uuid.UUID
    department_name: str
    total_employees: int
    on_leave_count: int
    available_count: int
    capacity_percentage: float


class CalendarLeaveOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: int


class CalendarManagerGroupOut(BaseModel):
    manager_id: uuid.UUID
    manager_name: str
    department_id: Optional[uuid.UUID] = None
    leaves: list[CalendarLeaveOut] = []


class CalendarDataOut(BaseModel):
    """Flat ``leaves`` for managers and employees, ``grouped_by_manager`` for HR."""

    leaves: Optional[list[CalendarLeaveOut]] = None
    grouped_by_manager: Optional[list[CalendarManagerGroupOut]] = None


class AttachmentUploadOut(BaseModel):
    path: str
    filename: str
