"""Enums and constants for the leave platform."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr_admin = "hr_admin"
    system_admin = "system_admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    emergency = "emergency"
    unpaid = "unpaid"
    maternity = "maternity"
    paternity = "paternity"


class LeaveStatus(str, enum.Enum):
    pending_manager = "pending_manager"
    pending_hr = "pending_hr"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveAction(str, enum.Enum):
    submitted = "submitted"
    manager_approved = "manager_approved"
    manager_rejected = "manager_rejected"
    hr_approved = "hr_approved"
    hr_rejected = "hr_rejected"
    cancelled = "cancelled"


PENDING_STATUSES: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.pending_manager, LeaveStatus.pending_hr}
)

# Statuses that still occupy the requester's calendar
ACTIVE_STATUSES: frozenset[LeaveStatus] = PENDING_STATUSES | {LeaveStatus.approved}


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    alert = "alert"


# ── Leave policy defaults (used when no LeaveTypeConfig row exists) ──

ANNUAL_DEFAULT_BALANCE = 21
OTHER_DEFAULT_BALANCE = 7

# ── Attachments ─────────────────────────────────────────────────────

ALLOWED_ATTACHMENT_EXTENSIONS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "pdf", "doc", "docx"}
)

# ── Misc constants ──────────────────────────────────────────────────

MAX_BALANCE_BATCH_SIZE = 1000
NOTIFICATION_DATE_FORMAT = "%b %d"
