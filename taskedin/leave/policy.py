"""Leave policy evaluation: auto-approval and conflict-bypass decisions.

Pure functions over ``LeaveTypeConfig``; nothing here touches the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from taskedin.common.constants import (
    ANNUAL_DEFAULT_BALANCE,
    OTHER_DEFAULT_BALANCE,
    LeaveType,
)
from taskedin.leave.models import LeaveTypeConfig


@dataclass(frozen=True)
class PolicyDecision:
    auto_approve: bool
    bypass_conflict: bool


def default_balance_for(leave_type: LeaveType) -> int:
    """Fallback yearly allowance when no config row exists for the type."""
    if leave_type == LeaveType.annual:
        return ANNUAL_DEFAULT_BALANCE
    return OTHER_DEFAULT_BALANCE


def effective_config(
    leave_type: LeaveType,
    config: Optional[LeaveTypeConfig],
) -> LeaveTypeConfig:
    """Return ``config`` or a transient default (never added to a session)."""
    if config is not None:
        return config
    return LeaveTypeConfig(
        leave_type=leave_type,
        default_balance=default_balance_for(leave_type),
        auto_approve_enabled=False,
        auto_approve_threshold_days=0,
        bypass_conflict_check=False,
    )


def evaluate_policy(
    config: Optional[LeaveTypeConfig],
    requested_days: int,
) -> PolicyDecision:
    """Decide auto-approval and conflict bypass for a request.

    Bypass only counts when auto-approval applies; a stored
    ``bypass_conflict_check`` on its own changes nothing.
    """
    if config is None:
        return PolicyDecision(auto_approve=False, bypass_conflict=False)

    auto_approve = bool(
        config.auto_approve_enabled
        and requested_days <= config.auto_approve_threshold_days
    )
    return PolicyDecision(
        auto_approve=auto_approve,
        bypass_conflict=auto_approve and bool(config.bypass_conflict_check),
    )
