"""Plain-text notification templates for leave events.

Each builder returns ``(subject, body)``.
"""

from __future__ import annotations

from datetime import date

from taskedin.common.constants import NOTIFICATION_DATE_FORMAT


def _fmt(d: date) -> str:
    return d.strftime(NOTIFICATION_DATE_FORMAT)


def new_request(
    requester_name: str,
    leave_type: str,
    start_date: date,
    end_date: date,
    days: int,
) -> tuple[str, str]:
    subject = f"Action Required: New {leave_type} Leave Request"
    body = (
        f"{requester_name} has requested {days} days of {leave_type} leave "
        f"({_fmt(start_date)} - {_fmt(end_date)}). Please review."
    )
    return subject, body


def status_update(
    status: str,
    leave_type: str,
    start_date: date,
    end_date: date,
) -> tuple[str, str]:
    subject = f"Leave Request {status}"
    body = (
        f"Your {leave_type} leave request ({_fmt(start_date)} - "
        f"{_fmt(end_date)}) has been {status}."
    )
    return subject, body


def manager_action_to_hr(
    manager_name: str,
    employee_name: str,
    leave_type: str,
    days: int,
) -> tuple[str, str]:
    subject = "HR Review: Manager Approved Leave"
    body = (
        f"Manager {manager_name} approved {leave_type} leave for "
        f"{employee_name} ({days} days). Waiting for HR final approval."
    )
    return subject, body


def cancelled(start_date: date, end_date: date) -> tuple[str, str]:
    subject = "Leave Request Cancelled"
    body = (
        f"Your leave request for {_fmt(start_date)} - {_fmt(end_date)} "
        f"has been successfully cancelled."
    )
    return subject, body
