"""Common module: shared utilities for Taskedin Leave."""

from taskedin.common.clock import Clock, utcnow
from taskedin.common.constants import (
    ACTIVE_STATUSES,
    PENDING_STATUSES,
    LeaveAction,
    LeaveStatus,
    LeaveType,
    NotificationType,
    UserRole,
)
from taskedin.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    StateConflictException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Clock
    "Clock",
    "utcnow",
    # Constants / Enums
    "LeaveAction",
    "LeaveStatus",
    "LeaveType",
    "NotificationType",
    "UserRole",
    "ACTIVE_STATUSES",
    "PENDING_STATUSES",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "NotFoundException",
    "StateConflictException",
    "ValidationException",
    "register_exception_handlers",
]
