"""Leave router: submit, cancel, approvals, history, balances, settings,
dashboards, calendar.

All endpoints require authentication. Manager/HR-specific endpoints enforce role checks.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from taskedin.auth.dependencies import get_current_user, require_role
from taskedin.common.clock import utcnow
from taskedin.common.constants import UserRole
from taskedin.common.rate_limit import SUBMIT_LEAVE_LIMIT, limiter
from taskedin.core_hr.models import Employee
from taskedin.database import get_db
from taskedin.leave.attachments import LocalAttachmentStore
from taskedin.leave.schemas import (
    AttachmentUploadOut,
    BalanceBatchOut,
    CalendarDataOut,
    ConflictCheckOut,
    DepartmentCoverageOut,
    InitializeBalancesRequest,
    LeaveActionRequest,
    LeaveAuditLogOut,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveSettingOut,
    LeaveSettingUpdate,
    PendingApprovalCountOut,
    UpdateBalancesRequest,
)
from taskedin.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


def get_leave_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LeaveService:
    """Bind a LeaveService to this request's session and the app's queue."""
    clock = getattr(request.app.state, "clock", utcnow)
    return LeaveService(db, request.app.state.notification_queue, clock=clock)


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
@limiter.limit(SUBMIT_LEAVE_LIMIT)
async def submit_leave(
    request: Request,
    body: LeaveRequestCreate,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Submit a leave request. Checks policy, conflicts, balance and routing."""
    return await service.submit(employee.id, body)


# ── POST /requests/{id}/cancel ──────────────────────────────────────

@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_leave(
    request_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Cancel one of your own pending requests."""
    return await service.cancel(employee.id, request_id)


# ── POST /requests/{id}/manager-action ──────────────────────────────

@router.post("/requests/{request_id}/manager-action", response_model=LeaveRequestOut)
async def manager_action(
    request_id: uuid.UUID,
    body: LeaveActionRequest,
    employee: Employee = Depends(require_role(UserRole.manager)),
    service: LeaveService = Depends(get_leave_service),
):
    """Approve (→ pending HR) or reject a request awaiting your approval."""
    return await service.manager_action(
        employee.id, request_id, body.approve, body.comment,
    )


# ── POST /requests/{id}/hr-action ───────────────────────────────────

@router.post("/requests/{request_id}/hr-action", response_model=LeaveRequestOut)
async def hr_action(
    request_id: uuid.UUID,
    body: LeaveActionRequest,
    employee: Employee = Depends(require_role(UserRole.hr_admin)),
    service: LeaveService = Depends(get_leave_service),
):
    """Final approval or rejection. Approval debits the balance."""
    return await service.hr_action(
        employee.id, request_id, body.approve, body.comment,
    )


# ── GET /requests/{id}/history ──────────────────────────────────────

@router.get("/requests/{request_id}/history", response_model=list[LeaveAuditLogOut])
async def request_history(
    request_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Audit trail of a request, oldest first."""
    return await service.get_history(employee, request_id)


# ── GET /conflicts ──────────────────────────────────────────────────

@router.get("/conflicts", response_model=ConflictCheckOut)
async def check_conflict(
    start_date: date = Query(...),
    end_date: date = Query(...),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Dry-run of the submission conflict check for the current user."""
    return await service.check_conflict(employee.id, start_date, end_date)


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=list[LeaveBalanceOut])
async def get_balances(
    year: Optional[int] = Query(None, description="Leave year; defaults to current year"),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Get the authenticated user's leave balances for a given year."""
    return await service.get_balances(employee.id, year)


# ── POST /balances/initialize ───────────────────────────────────────

@router.post("/balances/initialize", response_model=BalanceBatchOut)
async def initialize_balances(
    body: InitializeBalancesRequest,
    employee: Employee = Depends(require_role(UserRole.hr_admin)),
    service: LeaveService = Depends(get_leave_service),
):
    """Create missing balance records at the configured default allowance."""
    return await service.initialize_balances(body.user_ids, body.year)


# ── PUT /balances ───────────────────────────────────────────────────

@router.put("/balances", response_model=BalanceBatchOut)
async def update_balances(
    body: UpdateBalancesRequest,
    employee: Employee = Depends(require_role(UserRole.hr_admin)),
    service: LeaveService = Depends(get_leave_service),
):
    """Set total days per leave type for a batch of employees."""
    return await service.update_balances(body.user_ids, body.updates, body.year)


# ── GET /settings ───────────────────────────────────────────────────

@router.get("/settings", response_model=list[LeaveSettingOut])
async def get_settings(
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Effective policy for every leave type."""
    return await service.get_leave_settings()


# ── PUT /settings ───────────────────────────────────────────────────

@router.put("/settings", response_model=list[LeaveSettingOut])
async def update_settings(
    body: list[LeaveSettingUpdate],
    employee: Employee = Depends(require_role(UserRole.hr_admin)),
    service: LeaveService = Depends(get_leave_service),
):
    return await service.update_leave_settings(body)


# ── GET /pending-count ──────────────────────────────────────────────

@router.get("/pending-count", response_model=PendingApprovalCountOut)
async def pending_count(
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Number of requests waiting on the current user."""
    return await service.get_pending_approval_count(employee.id)


# ── GET /coverage ───────────────────────────────────────────────────

@router.get("/coverage", response_model=list[DepartmentCoverageOut])
async def department_coverage(
    on_date: Optional[date] = Query(None, description="Defaults to today"),
    employee: Employee = Depends(require_role(UserRole.manager)),
    service: LeaveService = Depends(get_leave_service),
):
    """Available headcount per department on a given day."""
    return await service.get_department_coverage(employee.id, on_date)


# ── GET /calendar ──────────────────────────────────────────────────

@router.get("/calendar", response_model=CalendarDataOut)
async def leave_calendar(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    employee: Employee = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Approved leave in a window: own, team, or grouped by approver for HR."""
    return await service.get_calendar_data(employee.id, start_date, end_date)


# ── POST /attachments ───────────────────────────────────────────────

@router.post("/attachments", response_model=AttachmentUploadOut, status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    employee: Employee = Depends(get_current_user),
):
    """Upload a supporting document. Returns the path to send with a request."""
    contents = await file.read()
    path = LocalAttachmentStore().save(file.filename, contents)
    return AttachmentUploadOut(path=path, filename=path.rsplit("/", 1)[-1])
