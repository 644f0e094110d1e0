from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import fiscal_year_range, inclusive_day_count
from ..common.validators import FieldErrors, check_period, read_bool, read_date, read_decimal, read_enum, read_text
from ..core.constants import HALF_DAY, LEAVE_DAYS_TOLERANCE
from ..core.context import EmployeeContext
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import AuthorizationError, BadRequestError, ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .ledger import balance_of, consume_oldest_first
from .model import LeaveRequest, PaidLeaveBalance
from .repository import LeaveRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveDraft:
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str
    days: Decimal
    is_half_day: bool


def parse_leave_draft(payload: Mapping[str, Any]) -> LeaveDraft:
    """Validate a create/update body, reporting every bad field at once."""
    errors = FieldErrors()
    start = read_date(errors, payload, "startDate")
    end = read_date(errors, payload, "endDate")
    if start and end and end < start:
        errors.add("endDate", "endDate must be on or after startDate")
    leave_type = read_enum(errors, payload, "leaveType", LeaveType)
    reason = read_text(errors, payload, "reason")
    days = read_decimal(errors, payload, "days", positive=True)
    is_half_day = read_bool(errors, payload, "isHalfDay", default=False)
    errors.raise_if_any()

    if is_half_day:
        if days != HALF_DAY:
            errors.add("days", f"days must be {HALF_DAY} for a half-day request")
    else:
        expected = inclusive_day_count(start, end)
        if abs(days - expected) > LEAVE_DAYS_TOLERANCE:
            errors.add("days", f"days must match the number of days between startDate and endDate ({expected})")
    errors.raise_if_any()

    return LeaveDraft(
        start_date=start,
        end_date=end,
        leave_type=leave_type,
        reason=reason,
        days=days,
        is_half_day=is_half_day,
    )


class LeaveService:
    def __init__(self, leave: LeaveRepository, employees: EmployeeRepository, *, clock: Optional[Clock] = None):
        self._leave = leave
        self._employees = employees
        self._clock = clock or SystemClock()

    def _get(self, request_id: str) -> LeaveRequest:
        req = self._leave.get_request(request_id)
        if not req:
            raise NotFoundError(f"Leave request not found: {request_id}")
        return req

    def _check_admissible(self, employee_id: str, draft: LeaveDraft, *, exclude_request_id: Optional[str] = None) -> None:
        existing = self._leave.list_requests(employee_id=employee_id)
        for other in existing:
            if other.request_id == exclude_request_id or not other.is_live:
                continue
            if other.overlaps(draft.start_date, draft.end_date):
                raise ConflictError(
                    f"A leave request already exists for this period ({other.start_date} - {other.end_date})"
                )

        if draft.leave_type == LeaveType.PAID:
            balance = balance_of(
                employee_id,
                self._leave.list_grants(employee_id),
                existing,
                exclude_request_id=exclude_request_id,
            )
            if balance.available < draft.days:
                raise BadRequestError(
                    f"Insufficient paid leave (remaining: {balance.available}, requested: {draft.days})"
                )

    def create(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> LeaveRequest:
        if not self._employees.get_by_id(ctx.employee_id):
            raise NotFoundError(f"Employee not found: {ctx.employee_id}")
        draft = parse_leave_draft(payload)
        self._check_admissible(ctx.employee_id, draft)

        now = self._clock.now()
        created = self._leave.create_request(
            LeaveRequest(
                request_id="",
                employee_id=ctx.employee_id,
                start_date=draft.start_date,
                end_date=draft.end_date,
                leave_type=draft.leave_type,
                reason=draft.reason,
                days=draft.days,
                is_half_day=draft.is_half_day,
                status=LeaveStatus.PENDING,
                requested_at=now,
                updated_at=now,
            )
        )
        log.info(
            "leave requested id=%s employee=%s type=%s days=%s",
            created.request_id,
            ctx.employee_id,
            draft.leave_type.value,
            draft.days,
        )
        return created

    def update(self, ctx: EmployeeContext, request_id: str, payload: Mapping[str, Any]) -> LeaveRequest:
        req = self._get(request_id)
        if req.employee_id != ctx.employee_id:
            raise AuthorizationError("Only the requester may update a leave request")
        if req.status != LeaveStatus.PENDING:
            raise BadRequestError(f"A {req.status.value} leave request cannot be updated")

        draft = parse_leave_draft(payload)
        self._check_admissible(req.employee_id, draft, exclude_request_id=req.request_id)

        updated = replace(
            req,
            start_date=draft.start_date,
            end_date=draft.end_date,
            leave_type=draft.leave_type,
            reason=draft.reason,
            days=draft.days,
            is_half_day=draft.is_half_day,
            updated_at=self._clock.now(),
        )
        return self._leave.save_request(updated, expected_version=req.version)

    def delete(self, ctx: EmployeeContext, request_id: str) -> LeaveRequest:
        req = self._get(request_id)
        ctx.require_self_or_admin(req.employee_id, action="delete the leave request")
        if req.status == LeaveStatus.APPROVED:
            raise BadRequestError("An approved leave request cannot be deleted")
        if req.status == LeaveStatus.DELETED:
            raise BadRequestError("The leave request is already deleted")

        deleted = replace(req, status=LeaveStatus.DELETED, updated_at=self._clock.now())
        saved = self._leave.save_request(deleted, expected_version=req.version)
        log.info("leave deleted id=%s by=%s", request_id, ctx.employee_id)
        return saved

    def approve(self, ctx: EmployeeContext, request_id: str) -> LeaveRequest:
        ctx.require_admin()
        req = self._get(request_id)
        if req.status != LeaveStatus.PENDING:
            raise BadRequestError(f"A {req.status.value} leave request cannot be approved")

        now = self._clock.now()
        approved = replace(
            req,
            status=LeaveStatus.APPROVED,
            approved_by=ctx.employee_id,
            approved_at=now,
            updated_at=now,
        )
        consumptions = []
        if req.leave_type == LeaveType.PAID:
            _, consumptions = consume_oldest_first(self._leave.list_grants(req.employee_id), req.days)

        saved = self._leave.apply_approval(approved, expected_version=req.version, consumptions=consumptions)
        log.info(
            "leave approved id=%s employee=%s by=%s consumed=%s",
            request_id,
            req.employee_id,
            ctx.employee_id,
            [(c.grant_id, str(c.days)) for c in consumptions],
        )
        return saved

    def reject(self, ctx: EmployeeContext, request_id: str, rejection_reason: Any = None) -> LeaveRequest:
        ctx.require_admin()
        if rejection_reason is not None and (not isinstance(rejection_reason, str) or not rejection_reason.strip()):
            raise ValidationError(
                "Invalid rejection reason",
                {"rejectionReason": ["rejectionReason must be a non-empty string"]},
            )
        req = self._get(request_id)
        if req.status != LeaveStatus.PENDING:
            raise BadRequestError(f"A {req.status.value} leave request cannot be rejected")

        now = self._clock.now()
        rejected = replace(
            req,
            status=LeaveStatus.REJECTED,
            rejection_reason=rejection_reason.strip() if rejection_reason else None,
            approved_by=ctx.employee_id,
            approved_at=now,
            updated_at=now,
        )
        saved = self._leave.save_request(rejected, expected_version=req.version)
        log.info("leave rejected id=%s by=%s", request_id, ctx.employee_id)
        return saved

    def get(self, ctx: EmployeeContext, request_id: str) -> LeaveRequest:
        req = self._get(request_id)
        ctx.require_self_or_admin(req.employee_id, action="view the leave request")
        return req

    def list_requests(
        self,
        ctx: EmployeeContext,
        *,
        employee_id: Optional[str] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[LeaveRequest]:
        if not ctx.is_admin:
            if employee_id and employee_id != ctx.employee_id:
                ctx.require_self_or_admin(employee_id, action="list leave requests")
            employee_id = ctx.employee_id
        check_period(fiscal_year=fiscal_year)
        start = end = None
        if fiscal_year is not None:
            start, end = fiscal_year_range(fiscal_year)
        return self._leave.list_requests(employee_id=employee_id, start_date=start, end_date=end, status=status)

    def balance(self, ctx: EmployeeContext, employee_id: Optional[str] = None) -> PaidLeaveBalance:
        target = employee_id or ctx.employee_id
        ctx.require_self_or_admin(target, action="view the paid leave balance")
        return balance_of(target, self._leave.list_grants(target), self._leave.list_requests(employee_id=target))
