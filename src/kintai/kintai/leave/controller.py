from __future__ import annotations

from typing import Any

from flask import Flask, request

from ..common.datetime_utils import format_iso
from ..common.http import admin_required, current_context, int_arg, json_body, login_required, number, ok, route
from ..container import Container
from ..core.enums import LeaveStatus, Operation
from ..core.exceptions import ValidationError
from .model import LeaveRequest, PaidLeaveBalance


def leave_payload(r: LeaveRequest) -> dict[str, Any]:
    return {
        "requestId": r.request_id,
        "employeeId": r.employee_id,
        "startDate": r.start_date.isoformat(),
        "endDate": r.end_date.isoformat(),
        "leaveType": r.leave_type.value,
        "reason": r.reason,
        "days": number(r.days),
        "isHalfDay": r.is_half_day,
        "status": r.status.value,
        "rejectionReason": r.rejection_reason,
        "approvedBy": r.approved_by,
        "approvedAt": format_iso(r.approved_at),
        "requestedAt": format_iso(r.requested_at),
        "updatedAt": format_iso(r.updated_at),
    }


def balance_payload(b: PaidLeaveBalance) -> dict[str, Any]:
    return {
        "employeeId": b.employee_id,
        "granted": number(b.granted),
        "used": number(b.consumed),
        "remaining": number(b.remaining),
        "pending": number(b.reserved),
        "available": number(b.available),
    }


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @route(app, Operation.LIST_LEAVE_REQUESTS, "/api/v1/leave-requests", methods=["GET"])
    @login_required
    def list_leave_requests():
        status = request.args.get("status")
        try:
            status_filter = LeaveStatus(status) if status else None
        except ValueError as e:
            raise ValidationError("Invalid status", {"status": ["unknown leave status"]}) from e
        rows = service.list_requests(
            current_context(),
            employee_id=request.args.get("employeeId") or None,
            fiscal_year=int_arg(request.args.get("fiscalYear"), "fiscalYear", required=False),
            status=status_filter,
        )
        return ok({"requests": [leave_payload(r) for r in rows], "total": len(rows)})

    @route(app, Operation.PAID_LEAVE_BALANCE, "/api/v1/leave-requests/balance", methods=["GET"])
    @login_required
    def paid_leave_balance():
        balance = service.balance(current_context(), request.args.get("employeeId") or None)
        return ok(balance_payload(balance))

    @route(app, Operation.GET_LEAVE_REQUEST, "/api/v1/leave-requests/<request_id>", methods=["GET"])
    @login_required
    def get_leave_request(request_id: str):
        return ok(leave_payload(service.get(current_context(), request_id)))

    @route(app, Operation.CREATE_LEAVE_REQUEST, "/api/v1/leave-requests", methods=["POST"])
    @login_required
    def create_leave_request():
        created = service.create(current_context(), json_body())
        return ok(leave_payload(created), status=201)

    @route(app, Operation.UPDATE_LEAVE_REQUEST, "/api/v1/leave-requests/<request_id>", methods=["PUT"])
    @login_required
    def update_leave_request(request_id: str):
        return ok(leave_payload(service.update(current_context(), request_id, json_body())))

    @route(app, Operation.DELETE_LEAVE_REQUEST, "/api/v1/leave-requests/<request_id>", methods=["DELETE"])
    @login_required
    def delete_leave_request(request_id: str):
        service.delete(current_context(), request_id)
        return ok()

    @route(app, Operation.APPROVE_LEAVE_REQUEST, "/api/v1/leave-requests/<request_id>/approve", methods=["POST"])
    @admin_required
    def approve_leave_request(request_id: str):
        return ok(leave_payload(service.approve(current_context(), request_id)))

    @route(app, Operation.REJECT_LEAVE_REQUEST, "/api/v1/leave-requests/<request_id>/reject", methods=["POST"])
    @admin_required
    def reject_leave_request(request_id: str):
        rejected = service.reject(current_context(), request_id, json_body().get("rejectionReason"))
        return ok(leave_payload(rejected))
