from __future__ import annotations

from typing import Any

from flask import Flask, request

from ..common.datetime_utils import format_iso
from ..common.http import admin_required, current_context, date_arg, int_arg, json_body, login_required, number, ok, route
from ..container import Container
from ..core.enums import Operation
from ..core.exceptions import ValidationError
from ..leave.model import PaidLeaveBalance
from .model import AttendanceRecord, AttendanceSummary


def record_payload(r: AttendanceRecord) -> dict[str, Any]:
    return {
        "attendanceId": r.attendance_id,
        "employeeId": r.employee_id,
        "workDate": r.work_date.isoformat(),
        "clockIn": format_iso(r.clock_in),
        "clockOut": format_iso(r.clock_out),
        "breaks": [
            {"start": format_iso(b.start), "end": format_iso(b.end)}
            for b in r.active_breaks
        ],
        "status": r.status.value,
        "totalWorkMinutes": r.total_work_minutes,
        "overtimeMinutes": r.overtime_minutes,
        "lateNightMinutes": r.late_night_minutes,
        "memo": r.memo,
        "updatedBy": r.updated_by,
        "updatedAt": format_iso(r.updated_at),
    }


def summary_payload(s: AttendanceSummary, leave: PaidLeaveBalance) -> dict[str, Any]:
    return {
        "actualWorkMinutes": s.actual_work_minutes,
        "normalOvertimeMinutes": s.normal_overtime_minutes,
        "lateNightMinutes": s.late_night_minutes,
        "actualWorkDays": s.actual_work_days,
        "weekdayWorkDays": s.weekday_work_days,
        "holidayWorkDays": s.holiday_work_days,
        "paidLeave": {
            "granted": number(leave.granted),
            "used": number(leave.consumed),
            "remaining": number(leave.remaining),
            "pending": number(leave.reserved),
        },
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _punch_date():
        return date_arg(json_body().get("date"), "date", required=False)

    @route(app, Operation.CLOCK_IN, "/api/v1/attendance/clock-in", methods=["POST"])
    @login_required
    def clock_in():
        record = service.clock_in(current_context(), work_date=_punch_date())
        return ok(record_payload(record), status=201)

    @route(app, Operation.CLOCK_OUT, "/api/v1/attendance/clock-out", methods=["POST"])
    @login_required
    def clock_out():
        record = service.clock_out(current_context(), work_date=_punch_date())
        return ok(record_payload(record))

    @route(app, Operation.BREAK_START, "/api/v1/attendance/break/start", methods=["POST"])
    @login_required
    def break_start():
        record = service.start_break(current_context(), work_date=_punch_date())
        return ok(record_payload(record))

    @route(app, Operation.BREAK_END, "/api/v1/attendance/break/end", methods=["POST"])
    @login_required
    def break_end():
        record = service.end_break(current_context(), work_date=_punch_date())
        return ok(record_payload(record))

    @route(app, Operation.MY_RECORDS, "/api/v1/attendance/my-records", methods=["GET"])
    @login_required
    def my_records():
        month_view = service.get_my_records(
            current_context(),
            year=int_arg(request.args.get("year"), "year"),
            month=int_arg(request.args.get("month"), "month"),
            employee_id=request.args.get("employeeId") or None,
        )
        return ok(
            {
                "logs": [record_payload(r) for r in month_view.records],
                "summary": summary_payload(month_view.summary, month_view.paid_leave),
            }
        )

    @route(app, Operation.LIST_ATTENDANCE, "/api/v1/attendance", methods=["GET"])
    @admin_required
    def list_attendance():
        logs = service.list_logs(
            current_context(),
            start_date=date_arg(request.args.get("startDate"), "startDate"),
            end_date=date_arg(request.args.get("endDate"), "endDate"),
            employee_id=request.args.get("employeeId") or None,
        )
        return ok(
            {
                "logs": [dict(record_payload(entry.record), employeeName=entry.employee_name) for entry in logs],
                "total": len(logs),
            }
        )

    @route(app, Operation.UPDATE_ATTENDANCE, "/api/v1/attendance/<employee_id>/<work_date>", methods=["PUT"])
    @login_required
    def update_attendance(employee_id: str, work_date: str):
        record = service.update_record(
            current_context(), employee_id, date_arg(work_date, "workDate"), json_body()
        )
        return ok(record_payload(record))

    @route(app, Operation.UPDATE_ATTENDANCE_MEMO, "/api/v1/attendance/memo", methods=["PATCH"])
    @login_required
    def update_memo():
        body = json_body()
        ctx = current_context()
        if "memo" not in body:
            raise ValidationError("Invalid memo", {"memo": ["memo is required (null clears it)"]})
        record = service.update_memo(
            ctx,
            body.get("employeeId") or ctx.employee_id,
            date_arg(body.get("date"), "date"),
            body.get("memo"),
        )
        return ok(record_payload(record))
