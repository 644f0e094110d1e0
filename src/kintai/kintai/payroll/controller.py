from __future__ import annotations

from typing import Any

from flask import Flask, request

from ..common.datetime_utils import format_iso
from ..common.http import admin_required, current_context, int_arg, json_body, login_required, number, ok, route
from ..container import Container
from ..core.enums import Operation
from ..core.exceptions import ValidationError
from .model import BonusDetail, PayrollDetail, PayrollRecord


def detail_payload(d: PayrollDetail) -> dict[str, Any]:
    if isinstance(d, BonusDetail):
        return {
            "bonusAmount": number(d.bonus_amount),
            "healthInsurance": number(d.health_insurance),
            "pension": number(d.pension),
            "employmentInsurance": number(d.employment_insurance),
            "incomeTax": number(d.income_tax),
            "totalEarnings": number(d.total_earnings),
            "totalDeductions": number(d.total_deductions),
            "netPay": number(d.net_pay),
        }
    return {
        "workingDays": number(d.working_days),
        "holidayWork": number(d.holiday_work),
        "paidLeave": number(d.paid_leave),
        "paidLeaveRemaining": number(d.paid_leave_remaining),
        "normalOvertime": d.normal_overtime,
        "lateNightOvertime": d.late_night_overtime,
        "totalWorkMinutes": d.total_work_minutes,
        "baseSalary": number(d.base_salary),
        "overtimeAllowance": number(d.overtime_allowance),
        "lateNightAllowance": number(d.late_night_allowance),
        "allowances": {k: number(v) for k, v in d.allowances.items()},
        "totalEarnings": number(d.total_earnings),
        "deductions": {k: number(v) for k, v in d.deductions.items()},
        "totalDeductions": number(d.total_deductions),
        "netPay": number(d.net_pay),
    }


def payroll_payload(r: PayrollRecord, *, with_detail: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {
        "payrollId": r.payroll_id,
        "employeeId": r.employee_id,
        "year": r.year,
        "month": r.month,
        "statementType": r.statement_type.value,
        "memo": r.memo,
        "totalEarnings": number(r.detail.total_earnings),
        "totalDeductions": number(r.detail.total_deductions),
        "netPay": number(r.detail.net_pay),
        "supersedes": r.supersedes,
        "createdBy": r.created_by,
        "updatedBy": r.updated_by,
        "createdAt": format_iso(r.created_at),
        "updatedAt": format_iso(r.updated_at),
    }
    if with_detail:
        out["detail"] = detail_payload(r.detail)
    return out


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @route(app, Operation.LIST_PAYROLL, "/api/v1/payroll", methods=["GET"])
    @login_required
    def list_payroll():
        rows = service.list_records(
            current_context(),
            employee_id=request.args.get("employeeId") or None,
            fiscal_year=int_arg(request.args.get("fiscalYear"), "fiscalYear", required=False),
            year=int_arg(request.args.get("year"), "year", required=False),
            month=int_arg(request.args.get("month"), "month", required=False),
        )
        return ok({"records": [payroll_payload(r, with_detail=False) for r in rows], "total": len(rows)})

    @route(app, Operation.GET_PAYROLL, "/api/v1/payroll/<payroll_id>", methods=["GET"])
    @login_required
    def get_payroll(payroll_id: str):
        return ok(payroll_payload(service.get(current_context(), payroll_id)))

    @route(app, Operation.CREATE_PAYROLL, "/api/v1/payroll", methods=["POST"])
    @admin_required
    def create_payroll():
        created = service.create(current_context(), json_body())
        return ok(payroll_payload(created), status=201)

    @route(app, Operation.UPDATE_PAYROLL, "/api/v1/payroll/<payroll_id>", methods=["PUT"])
    @admin_required
    def update_payroll(payroll_id: str):
        return ok(payroll_payload(service.update(current_context(), payroll_id, json_body())))

    @route(app, Operation.UPDATE_PAYROLL_MEMO, "/api/v1/payroll/<payroll_id>/memo", methods=["PATCH"])
    @login_required
    def update_payroll_memo(payroll_id: str):
        body = json_body()
        if "memo" not in body:
            raise ValidationError("Invalid memo", {"memo": ["memo is required (null clears it)"]})
        return ok(payroll_payload(service.update_memo(current_context(), payroll_id, body.get("memo"))))

    @route(app, Operation.REGENERATE_PAYROLL, "/api/v1/payroll/regenerate", methods=["POST"])
    @admin_required
    def regenerate_payroll():
        return ok({"detail": detail_payload(service.regenerate(current_context(), json_body()))})
