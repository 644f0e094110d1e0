from __future__ import annotations

from typing import Any

from flask import Flask, request

from ..common.http import admin_required, current_context, date_arg, json_body, login_required, number, ok, route
from ..container import Container
from ..core.enums import EmploymentType, Operation
from ..core.exceptions import ValidationError
from .model import Employee


def employee_payload(e: Employee) -> dict[str, Any]:
    return {
        "employeeId": e.employee_id,
        "firstName": e.first_name,
        "lastName": e.last_name,
        "name": e.name,
        "employmentType": e.employment_type.value,
        "email": e.email,
        "joinDate": e.join_date.isoformat(),
        "leaveDate": e.leave_date.isoformat() if e.leave_date else None,
        "isAdmin": e.is_admin,
        "baseSalary": number(e.base_salary),
        "defaultBreakTime": e.default_break_minutes,
        "prescribedWorkHours": number(e.prescribed_work_hours),
        "allowances": list(e.allowance_ids),
    }


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @route(app, Operation.LIST_EMPLOYEES, "/api/v1/employees", methods=["GET"])
    @admin_required
    def list_employees():
        raw_type = request.args.get("employmentType")
        try:
            employment_type = EmploymentType(raw_type) if raw_type else None
        except ValueError as e:
            raise ValidationError("Invalid employmentType", {"employmentType": ["unknown employment type"]}) from e
        rows = service.list_employees(
            current_context(),
            employment_type=employment_type,
            active_on=date_arg(request.args.get("activeOn"), "activeOn", required=False),
        )
        return ok({"employees": [employee_payload(e) for e in rows], "total": len(rows)})

    @route(app, Operation.GET_EMPLOYEE, "/api/v1/employees/<employee_id>", methods=["GET"])
    @login_required
    def get_employee(employee_id: str):
        return ok(employee_payload(service.get(current_context(), employee_id)))

    @route(app, Operation.REGISTER_EMPLOYEE, "/api/v1/employees", methods=["POST"])
    @admin_required
    def register_employee():
        created = service.register(current_context(), json_body())
        return ok(employee_payload(created), status=201)

    @route(app, Operation.UPDATE_EMPLOYEE, "/api/v1/employees/<employee_id>", methods=["PUT"])
    @admin_required
    def update_employee(employee_id: str):
        return ok(employee_payload(service.update(current_context(), employee_id, json_body())))
