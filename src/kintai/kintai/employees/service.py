from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import (
    FieldErrors,
    is_email,
    present,
    read_bool,
    read_date,
    read_decimal,
    read_enum,
    read_text,
)
from ..core.constants import (
    ALLOWED_BREAK_MINUTES,
    DEFAULT_BREAK_MINUTES,
    DEFAULT_PRESCRIBED_WORK_HOURS,
    NAME_MAX_LENGTH,
)
from ..core.context import EmployeeContext
from ..core.enums import EmploymentType
from ..core.exceptions import ConflictError, NotFoundError
from ..leave.model import PaidLeaveGrant
from ..masters.repository import MasterRepository
from .model import Employee
from .repository import EmployeeRepository

log = logging.getLogger(__name__)

_MAX_DAILY_HOURS = Decimal("24")


@dataclass(frozen=True)
class EmployeeDraft:
    employee: Employee
    grants: Sequence[PaidLeaveGrant]


def _read_break_minutes(errors: FieldErrors, payload: Mapping[str, Any], default: Optional[int]) -> Optional[int]:
    if not present(payload, "defaultBreakTime"):
        return default
    value = payload.get("defaultBreakTime")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value not in ALLOWED_BREAK_MINUTES:
        allowed = ", ".join(str(m) for m in ALLOWED_BREAK_MINUTES)
        errors.add("defaultBreakTime", f"defaultBreakTime must be one of {allowed}")
        return default
    return value


def _read_grants(errors: FieldErrors, payload: Mapping[str, Any], employee_id: str) -> list[PaidLeaveGrant]:
    raw = payload.get("paidLeaves")
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.add("paidLeaves", "paidLeaves must be an array")
        return []
    grants: list[PaidLeaveGrant] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, Mapping):
            errors.add(f"paidLeaves[{idx}]", "paid leave grant must be an object")
            continue
        item_errors = FieldErrors()
        grant_date = read_date(item_errors, item, "grantDate")
        days = read_decimal(item_errors, item, "days", positive=True)
        errors.merge(item_errors, prefix=f"paidLeaves[{idx}].")
        if grant_date and days is not None:
            grants.append(PaidLeaveGrant(grant_id="", employee_id=employee_id, grant_date=grant_date, days_granted=days))
    return grants


class EmployeeService:
    """Roster administration. Everything except reading one's own profile is admin only."""

    def __init__(
        self,
        employees: EmployeeRepository,
        masters: MasterRepository,
    ):
        self._employees = employees
        self._masters = masters

    def _parse(self, payload: Mapping[str, Any], *, current: Optional[Employee] = None) -> EmployeeDraft:
        errors = FieldErrors()
        first_name = read_text(errors, payload, "firstName", max_length=NAME_MAX_LENGTH)
        last_name = read_text(errors, payload, "lastName", max_length=NAME_MAX_LENGTH)
        employment_type = read_enum(errors, payload, "employmentType", EmploymentType)
        email = read_text(errors, payload, "email")
        if email is not None and not is_email(email):
            errors.add("email", "email must be a valid email address")
        join_date = read_date(errors, payload, "joinDate")
        leave_date = read_date(errors, payload, "leaveDate", required=False)
        if join_date and leave_date and leave_date < join_date:
            errors.add("leaveDate", "leaveDate must be on or after joinDate")
        is_admin = read_bool(errors, payload, "isAdmin", default=current.is_admin if current else False)
        base_salary = read_decimal(errors, payload, "baseSalary", minimum=Decimal("0"))

        break_minutes = _read_break_minutes(
            errors, payload, current.default_break_minutes if current else DEFAULT_BREAK_MINUTES
        )
        prescribed = current.prescribed_work_hours if current else DEFAULT_PRESCRIBED_WORK_HOURS
        if present(payload, "prescribedWorkHours") and payload.get("prescribedWorkHours") is not None:
            value = read_decimal(errors, payload, "prescribedWorkHours", positive=True)
            if value is not None and value > _MAX_DAILY_HOURS:
                errors.add("prescribedWorkHours", "prescribedWorkHours must not exceed 24")
            elif value is not None:
                prescribed = value

        allowance_ids = current.allowance_ids if current else ()
        if present(payload, "allowances"):
            raw = payload.get("allowances") or []
            if not isinstance(raw, list) or not all(isinstance(a, str) for a in raw):
                errors.add("allowances", "allowances must be an array of allowance ids")
            else:
                allowance_ids = tuple(dict.fromkeys(raw))

        employee_id = current.employee_id if current else ""
        grants = _read_grants(errors, payload, employee_id)
        errors.raise_if_any()

        for allowance_id in allowance_ids:
            allowance = self._masters.get_allowance(allowance_id)
            if not allowance or not allowance.is_active:
                raise NotFoundError(f"Allowance not found: {allowance_id}")

        employee = Employee(
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            employment_type=employment_type,
            email=email,
            join_date=join_date,
            leave_date=leave_date,
            is_admin=is_admin,
            base_salary=base_salary,
            default_break_minutes=break_minutes,
            prescribed_work_hours=prescribed,
            allowance_ids=tuple(allowance_ids),
        )
        return EmployeeDraft(employee=employee, grants=grants)

    def list_employees(
        self,
        ctx: EmployeeContext,
        *,
        employment_type: Optional[EmploymentType] = None,
        active_on: Optional[date] = None,
    ) -> Sequence[Employee]:
        ctx.require_admin()
        rows = self._employees.list_employees(employment_type=employment_type)
        if active_on is not None:
            rows = [e for e in rows if e.is_active_on(active_on)]
        return rows

    def get(self, ctx: EmployeeContext, employee_id: str) -> Employee:
        ctx.require_self_or_admin(employee_id, action="view the profile")
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee not found: {employee_id}")
        return employee

    def register(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> Employee:
        ctx.require_admin()
        draft = self._parse(payload)
        if self._employees.get_by_email(draft.employee.email):
            raise ConflictError(f"An employee with email {draft.employee.email} already exists")
        created = self._employees.create(replace(draft.employee, updated_by=ctx.employee_id), grants=draft.grants)
        log.info(
            "employee registered id=%s type=%s grants=%s",
            created.employee_id,
            created.employment_type.value,
            len(draft.grants),
        )
        return created

    def update(self, ctx: EmployeeContext, employee_id: str, payload: Mapping[str, Any]) -> Employee:
        ctx.require_admin()
        current = self._employees.get_by_id(employee_id)
        if not current:
            raise NotFoundError(f"Employee not found: {employee_id}")
        draft = self._parse(payload, current=current)
        other = self._employees.get_by_email(draft.employee.email)
        if other and other.employee_id != employee_id:
            raise ConflictError(f"An employee with email {draft.employee.email} already exists")
        updated = self._employees.update(replace(draft.employee, updated_by=ctx.employee_id), grants=draft.grants)
        log.info("employee updated id=%s by=%s", employee_id, ctx.employee_id)
        return updated
