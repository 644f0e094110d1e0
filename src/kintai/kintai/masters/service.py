from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import FieldErrors, is_color, present, read_bool, read_int, read_text
from ..core.constants import DEFAULT_DISPLAY_ORDER, MASTER_NAME_MAX_LENGTH
from ..core.context import EmployeeContext
from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..employees.repository import EmployeeRepository
from .model import AllowanceMaster, DeductionMaster
from .repository import MasterRepository

log = logging.getLogger(__name__)


def _read_display_order(errors: FieldErrors, payload: Mapping[str, Any], default: int) -> int:
    if not present(payload, "displayOrder") or payload.get("displayOrder") is None:
        return default
    value = read_int(errors, payload, "displayOrder", low=0)
    return default if value is None else value


class MasterService:
    """Allowance and deduction masters. Every operation is admin only."""

    def __init__(self, masters: MasterRepository, employees: EmployeeRepository):
        self._masters = masters
        self._employees = employees

    # -------- Allowances --------
    def list_allowances(self, ctx: EmployeeContext) -> Sequence[AllowanceMaster]:
        ctx.require_admin()
        rows = self._masters.list_allowances(active_only=True)
        return sorted(rows, key=lambda a: (a.display_order, a.name))

    def get_allowance(self, ctx: EmployeeContext, allowance_id: str) -> AllowanceMaster:
        ctx.require_admin()
        allowance = self._masters.get_allowance(allowance_id)
        if not allowance or not allowance.is_active:
            raise NotFoundError(f"Allowance not found: {allowance_id}")
        return allowance

    def _parse_allowance(self, payload: Mapping[str, Any], *, current: Optional[AllowanceMaster] = None):
        errors = FieldErrors()
        name = read_text(errors, payload, "name", max_length=MASTER_NAME_MAX_LENGTH)
        color = read_text(errors, payload, "color")
        if color is not None and not is_color(color):
            errors.add("color", "color must be a hex code like #RRGGBB")
        include = read_bool(
            errors, payload, "includeInOvertime", default=current.include_in_overtime if current else False
        )
        order = _read_display_order(errors, payload, current.display_order if current else DEFAULT_DISPLAY_ORDER)
        errors.raise_if_any()
        return name, color, include, order

    def create_allowance(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> AllowanceMaster:
        ctx.require_admin()
        name, color, include, order = self._parse_allowance(payload)
        if self._masters.find_allowance_by_name(name):
            raise ConflictError(f"An allowance named '{name}' already exists")
        created = self._masters.create_allowance(
            AllowanceMaster(
                allowance_id="",
                name=name,
                color=color,
                include_in_overtime=include,
                display_order=order,
                updated_by=ctx.employee_id,
            )
        )
        log.info("allowance created id=%s name=%s", created.allowance_id, name)
        return created

    def update_allowance(self, ctx: EmployeeContext, allowance_id: str, payload: Mapping[str, Any]) -> AllowanceMaster:
        current = self.get_allowance(ctx, allowance_id)
        name, color, include, order = self._parse_allowance(payload, current=current)
        other = self._masters.find_allowance_by_name(name)
        if other and other.allowance_id != allowance_id:
            raise ConflictError(f"An allowance named '{name}' already exists")
        return self._masters.update_allowance(
            replace(
                current,
                name=name,
                color=color,
                include_in_overtime=include,
                display_order=order,
                updated_by=ctx.employee_id,
            )
        )

    def delete_allowance(self, ctx: EmployeeContext, allowance_id: str) -> None:
        current = self.get_allowance(ctx, allowance_id)
        if self._employees.is_allowance_assigned(allowance_id):
            raise BadRequestError("The allowance is still assigned to an employee")
        self._masters.update_allowance(replace(current, is_active=False, updated_by=ctx.employee_id))
        log.info("allowance deleted id=%s by=%s", allowance_id, ctx.employee_id)

    # -------- Deductions --------
    def list_deductions(self, ctx: EmployeeContext) -> Sequence[DeductionMaster]:
        ctx.require_admin()
        rows = self._masters.list_deductions(active_only=True)
        return sorted(rows, key=lambda d: (d.display_order, d.name))

    def get_deduction(self, ctx: EmployeeContext, deduction_id: str) -> DeductionMaster:
        ctx.require_admin()
        deduction = self._masters.get_deduction(deduction_id)
        if not deduction or not deduction.is_active:
            raise NotFoundError(f"Deduction not found: {deduction_id}")
        return deduction

    def _parse_deduction(self, payload: Mapping[str, Any], *, current: Optional[DeductionMaster] = None):
        errors = FieldErrors()
        name = read_text(errors, payload, "name", max_length=MASTER_NAME_MAX_LENGTH)
        order = _read_display_order(errors, payload, current.display_order if current else DEFAULT_DISPLAY_ORDER)
        errors.raise_if_any()
        return name, order

    def create_deduction(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> DeductionMaster:
        ctx.require_admin()
        name, order = self._parse_deduction(payload)
        if self._masters.find_deduction_by_name(name):
            raise ConflictError(f"A deduction named '{name}' already exists")
        created = self._masters.create_deduction(
            DeductionMaster(deduction_id="", name=name, display_order=order, updated_by=ctx.employee_id)
        )
        log.info("deduction created id=%s name=%s", created.deduction_id, name)
        return created

    def update_deduction(self, ctx: EmployeeContext, deduction_id: str, payload: Mapping[str, Any]) -> DeductionMaster:
        current = self.get_deduction(ctx, deduction_id)
        name, order = self._parse_deduction(payload, current=current)
        other = self._masters.find_deduction_by_name(name)
        if other and other.deduction_id != deduction_id:
            raise ConflictError(f"A deduction named '{name}' already exists")
        return self._masters.update_deduction(
            replace(current, name=name, display_order=order, updated_by=ctx.employee_id)
        )

    def delete_deduction(self, ctx: EmployeeContext, deduction_id: str) -> None:
        current = self.get_deduction(ctx, deduction_id)
        self._masters.update_deduction(replace(current, is_active=False, updated_by=ctx.employee_id))
        log.info("deduction deleted id=%s by=%s", deduction_id, ctx.employee_id)
