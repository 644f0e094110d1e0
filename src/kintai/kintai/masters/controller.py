from __future__ import annotations

from typing import Any

from flask import Flask

from ..common.http import admin_required, current_context, json_body, ok, route
from ..container import Container
from ..core.enums import Operation
from .model import AllowanceMaster, DeductionMaster


def allowance_payload(a: AllowanceMaster) -> dict[str, Any]:
    return {
        "allowanceId": a.allowance_id,
        "name": a.name,
        "color": a.color,
        "includeInOvertime": a.include_in_overtime,
        "displayOrder": a.display_order,
        "isActive": a.is_active,
    }


def deduction_payload(d: DeductionMaster) -> dict[str, Any]:
    return {
        "deductionId": d.deduction_id,
        "name": d.name,
        "displayOrder": d.display_order,
        "isActive": d.is_active,
    }


def register(app: Flask, container: Container) -> None:
    service = container.master_service

    @route(app, Operation.LIST_ALLOWANCES, "/api/v1/allowances", methods=["GET"])
    @admin_required
    def list_allowances():
        rows = service.list_allowances(current_context())
        return ok({"allowances": [allowance_payload(a) for a in rows]})

    @route(app, Operation.GET_ALLOWANCE, "/api/v1/allowances/<allowance_id>", methods=["GET"])
    @admin_required
    def get_allowance(allowance_id: str):
        return ok(allowance_payload(service.get_allowance(current_context(), allowance_id)))

    @route(app, Operation.CREATE_ALLOWANCE, "/api/v1/allowances", methods=["POST"])
    @admin_required
    def create_allowance():
        created = service.create_allowance(current_context(), json_body())
        return ok(allowance_payload(created), status=201)

    @route(app, Operation.UPDATE_ALLOWANCE, "/api/v1/allowances/<allowance_id>", methods=["PUT"])
    @admin_required
    def update_allowance(allowance_id: str):
        updated = service.update_allowance(current_context(), allowance_id, json_body())
        return ok(allowance_payload(updated))

    @route(app, Operation.DELETE_ALLOWANCE, "/api/v1/allowances/<allowance_id>", methods=["DELETE"])
    @admin_required
    def delete_allowance(allowance_id: str):
        service.delete_allowance(current_context(), allowance_id)
        return "", 204

    @route(app, Operation.LIST_DEDUCTIONS, "/api/v1/deductions", methods=["GET"])
    @admin_required
    def list_deductions():
        rows = service.list_deductions(current_context())
        return ok({"deductions": [deduction_payload(d) for d in rows]})

    @route(app, Operation.GET_DEDUCTION, "/api/v1/deductions/<deduction_id>", methods=["GET"])
    @admin_required
    def get_deduction(deduction_id: str):
        return ok(deduction_payload(service.get_deduction(current_context(), deduction_id)))

    @route(app, Operation.CREATE_DEDUCTION, "/api/v1/deductions", methods=["POST"])
    @admin_required
    def create_deduction():
        created = service.create_deduction(current_context(), json_body())
        return ok(deduction_payload(created), status=201)

    @route(app, Operation.UPDATE_DEDUCTION, "/api/v1/deductions/<deduction_id>", methods=["PUT"])
    @admin_required
    def update_deduction(deduction_id: str):
        updated = service.update_deduction(current_context(), deduction_id, json_body())
        return ok(deduction_payload(updated))

    @route(app, Operation.DELETE_DEDUCTION, "/api/v1/deductions/<deduction_id>", methods=["DELETE"])
    @admin_required
    def delete_deduction(deduction_id: str):
        service.delete_deduction(current_context(), deduction_id)
        return "", 204
