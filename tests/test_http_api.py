from __future__ import annotations

from dataclasses import replace

import pytest

from kintai.common.clock import SystemClock
from kintai.container import Container
from kintai.main import create_app
from kintai.masters.service import MasterService


class InMemoryMasters:
    def __init__(self):
        self.allowances = {}
        self._next_id = 1

    def list_allowances(self, *, active_only=True):
        return [a for a in self.allowances.values() if a.is_active or not active_only]

    def get_allowance(self, allowance_id):
        return self.allowances.get(allowance_id)

    def find_allowance_by_name(self, name):
        return next((a for a in self.allowances.values() if a.is_active and a.name == name), None)

    def create_allowance(self, allowance):
        created = replace(allowance, allowance_id=f"a-{self._next_id}")
        self._next_id += 1
        self.allowances[created.allowance_id] = created
        return created

    def update_allowance(self, allowance):
        self.allowances[allowance.allowance_id] = allowance
        return allowance


class NoAssignments:
    def is_allowance_assigned(self, allowance_id):
        return False


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    masters = InMemoryMasters()
    container = Container(
        conn=None,
        clock=SystemClock(),
        employees_repo=None,
        masters_repo=masters,
        attendance_repo=None,
        leave_repo=None,
        payroll_repo=None,
        employee_service=None,
        master_service=MasterService(masters, NoAssignments()),
        attendance_service=None,
        leave_service=None,
        payroll_service=None,
    )
    app = create_app(container=container)
    return app.test_client()


def login(client, employee_id="boss", role="admin"):
    with client.session_transaction() as sess:
        sess["employee_id"] = employee_id
        sess["role"] = role
        sess["name"] = employee_id


def test_anonymous_request_is_401(client):
    resp = client.get("/api/v1/allowances")
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_employee_gets_403_on_admin_route(client):
    login(client, "emp-1", "employee")
    resp = client.get("/api/v1/allowances")
    assert resp.status_code == 403
    assert resp.get_json()["statusCode"] == 403


def test_create_returns_201_envelope(client):
    login(client)
    resp = client.post("/api/v1/allowances", json={"name": "Commute", "color": "#1E88E5"})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["statusCode"] == 201
    assert body["data"]["name"] == "Commute"
    assert body["data"]["includeInOvertime"] is False


def test_validation_error_lists_fields(client):
    login(client)
    resp = client.post("/api/v1/allowances", json={"color": "red"})

    assert resp.status_code == 400
    error = resp.get_json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert {"name", "color"} <= set(error["details"])


def test_duplicate_name_is_409_and_delete_is_204(client):
    login(client)
    created = client.post("/api/v1/allowances", json={"name": "Position", "color": "#000000"}).get_json()["data"]
    dup = client.post("/api/v1/allowances", json={"name": "Position", "color": "#000000"})
    assert dup.status_code == 409

    assert client.delete(f"/api/v1/allowances/{created['allowanceId']}").status_code == 204
    assert client.get(f"/api/v1/allowances/{created['allowanceId']}").status_code == 404


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOT_FOUND"


def test_attendance_list_is_admin_only_and_needs_dates(client):
    login(client, "emp-1", "employee")
    assert client.get("/api/v1/attendance?startDate=2024-04-01&endDate=2024-04-30").status_code == 403

    login(client)
    resp = client.get("/api/v1/attendance?endDate=2024-04-30")
    assert resp.status_code == 400
    assert "startDate" in resp.get_json()["error"]["details"]
