from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from kintai.core.context import EmployeeContext
from kintai.core.enums import EmploymentType, Role
from kintai.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from kintai.employees.service import EmployeeService
from kintai.masters.model import AllowanceMaster


class InMemoryEmployees:
    def __init__(self):
        self.rows = {}
        self.grants = []
        self._next_id = 1

    def get_by_id(self, employee_id):
        return self.rows.get(employee_id)

    def get_by_email(self, email):
        return next((e for e in self.rows.values() if e.email == email), None)

    def list_employees(self, *, employment_type=None):
        return [e for e in self.rows.values() if employment_type is None or e.employment_type == employment_type]

    def create(self, employee, *, grants):
        created = replace(employee, employee_id=f"emp-{self._next_id}")
        self._next_id += 1
        self.rows[created.employee_id] = created
        self.grants.extend(replace(g, employee_id=created.employee_id) for g in grants)
        return created

    def update(self, employee, *, grants=()):
        self.rows[employee.employee_id] = employee
        self.grants.extend(grants)
        return employee


class InMemoryMasters:
    def __init__(self, *allowances):
        self._by_id = {a.allowance_id: a for a in allowances}

    def get_allowance(self, allowance_id):
        return self._by_id.get(allowance_id)


ADMIN = EmployeeContext(employee_id="boss", name="boss", role=Role.ADMIN)


def body(**overrides):
    payload = {
        "firstName": "Taro",
        "lastName": "Yamada",
        "employmentType": "FULL_TIME",
        "email": "taro@example.com",
        "joinDate": "2024-04-01",
        "baseSalary": 280000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def repo():
    return InMemoryEmployees()


@pytest.fixture()
def service(repo):
    masters = InMemoryMasters(
        AllowanceMaster(allowance_id="a-pos", name="Position"),
        AllowanceMaster(allowance_id="a-old", name="Retired", is_active=False),
    )
    return EmployeeService(repo, masters)


def test_register_applies_defaults(service):
    created = service.register(ADMIN, body())
    assert created.default_break_minutes == 90
    assert created.prescribed_work_hours == Decimal("7.5")
    assert created.is_admin is False
    assert created.updated_by == "boss"
    assert created.name == "Yamada Taro"


def test_register_reports_every_bad_field(service):
    with pytest.raises(ValidationError) as exc:
        service.register(
            ADMIN,
            body(
                firstName="",
                employmentType="CONTRACT",
                email="not-an-email",
                leaveDate="2024-03-31",
                defaultBreakTime=45,
                prescribedWorkHours=25,
                paidLeaves=[{"grantDate": "2024-04-01", "days": 0}],
            ),
        )
    assert {
        "firstName",
        "employmentType",
        "email",
        "leaveDate",
        "defaultBreakTime",
        "prescribedWorkHours",
        "paidLeaves[0].days",
    } <= set(exc.value.field_errors)


def test_null_break_disables_synthesis(service):
    assert service.register(ADMIN, body(defaultBreakTime=None)).default_break_minutes is None


def test_register_stores_initial_grants(service, repo):
    created = service.register(ADMIN, body(paidLeaves=[{"grantDate": "2024-10-01", "days": 10}]))
    assert [(g.employee_id, g.days_granted) for g in repo.grants] == [(created.employee_id, Decimal("10"))]


def test_duplicate_email_conflicts(service):
    service.register(ADMIN, body())
    with pytest.raises(ConflictError):
        service.register(ADMIN, body(firstName="Hanako"))


def test_allowances_must_be_active_masters(service):
    created = service.register(ADMIN, body(allowances=["a-pos", "a-pos"]))
    assert created.allowance_ids == ("a-pos",)
    with pytest.raises(NotFoundError):
        service.register(ADMIN, body(email="other@example.com", allowances=["a-old"]))


def test_update_keeps_unsent_settings_and_appends_grants(service, repo):
    created = service.register(ADMIN, body(defaultBreakTime=60, allowances=["a-pos"]))
    updated = service.update(
        ADMIN,
        created.employee_id,
        body(baseSalary=300000, paidLeaves=[{"grantDate": "2025-04-01", "days": 11}]),
    )
    assert updated.base_salary == Decimal("300000")
    assert updated.default_break_minutes == 60
    assert updated.allowance_ids == ("a-pos",)
    assert [g.grant_date for g in repo.grants] == [date(2025, 4, 1)]


def test_update_cannot_take_another_employees_email(service):
    first = service.register(ADMIN, body())
    service.register(ADMIN, body(email="hanako@example.com"))
    with pytest.raises(ConflictError):
        service.update(ADMIN, first.employee_id, body(email="hanako@example.com"))


def test_profile_visible_to_self_and_admin(service):
    created = service.register(ADMIN, body())
    me = EmployeeContext(employee_id=created.employee_id, name="Taro", role=Role.EMPLOYEE)
    stranger = EmployeeContext(employee_id="emp-99", name="x", role=Role.EMPLOYEE)

    assert service.get(me, created.employee_id).email == "taro@example.com"
    with pytest.raises(AuthorizationError):
        service.get(stranger, created.employee_id)
    with pytest.raises(AuthorizationError):
        service.register(me, body(email="new@example.com"))


def test_list_filters_by_type_and_activity(service):
    service.register(ADMIN, body())
    service.register(ADMIN, body(email="p@example.com", employmentType="PART_TIME", baseSalary=1100))
    service.register(ADMIN, body(email="gone@example.com", leaveDate="2024-06-30"))

    part_time = service.list_employees(ADMIN, employment_type=EmploymentType.PART_TIME)
    assert [e.email for e in part_time] == ["p@example.com"]
    active = service.list_employees(ADMIN, active_on=date(2024, 7, 1))
    assert "gone@example.com" not in {e.email for e in active}
