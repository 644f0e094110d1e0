from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from ..core.enums import EmploymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id, to_decimal
from ..leave.model import PaidLeaveGrant
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, first_name, last_name, employment_type, email, join_date, leave_date,
    is_admin, base_salary, default_break_minutes, prescribed_work_hours, updated_by
"""


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_domain(r: Dict[str, Any], allowance_ids: Sequence[str] = ()) -> Employee:
        return Employee(
            employee_id=r["employee_id"],
            first_name=r["first_name"],
            last_name=r["last_name"],
            employment_type=EmploymentType(r["employment_type"]),
            email=r["email"],
            join_date=r["join_date"],
            leave_date=r.get("leave_date"),
            is_admin=bool(r["is_admin"]),
            base_salary=to_decimal(r["base_salary"]),
            default_break_minutes=r.get("default_break_minutes"),
            prescribed_work_hours=to_decimal(r["prescribed_work_hours"]),
            allowance_ids=tuple(allowance_ids),
            updated_by=r.get("updated_by"),
        )

    @staticmethod
    def _allowances_by_employee(cur, employee_ids: Sequence[str]) -> dict[str, list[str]]:
        if not employee_ids:
            return {}
        placeholders = ",".join(["%s"] * len(employee_ids))
        cur.execute(
            f"""
            SELECT ea.employee_id, ea.allowance_id
            FROM employee_allowances ea
            JOIN allowance_masters am ON am.allowance_id = ea.allowance_id
            WHERE ea.employee_id IN ({placeholders})
            ORDER BY am.display_order, am.name
            """,
            tuple(employee_ids),
        )
        out: dict[str, list[str]] = {}
        for row in fetchall(cur):
            out.setdefault(row["employee_id"], []).append(row["allowance_id"])
        return out

    def _fetch(self, where: str, params: tuple) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            if not r:
                return None
            allowances = self._allowances_by_employee(cur, [r["employee_id"]])
            return self._to_domain(r, allowances.get(r["employee_id"], ()))

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self._fetch("employee_id=%s", (employee_id,))

    def get_by_email(self, email: str) -> Optional[Employee]:
        return self._fetch("email=%s", (email,))

    def list_employees(self, *, employment_type: Optional[EmploymentType] = None) -> Sequence[Employee]:
        sql = f"SELECT {_COLUMNS} FROM employees"
        params: list[object] = []
        if employment_type is not None:
            sql += " WHERE employment_type=%s"
            params.append(employment_type.value)
        sql += " ORDER BY last_name, first_name, employee_id"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            allowances = self._allowances_by_employee(cur, [r["employee_id"] for r in rows])
            return [self._to_domain(r, allowances.get(r["employee_id"], ())) for r in rows]

    @staticmethod
    def _write_allowances(cur, employee: Employee) -> None:
        cur.execute("DELETE FROM employee_allowances WHERE employee_id=%s", (employee.employee_id,))
        for allowance_id in employee.allowance_ids:
            cur.execute(
                "INSERT INTO employee_allowances(employee_id, allowance_id) VALUES(%s,%s)",
                (employee.employee_id, allowance_id),
            )

    @staticmethod
    def _insert_grants(cur, employee_id: str, grants: Sequence[PaidLeaveGrant]) -> None:
        for grant in grants:
            cur.execute(
                """
                INSERT INTO paid_leave_grants(grant_id, employee_id, grant_date, days_granted, days_consumed)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (new_id(), employee_id, grant.grant_date, grant.days_granted, grant.days_consumed),
            )

    def create(self, employee: Employee, *, grants: Sequence[PaidLeaveGrant]) -> Employee:
        created = replace(employee, employee_id=new_id())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(
                    employee_id, first_name, last_name, employment_type, email, join_date, leave_date,
                    is_admin, base_salary, default_break_minutes, prescribed_work_hours, updated_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    created.employee_id,
                    created.first_name,
                    created.last_name,
                    created.employment_type.value,
                    created.email,
                    created.join_date,
                    created.leave_date,
                    int(created.is_admin),
                    created.base_salary,
                    created.default_break_minutes,
                    created.prescribed_work_hours,
                    created.updated_by,
                ),
            )
            self._write_allowances(cur, created)
            self._insert_grants(cur, created.employee_id, grants)
        return created

    def update(self, employee: Employee, *, grants: Sequence[PaidLeaveGrant] = ()) -> Employee:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET first_name=%s, last_name=%s, employment_type=%s, email=%s, join_date=%s, leave_date=%s,
                    is_admin=%s, base_salary=%s, default_break_minutes=%s, prescribed_work_hours=%s, updated_by=%s
                WHERE employee_id=%s
                """,
                (
                    employee.first_name,
                    employee.last_name,
                    employee.employment_type.value,
                    employee.email,
                    employee.join_date,
                    employee.leave_date,
                    int(employee.is_admin),
                    employee.base_salary,
                    employee.default_break_minutes,
                    employee.prescribed_work_hours,
                    employee.updated_by,
                    employee.employee_id,
                ),
            )
            self._write_allowances(cur, employee)
            self._insert_grants(cur, employee.employee_id, grants)
        return employee

    def is_allowance_assigned(self, allowance_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS hit FROM employee_allowances WHERE allowance_id=%s LIMIT 1", (allowance_id,))
            return fetchone(cur) is not None
