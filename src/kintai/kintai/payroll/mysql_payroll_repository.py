from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from ..core.enums import StatementType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    check_version,
    db_cursor,
    fetchall,
    from_db_datetime,
    new_id,
    to_db_datetime,
    to_decimal,
)
from .model import BonusDetail, PayrollDetail, PayrollRecord, SalaryDetail
from .repository import PayrollRepository

_RECORD_COLUMNS = """
    r.payroll_id, r.employee_id, r.year, r.month, r.statement_type, r.memo, r.is_active, r.supersedes,
    r.created_by, r.updated_by, r.created_at, r.updated_at,
    d.working_days, d.holiday_work, d.paid_leave, d.paid_leave_remaining,
    d.normal_overtime, d.late_night_overtime, d.total_work_minutes,
    d.base_salary, d.overtime_allowance, d.late_night_allowance,
    d.bonus_amount, d.health_insurance, d.pension, d.employment_insurance, d.income_tax,
    d.total_earnings, d.total_deductions, d.net_pay
"""

_FROM = "FROM payroll_records r JOIN payroll_details d ON d.payroll_id = r.payroll_id"


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _line_items(cur, payroll_ids: Sequence[str]) -> dict[str, dict[str, dict[str, Any]]]:
        if not payroll_ids:
            return {}
        placeholders = ",".join(["%s"] * len(payroll_ids))
        cur.execute(
            f"""
            SELECT payroll_id, kind, master_id, amount
            FROM payroll_line_items
            WHERE payroll_id IN ({placeholders}) AND is_active=1
            """,
            tuple(payroll_ids),
        )
        out: dict[str, dict[str, dict[str, Any]]] = {}
        for row in fetchall(cur):
            items = out.setdefault(row["payroll_id"], {"allowance": {}, "deduction": {}})
            items[row["kind"]][row["master_id"]] = to_decimal(row["amount"])
        return out

    @staticmethod
    def _to_detail(r: Dict[str, Any], items: dict[str, dict[str, Any]]) -> PayrollDetail:
        if StatementType(r["statement_type"]) == StatementType.BONUS:
            return BonusDetail(
                bonus_amount=to_decimal(r["bonus_amount"]),
                health_insurance=to_decimal(r["health_insurance"]),
                pension=to_decimal(r["pension"]),
                employment_insurance=to_decimal(r["employment_insurance"]),
                income_tax=to_decimal(r["income_tax"]),
                total_earnings=to_decimal(r["total_earnings"]),
                total_deductions=to_decimal(r["total_deductions"]),
                net_pay=to_decimal(r["net_pay"]),
            )
        return SalaryDetail(
            working_days=to_decimal(r["working_days"]),
            holiday_work=to_decimal(r["holiday_work"]),
            paid_leave=to_decimal(r["paid_leave"]),
            paid_leave_remaining=to_decimal(r["paid_leave_remaining"]),
            normal_overtime=int(r["normal_overtime"] or 0),
            late_night_overtime=int(r["late_night_overtime"] or 0),
            total_work_minutes=int(r["total_work_minutes"] or 0),
            base_salary=to_decimal(r["base_salary"]),
            overtime_allowance=to_decimal(r["overtime_allowance"]),
            late_night_allowance=to_decimal(r["late_night_allowance"]),
            allowances=dict(items.get("allowance", {})),
            total_earnings=to_decimal(r["total_earnings"]),
            deductions=dict(items.get("deduction", {})),
            total_deductions=to_decimal(r["total_deductions"]),
            net_pay=to_decimal(r["net_pay"]),
        )

    def _to_domain(self, r: Dict[str, Any], items: dict[str, dict[str, Any]]) -> PayrollRecord:
        return PayrollRecord(
            payroll_id=r["payroll_id"],
            employee_id=r["employee_id"],
            year=int(r["year"]),
            month=int(r["month"]),
            statement_type=StatementType(r["statement_type"]),
            detail=self._to_detail(r, items),
            created_by=r["created_by"],
            updated_by=r["updated_by"],
            created_at=from_db_datetime(r["created_at"]),
            updated_at=from_db_datetime(r["updated_at"]),
            memo=r.get("memo"),
            is_active=bool(r["is_active"]),
            supersedes=r.get("supersedes"),
        )

    def _select(self, where: str, params: tuple, *, order: str = "") -> list[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} {_FROM} WHERE {where} {order}", params)
            rows = fetchall(cur)
            items = self._line_items(cur, [r["payroll_id"] for r in rows])
            return [self._to_domain(r, items.get(r["payroll_id"], {})) for r in rows]

    def get(self, payroll_id: str) -> Optional[PayrollRecord]:
        rows = self._select("r.payroll_id=%s", (payroll_id,))
        return rows[0] if rows else None

    def find_active(
        self, employee_id: str, year: int, month: int, statement_type: StatementType
    ) -> Optional[PayrollRecord]:
        rows = self._select(
            "r.employee_id=%s AND r.year=%s AND r.month=%s AND r.statement_type=%s AND r.is_active=1",
            (employee_id, year, month, statement_type.value),
        )
        return rows[0] if rows else None

    def list_records(
        self,
        *,
        employee_id: Optional[str] = None,
        fiscal_year: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Sequence[PayrollRecord]:
        clauses = ["r.is_active=1"]
        params: list[object] = []

        if employee_id is not None:
            clauses.append("r.employee_id=%s")
            params.append(employee_id)
        if fiscal_year is not None:
            # April..December of fiscal_year, January..March of the next year
            clauses.append("((r.year=%s AND r.month>=4) OR (r.year=%s AND r.month<=3))")
            params.extend([fiscal_year, fiscal_year + 1])
        if year is not None:
            clauses.append("r.year=%s")
            params.append(year)
        if month is not None:
            clauses.append("r.month=%s")
            params.append(month)

        return self._select(
            " AND ".join(clauses),
            tuple(params),
            order="ORDER BY r.year DESC, r.month DESC, r.employee_id, r.statement_type",
        )

    @staticmethod
    def _insert(cur, record: PayrollRecord) -> None:
        cur.execute(
            """
            INSERT INTO payroll_records(
                payroll_id, employee_id, year, month, statement_type, memo, is_active, supersedes,
                created_by, updated_by, created_at, updated_at
            )
            VALUES(%s,%s,%s,%s,%s,%s,1,%s,%s,%s,%s,%s)
            """,
            (
                record.payroll_id,
                record.employee_id,
                record.year,
                record.month,
                record.statement_type.value,
                record.memo,
                record.supersedes,
                record.created_by,
                record.updated_by,
                to_db_datetime(record.created_at),
                to_db_datetime(record.updated_at),
            ),
        )
        d = record.detail
        if isinstance(d, SalaryDetail):
            cur.execute(
                """
                INSERT INTO payroll_details(
                    payroll_id, working_days, holiday_work, paid_leave, paid_leave_remaining,
                    normal_overtime, late_night_overtime, total_work_minutes,
                    base_salary, overtime_allowance, late_night_allowance,
                    total_earnings, total_deductions, net_pay
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.payroll_id,
                    d.working_days,
                    d.holiday_work,
                    d.paid_leave,
                    d.paid_leave_remaining,
                    d.normal_overtime,
                    d.late_night_overtime,
                    d.total_work_minutes,
                    d.base_salary,
                    d.overtime_allowance,
                    d.late_night_allowance,
                    d.total_earnings,
                    d.total_deductions,
                    d.net_pay,
                ),
            )
            for kind, amounts in (("allowance", d.allowances), ("deduction", d.deductions)):
                for master_id, amount in amounts.items():
                    cur.execute(
                        """
                        INSERT INTO payroll_line_items(payroll_id, kind, master_id, amount)
                        VALUES(%s,%s,%s,%s)
                        """,
                        (record.payroll_id, kind, master_id, amount),
                    )
        else:
            cur.execute(
                """
                INSERT INTO payroll_details(
                    payroll_id, bonus_amount, health_insurance, pension, employment_insurance, income_tax,
                    total_earnings, total_deductions, net_pay
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.payroll_id,
                    d.bonus_amount,
                    d.health_insurance,
                    d.pension,
                    d.employment_insurance,
                    d.income_tax,
                    d.total_earnings,
                    d.total_deductions,
                    d.net_pay,
                ),
            )

    def create(self, record: PayrollRecord) -> PayrollRecord:
        created = replace(record, payroll_id=new_id(), is_active=True)
        with db_cursor(self._conn_factory) as (_, cur):
            self._insert(cur, created)
        return created

    def supersede(self, old: PayrollRecord, new: PayrollRecord) -> PayrollRecord:
        created = replace(new, payroll_id=new_id(), is_active=True, supersedes=old.payroll_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_records SET is_active=0, updated_by=%s, updated_at=%s WHERE payroll_id=%s AND is_active=1",
                (created.updated_by, to_db_datetime(created.updated_at), old.payroll_id),
            )
            check_version(cur, what="Payroll statement")
            cur.execute("UPDATE payroll_details SET is_active=0 WHERE payroll_id=%s", (old.payroll_id,))
            cur.execute("UPDATE payroll_line_items SET is_active=0 WHERE payroll_id=%s", (old.payroll_id,))
            self._insert(cur, created)
        return created

    def save_memo(self, record: PayrollRecord) -> PayrollRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_records SET memo=%s, updated_by=%s, updated_at=%s WHERE payroll_id=%s AND is_active=1",
                (record.memo, record.updated_by, to_db_datetime(record.updated_at), record.payroll_id),
            )
        return record
