from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    check_version,
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    new_id,
    to_db_datetime,
)
from .model import AttendanceRecord, BreakRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    attendance_id, employee_id, work_date, clock_in, clock_out, status,
    total_work_minutes, overtime_minutes, late_night_minutes, memo,
    updated_by, updated_at, version
"""


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_break(r: Dict[str, Any]) -> BreakRecord:
        return BreakRecord(
            break_id=r["break_id"],
            start=from_db_datetime(r["start_time"]),
            end=from_db_datetime(r.get("end_time")),
            is_active=bool(r["is_active"]),
        )

    @staticmethod
    def _to_record(r: Dict[str, Any], breaks: Sequence[BreakRecord]) -> AttendanceRecord:
        return AttendanceRecord(
            attendance_id=r["attendance_id"],
            employee_id=r["employee_id"],
            work_date=r["work_date"],
            clock_in=from_db_datetime(r.get("clock_in")),
            clock_out=from_db_datetime(r.get("clock_out")),
            breaks=tuple(breaks),
            status=AttendanceStatus(r["status"]),
            total_work_minutes=int(r["total_work_minutes"] or 0),
            overtime_minutes=int(r["overtime_minutes"] or 0),
            late_night_minutes=int(r["late_night_minutes"] or 0),
            memo=r.get("memo"),
            updated_by=r.get("updated_by"),
            updated_at=from_db_datetime(r.get("updated_at")),
            version=int(r["version"]),
        )

    def _load_breaks(self, cur, attendance_ids: Sequence[str]) -> Dict[str, List[BreakRecord]]:
        out: Dict[str, List[BreakRecord]] = {aid: [] for aid in attendance_ids}
        if not attendance_ids:
            return out
        placeholders = ",".join(["%s"] * len(attendance_ids))
        cur.execute(
            f"""
            SELECT break_id, attendance_id, start_time, end_time, is_active
            FROM attendance_breaks
            WHERE attendance_id IN ({placeholders})
            ORDER BY seq ASC
            """,
            tuple(attendance_ids),
        )
        for r in fetchall(cur):
            out[r["attendance_id"]].append(self._to_break(r))
        return out

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            breaks = self._load_breaks(cur, [r["attendance_id"]])
            return self._to_record(r, breaks[r["attendance_id"]])

    def list_for_employee(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC
                """,
                (employee_id, start_date, end_date),
            )
            rows = fetchall(cur)
            breaks = self._load_breaks(cur, [r["attendance_id"] for r in rows])
            return [self._to_record(r, breaks[r["attendance_id"]]) for r in rows]

    def list_between(
        self, *, start_date: date, end_date: date, employee_id: Optional[str] = None
    ) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE work_date BETWEEN %s AND %s"
        params: list[object] = [start_date, end_date]
        if employee_id:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        sql += " ORDER BY work_date ASC, employee_id ASC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            breaks = self._load_breaks(cur, [r["attendance_id"] for r in rows])
            return [self._to_record(r, breaks[r["attendance_id"]]) for r in rows]

    def save(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            params = (
                to_db_datetime(record.clock_in),
                to_db_datetime(record.clock_out),
                record.status.value,
                record.total_work_minutes,
                record.overtime_minutes,
                record.late_night_minutes,
                record.memo,
                record.updated_by,
                to_db_datetime(record.updated_at),
            )
            if record.attendance_id is None:
                attendance_id = new_id()
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        clock_in, clock_out, status, total_work_minutes, overtime_minutes,
                        late_night_minutes, memo, updated_by, updated_at,
                        attendance_id, employee_id, work_date, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    params + (attendance_id, record.employee_id, record.work_date),
                )
                version = 1
            else:
                attendance_id = record.attendance_id
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET clock_in=%s, clock_out=%s, status=%s, total_work_minutes=%s, overtime_minutes=%s,
                        late_night_minutes=%s, memo=%s, updated_by=%s, updated_at=%s, version=version+1
                    WHERE attendance_id=%s AND version=%s
                    """,
                    params + (attendance_id, int(expected_version)),
                )
                check_version(cur, what="Attendance record")
                version = int(expected_version) + 1

            saved_breaks: list[BreakRecord] = []
            for seq, b in enumerate(record.breaks):
                if b.break_id is None:
                    b = replace(b, break_id=new_id())
                    cur.execute(
                        """
                        INSERT INTO attendance_breaks(break_id, attendance_id, start_time, end_time, is_active, seq)
                        VALUES(%s,%s,%s,%s,%s,%s)
                        """,
                        (b.break_id, attendance_id, to_db_datetime(b.start), to_db_datetime(b.end), int(b.is_active), seq),
                    )
                else:
                    cur.execute(
                        "UPDATE attendance_breaks SET end_time=%s, is_active=%s WHERE break_id=%s",
                        (to_db_datetime(b.end), int(b.is_active), b.break_id),
                    )
                saved_breaks.append(b)

            return replace(record, attendance_id=attendance_id, breaks=tuple(saved_breaks), version=version)
