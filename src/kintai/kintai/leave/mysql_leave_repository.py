from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    check_version,
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    new_id,
    to_db_datetime,
    to_decimal,
)
from .model import GrantConsumption, LeaveRequest, PaidLeaveGrant
from .repository import LeaveRepository

_REQUEST_COLUMNS = """
    request_id, employee_id, start_date, end_date, leave_type, reason, days, is_half_day,
    status, rejection_reason, approved_by, approved_at, requested_at, updated_at, version
"""


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_request(r: Dict[str, Any]) -> LeaveRequest:
        return LeaveRequest(
            request_id=r["request_id"],
            employee_id=r["employee_id"],
            start_date=r["start_date"],
            end_date=r["end_date"],
            leave_type=LeaveType(r["leave_type"]),
            reason=r["reason"],
            days=to_decimal(r["days"]),
            is_half_day=bool(r["is_half_day"]),
            status=LeaveStatus(r["status"]),
            rejection_reason=r.get("rejection_reason"),
            approved_by=r.get("approved_by"),
            approved_at=from_db_datetime(r.get("approved_at")),
            requested_at=from_db_datetime(r["requested_at"]),
            updated_at=from_db_datetime(r["updated_at"]),
            version=int(r["version"]),
        )

    def get_request(self, request_id: str) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE request_id=%s", (request_id,))
            r = fetchone(cur)
            return self._to_request(r) if r else None

    def list_requests(
        self,
        *,
        employee_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(employee_id)
        if start_date is not None:
            clauses.append("end_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("start_date<=%s")
            params.append(end_date)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE {where} ORDER BY requested_at DESC",
                tuple(params),
            )
            return [self._to_request(r) for r in fetchall(cur)]

    def create_request(self, request: LeaveRequest) -> LeaveRequest:
        created = replace(request, request_id=new_id(), version=1)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    request_id, employee_id, start_date, end_date, leave_type, reason, days,
                    is_half_day, status, requested_at, updated_at, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    created.request_id,
                    created.employee_id,
                    created.start_date,
                    created.end_date,
                    created.leave_type.value,
                    created.reason,
                    created.days,
                    int(created.is_half_day),
                    created.status.value,
                    to_db_datetime(created.requested_at),
                    to_db_datetime(created.updated_at),
                ),
            )
        return created

    @staticmethod
    def _update_request(cur, request: LeaveRequest, expected_version: int) -> None:
        cur.execute(
            """
            UPDATE leave_requests
            SET start_date=%s, end_date=%s, leave_type=%s, reason=%s, days=%s, is_half_day=%s,
                status=%s, rejection_reason=%s, approved_by=%s, approved_at=%s, updated_at=%s,
                version=version+1
            WHERE request_id=%s AND version=%s
            """,
            (
                request.start_date,
                request.end_date,
                request.leave_type.value,
                request.reason,
                request.days,
                int(request.is_half_day),
                request.status.value,
                request.rejection_reason,
                request.approved_by,
                to_db_datetime(request.approved_at),
                to_db_datetime(request.updated_at),
                request.request_id,
                int(expected_version),
            ),
        )
        check_version(cur, what="Leave request")

    def save_request(self, request: LeaveRequest, *, expected_version: int) -> LeaveRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            self._update_request(cur, request, expected_version)
        return replace(request, version=int(expected_version) + 1)

    def list_grants(self, employee_id: str) -> Sequence[PaidLeaveGrant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT grant_id, employee_id, grant_date, days_granted, days_consumed
                FROM paid_leave_grants
                WHERE employee_id=%s
                ORDER BY grant_date ASC, grant_id ASC
                """,
                (employee_id,),
            )
            return [
                PaidLeaveGrant(
                    grant_id=r["grant_id"],
                    employee_id=r["employee_id"],
                    grant_date=r["grant_date"],
                    days_granted=to_decimal(r["days_granted"]),
                    days_consumed=to_decimal(r["days_consumed"]),
                )
                for r in fetchall(cur)
            ]

    def apply_approval(
        self,
        request: LeaveRequest,
        *,
        expected_version: int,
        consumptions: Sequence[GrantConsumption],
    ) -> LeaveRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            self._update_request(cur, request, expected_version)
            for c in consumptions:
                cur.execute(
                    """
                    UPDATE paid_leave_grants
                    SET days_consumed=days_consumed+%s
                    WHERE grant_id=%s AND days_granted>=days_consumed+%s
                    """,
                    (c.days, c.grant_id, c.days),
                )
                check_version(cur, what="Paid leave grant")
                cur.execute(
                    "INSERT INTO leave_grant_consumptions(request_id, grant_id, days) VALUES(%s,%s,%s)",
                    (request.request_id, c.grant_id, c.days),
                )
        return replace(request, version=int(expected_version) + 1)
