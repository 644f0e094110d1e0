from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_between(
        self, *, start_date: date, end_date: date, employee_id: Optional[str] = None
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def save(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        """Conditional write.

        A record without ``attendance_id`` is inserted (``expected_version`` must
        be 0); otherwise the stored version must equal ``expected_version``.
        Raises ConflictError on a version mismatch or a duplicate
        (employee, work date). Returns the record with its new version.
        """

        raise NotImplementedError
