from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import StatementType
from .model import PayrollRecord


class PayrollRepository(Protocol):
    """Repository interface for payroll statements.

    Stored statements are snapshots: only ``save_memo`` mutates a row in place.
    """

    def get(self, payroll_id: str) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def find_active(
        self, employee_id: str, year: int, month: int, statement_type: StatementType
    ) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        employee_id: Optional[str] = None,
        fiscal_year: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Sequence[PayrollRecord]:
        """Active statements only, newest period first."""

        raise NotImplementedError

    def create(self, record: PayrollRecord) -> PayrollRecord:
        raise NotImplementedError

    def supersede(self, old: PayrollRecord, new: PayrollRecord) -> PayrollRecord:
        """Deactivate ``old`` with its line items and insert ``new`` in one unit of work.

        Raises ConflictError when ``old`` is no longer active.
        """

        raise NotImplementedError

    def save_memo(self, record: PayrollRecord) -> PayrollRecord:
        raise NotImplementedError
