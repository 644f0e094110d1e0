from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EmploymentType
from ..leave.model import PaidLeaveGrant
from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for the roster.

    Services depend on this Protocol, never on a concrete database.
    """

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_employees(self, *, employment_type: Optional[EmploymentType] = None) -> Sequence[Employee]:
        raise NotImplementedError

    def create(self, employee: Employee, *, grants: Sequence[PaidLeaveGrant]) -> Employee:
        """Insert the employee and its initial paid-leave grants in one unit of work."""

        raise NotImplementedError

    def update(self, employee: Employee, *, grants: Sequence[PaidLeaveGrant] = ()) -> Employee:
        """Replace the profile and allowance assignments; ``grants`` are appended."""

        raise NotImplementedError

    def is_allowance_assigned(self, allowance_id: str) -> bool:
        raise NotImplementedError
