from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import GrantConsumption, LeaveRequest, PaidLeaveGrant


class LeaveRepository(Protocol):
    """Leave requests and the paid-leave grant ledger.

    Every write is conditional on the request's ``version``; a mismatch raises
    ConflictError.
    """

    def get_request(self, request_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        employee_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[LeaveRequest]:
        """Requests whose range intersects [start_date, end_date], newest first."""

        raise NotImplementedError

    def create_request(self, request: LeaveRequest) -> LeaveRequest:
        raise NotImplementedError

    def save_request(self, request: LeaveRequest, *, expected_version: int) -> LeaveRequest:
        raise NotImplementedError

    def list_grants(self, employee_id: str) -> Sequence[PaidLeaveGrant]:
        raise NotImplementedError

    def apply_approval(
        self,
        request: LeaveRequest,
        *,
        expected_version: int,
        consumptions: Sequence[GrantConsumption],
    ) -> LeaveRequest:
        """Persist the approved request and the consumed grants in one transaction."""

        raise NotImplementedError
