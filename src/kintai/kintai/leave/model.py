from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: str
    employee_id: str
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str
    days: Decimal
    is_half_day: bool
    status: LeaveStatus
    requested_at: datetime
    updated_at: datetime
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_live(self) -> bool:
        """Pending or approved requests block overlapping ranges."""
        return self.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and start <= self.end_date


@dataclass(frozen=True)
class PaidLeaveGrant:
    """One row of the paid-leave grant ledger."""

    grant_id: str
    employee_id: str
    grant_date: date
    days_granted: Decimal
    days_consumed: Decimal = Decimal("0")

    @property
    def remaining(self) -> Decimal:
        return self.days_granted - self.days_consumed


@dataclass(frozen=True)
class GrantConsumption:
    grant_id: str
    days: Decimal


@dataclass(frozen=True)
class PaidLeaveBalance:
    employee_id: str
    granted: Decimal
    consumed: Decimal
    reserved: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.granted - self.consumed

    @property
    def available(self) -> Decimal:
        return self.remaining - self.reserved
