"""Paid-leave grant ledger.

Grants are consumed oldest first. A grant may be partially consumed and a
request spills into the next grant once the older one is exhausted; no grant
ever goes below zero remaining.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import BadRequestError
from .model import GrantConsumption, LeaveRequest, PaidLeaveBalance, PaidLeaveGrant

_ZERO = Decimal("0")


def fifo_order(grants: Iterable[PaidLeaveGrant]) -> list[PaidLeaveGrant]:
    return sorted(grants, key=lambda g: (g.grant_date, g.grant_id))


def balance_of(
    employee_id: str,
    grants: Sequence[PaidLeaveGrant],
    requests: Sequence[LeaveRequest] = (),
    *,
    exclude_request_id: Optional[str] = None,
) -> PaidLeaveBalance:
    """Granted/consumed totals, with pending paid requests counted as reserved."""
    granted = sum((g.days_granted for g in grants), _ZERO)
    consumed = sum((g.days_consumed for g in grants), _ZERO)
    reserved = sum(
        (
            r.days
            for r in requests
            if r.leave_type == LeaveType.PAID
            and r.status == LeaveStatus.PENDING
            and r.request_id != exclude_request_id
        ),
        _ZERO,
    )
    return PaidLeaveBalance(employee_id=employee_id, granted=granted, consumed=consumed, reserved=reserved)


def consume_oldest_first(
    grants: Sequence[PaidLeaveGrant], days: Decimal
) -> tuple[list[PaidLeaveGrant], list[GrantConsumption]]:
    """Return the updated grants and the per-grant consumption for ``days``.

    Raises BadRequestError when the ledger cannot cover the request; nothing is
    partially applied in that case.
    """
    if days <= 0:
        raise BadRequestError("Leave days must be positive")

    ordered = fifo_order(grants)
    available = sum((max(g.remaining, _ZERO) for g in ordered), _ZERO)
    if available < days:
        raise BadRequestError(f"Insufficient paid leave (remaining: {available}, requested: {days})")

    left = days
    updated: list[PaidLeaveGrant] = []
    consumptions: list[GrantConsumption] = []
    for grant in ordered:
        take = min(max(grant.remaining, _ZERO), left)
        if take > 0:
            updated.append(
                PaidLeaveGrant(
                    grant_id=grant.grant_id,
                    employee_id=grant.employee_id,
                    grant_date=grant.grant_date,
                    days_granted=grant.days_granted,
                    days_consumed=grant.days_consumed + take,
                )
            )
            consumptions.append(GrantConsumption(grant_id=grant.grant_id, days=take))
            left -= take
        else:
            updated.append(grant)
    return updated, consumptions
