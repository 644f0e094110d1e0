from datetime import date, datetime
from decimal import Decimal

import pytest

from kintai.common.datetime_utils import JST
from kintai.core.enums import LeaveStatus, LeaveType
from kintai.core.exceptions import BadRequestError
from kintai.leave.ledger import balance_of, consume_oldest_first
from kintai.leave.model import LeaveRequest, PaidLeaveGrant


def grant(grant_id, grant_date, granted, consumed="0"):
    return PaidLeaveGrant(
        grant_id=grant_id,
        employee_id="emp-1",
        grant_date=grant_date,
        days_granted=Decimal(granted),
        days_consumed=Decimal(consumed),
    )


def request(request_id, days, *, status=LeaveStatus.PENDING, leave_type=LeaveType.PAID):
    at = datetime(2024, 5, 1, 9, 0, tzinfo=JST)
    return LeaveRequest(
        request_id=request_id,
        employee_id="emp-1",
        start_date=date(2024, 6, 3),
        end_date=date(2024, 6, 3),
        leave_type=leave_type,
        reason="private",
        days=Decimal(days),
        is_half_day=False,
        status=status,
        requested_at=at,
        updated_at=at,
    )


def test_consumes_remaining_of_oldest_grant_only():
    grants = [grant("new", date(2024, 10, 1), "10"), grant("old", date(2024, 4, 1), "5", "2")]

    updated, consumptions = consume_oldest_first(grants, Decimal("3"))

    by_id = {g.grant_id: g for g in updated}
    assert by_id["old"].remaining == Decimal("0")
    assert by_id["new"].days_consumed == Decimal("0")
    assert [(c.grant_id, c.days) for c in consumptions] == [("old", Decimal("3"))]


def test_spills_into_next_grant():
    grants = [grant("old", date(2023, 4, 1), "2", "1.5"), grant("new", date(2024, 4, 1), "10")]

    updated, consumptions = consume_oldest_first(grants, Decimal("2"))

    assert [(c.grant_id, c.days) for c in consumptions] == [("old", Decimal("0.5")), ("new", Decimal("1.5"))]
    assert all(g.remaining >= 0 for g in updated)


def test_insufficient_ledger_is_refused_without_partial_consumption():
    grants = [grant("only", date(2024, 4, 1), "1")]
    with pytest.raises(BadRequestError):
        consume_oldest_first(grants, Decimal("1.5"))
    assert grants[0].days_consumed == Decimal("0")


def test_balance_reserves_pending_paid_requests():
    grants = [grant("g1", date(2024, 4, 1), "10", "3")]
    requests = [
        request("r1", "2"),
        request("r2", "1", status=LeaveStatus.APPROVED),
        request("r3", "4", leave_type=LeaveType.SICK),
        request("r4", "1", status=LeaveStatus.REJECTED),
    ]

    balance = balance_of("emp-1", grants, requests)
    assert balance.remaining == Decimal("7")
    assert balance.reserved == Decimal("2")
    assert balance.available == Decimal("5")

    assert balance_of("emp-1", grants, requests, exclude_request_id="r1").available == Decimal("7")
