from datetime import date, time

from kintai.attendance.factory import BreakStrategyFactory
from kintai.attendance.strategies.afternoon_break import AfternoonBreakStrategy
from kintai.attendance.strategies.lunch_and_afternoon_break import LunchAndAfternoonBreakStrategy
from kintai.attendance.strategies.lunch_break import LunchBreakStrategy
from kintai.attendance.strategies.no_break import NoBreakStrategy
from kintai.common.datetime_utils import at_jst


def test_factory_picks_strategy_for_default_break():
    factory = BreakStrategyFactory()

    assert isinstance(factory.for_default_break(30), AfternoonBreakStrategy)
    assert isinstance(factory.for_default_break(60), LunchBreakStrategy)
    assert isinstance(factory.for_default_break(90), LunchAndAfternoonBreakStrategy)
    assert isinstance(factory.for_default_break(None), NoBreakStrategy)


def test_afternoon_slot_for_thirty_minutes():
    day = date(2024, 4, 1)
    breaks = AfternoonBreakStrategy().synthesize(
        work_date=day, clock_in=at_jst(day, time(9)), clock_out=at_jst(day, time(18))
    )
    assert [(b.start.time(), b.end.time()) for b in breaks] == [(time(15), time(15, 30))]


def test_slot_entirely_before_clock_in_is_skipped():
    day = date(2024, 4, 1)
    breaks = LunchAndAfternoonBreakStrategy().synthesize(
        work_date=day, clock_in=at_jst(day, time(13, 30)), clock_out=at_jst(day, time(22))
    )
    assert [(b.start.time(), b.end.time()) for b in breaks] == [(time(15), time(15, 30))]
