import logging
from datetime import datetime, time, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from daily_wisdom.models.article import DailyContentReport
from daily_wisdom.services.scheduler import DailyScheduler


def fixed_clock(*args):
    moment = datetime(*args, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def fake_coordinator():
    coordinator = Mock()
    coordinator.ensure_article_for_date = AsyncMock(side_effect=lambda day: DailyContentReport(date=day))
    return coordinator


def test_next_run_is_next_midnight(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 1, 10, 15, 30))
    assert scheduler.calculate_next_run_time() == datetime(2026, 1, 11, 0, 0, tzinfo=timezone.utc)


def test_exactly_at_run_time_schedules_tomorrow(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 1, 10, 0, 0))
    assert scheduler.calculate_next_run_time() == datetime(2026, 1, 11, 0, 0, tzinfo=timezone.utc)


def test_later_run_time_same_day(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, run_at=time(6, 0), clock=fixed_clock(2026, 12, 31, 5, 59))
    assert scheduler.calculate_next_run_time() == datetime(2026, 12, 31, 6, 0, tzinfo=timezone.utc)


def test_next_run_crosses_year_boundary(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 12, 31, 23, 59))
    assert scheduler.calculate_next_run_time() == datetime(2027, 1, 1, 0, 0, tzinfo=timezone.utc)


async def test_run_once_uses_the_scheduled_utc_day(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 1, 10, 23, 59))

    await scheduler.run_once(datetime(2026, 1, 11, 0, 0, tzinfo=timezone.utc))

    fake_coordinator.ensure_article_for_date.assert_awaited_once_with("2026-01-11")


async def test_run_once_logs_and_swallows_errors(fake_coordinator, caplog):
    fake_coordinator.ensure_article_for_date = AsyncMock(side_effect=RuntimeError("gemini down"))
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 1, 10, 0, 0))

    with caplog.at_level(logging.ERROR):
        await scheduler.run_once()

    assert "Error during daily generation for 2026-01-10" in caplog.text


async def test_stop_before_start_exits_without_running(fake_coordinator):
    scheduler = DailyScheduler(fake_coordinator, clock=fixed_clock(2026, 1, 10, 12, 0))
    scheduler.stop()

    await scheduler.run_forever()

    assert scheduler.running is False
    fake_coordinator.ensure_article_for_date.assert_not_awaited()


async def test_run_forever_runs_when_due_then_stops(fake_coordinator):
    before = datetime(2026, 1, 10, 23, 59, 59, tzinfo=timezone.utc)
    after = datetime(2026, 1, 11, 0, 0, 1, tzinfo=timezone.utc)
    readings = iter([before])
    scheduler = DailyScheduler(fake_coordinator, clock=lambda: next(readings, after))

    async def _run(day):
        scheduler.stop()
        return DailyContentReport(date=day)

    fake_coordinator.ensure_article_for_date = AsyncMock(side_effect=_run)

    await scheduler.run_forever()

    fake_coordinator.ensure_article_for_date.assert_awaited_once_with("2026-01-11")
    assert scheduler.running is False
