from datetime import datetime, timedelta

from models.schedules import Schedule
from services.schedule_service import add_months, is_due, next_due


def make_schedule(frequency="daily", scheduled_time="08:00", last_run_at=None):
    return Schedule(email="ops@example.com", frequency=frequency, scheduled_time=scheduled_time,
                    is_enabled=True, last_run_at=last_run_at)


def test_never_run_schedule_is_due_at_its_time():
    now = datetime(2024, 5, 10, 8, 0)
    assert is_due(make_schedule(), now) is True


def test_not_due_when_minute_differs():
    now = datetime(2024, 5, 10, 8, 1)
    assert is_due(make_schedule(), now) is False


def test_daily_due_after_25_hours():
    now = datetime(2024, 5, 10, 8, 0)
    schedule = make_schedule(last_run_at=now - timedelta(hours=25))
    assert is_due(schedule, now) is True


def test_daily_not_due_after_10_hours():
    now = datetime(2024, 5, 10, 8, 0)
    schedule = make_schedule(last_run_at=now - timedelta(hours=10))
    assert is_due(schedule, now) is False


def test_weekly_needs_seven_days():
    now = datetime(2024, 5, 10, 8, 0)
    assert is_due(make_schedule("weekly", last_run_at=now - timedelta(days=6)), now) is False
    assert is_due(make_schedule("weekly", last_run_at=now - timedelta(days=7)), now) is True


def test_bi_weekly_interval():
    last = datetime(2024, 5, 1, 8, 0)
    assert next_due("bi-weekly", last) == datetime(2024, 5, 15, 8, 0)


def test_monthly_uses_calendar_months():
    assert next_due("monthly", datetime(2024, 1, 15, 8, 0)) == datetime(2024, 2, 15, 8, 0)
    assert next_due("quarterly", datetime(2024, 1, 15, 8, 0)) == datetime(2024, 4, 15, 8, 0)


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2023, 11, 30), 3) == datetime(2024, 2, 29)
    assert add_months(datetime(2024, 12, 5), 1) == datetime(2025, 1, 5)
