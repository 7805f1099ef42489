"""
Тесты расчета недели.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from attendance_bot.services.week import compute_current_week, format_date, local_now

SATURDAY = 5  # datetime.weekday()


def test_tuesday_belongs_to_previous_saturday():
    """Тест: вторник: начало в предыдущую субботу, конец через 7 дней."""
    week = compute_current_week(datetime(2026, 10, 20, 14, 30))

    assert week.start_label == "17/10/2026"
    assert week.end_label == "24/10/2026"
    assert week.start_date == datetime(2026, 10, 17, 0, 0, 0)
    assert week.end_date == datetime(2026, 10, 24, 23, 59, 59, 999000)


@pytest.mark.parametrize(
    "now",
    [
        datetime(2026, 10, 17, 0, 0),  # суббота, полночь
        datetime(2026, 10, 17, 23, 59),  # суббота, вечер
        datetime(2026, 10, 18, 9, 0),  # воскресенье
        datetime(2026, 10, 23, 18, 0),  # пятница
    ],
)
def test_whole_week_maps_to_same_window(now):
    week = compute_current_week(now)
    assert week.start_label == "17/10/2026"
    assert week.end_label == "24/10/2026"


def test_window_spans_eight_calendar_days_for_every_day():
    """Тест: начало всегда суббота, конец через 7 дней плюс почти сутки."""
    now = datetime(2025, 12, 1, 12, 0)
    for offset in range(60):
        week = compute_current_week(now + timedelta(days=offset))
        assert week.start_date.weekday() == SATURDAY
        assert week.start_date.time() == datetime.min.time()
        assert week.end_date - week.start_date == timedelta(
            days=8, microseconds=-1000
        )
        assert week.start_date <= now + timedelta(days=offset) < week.start_date + timedelta(days=7)


def test_labels_are_zero_padded_and_cross_year():
    week = compute_current_week(datetime(2026, 1, 1, 8, 0))
    assert week.start_label == "27/12/2025"
    assert week.end_label == "03/01/2026"
    assert format_date(datetime(2026, 3, 4)) == "04/03/2026"


def test_timezone_aware_now_keeps_local_midnight():
    tz = pytz.timezone("Asia/Jerusalem")
    now = tz.localize(datetime(2026, 10, 20, 1, 30))

    week = compute_current_week(now)

    assert week.start_date.tzinfo is not None
    assert week.start_date.strftime("%Y-%m-%d %H:%M") == "2026-10-17 00:00"
    assert week.end_date.strftime("%Y-%m-%d %H:%M:%S") == "2026-10-24 23:59:59"


def test_local_now_is_timezone_aware():
    now = local_now("Asia/Jerusalem")
    assert now.tzinfo is not None
    assert compute_current_week(now).start_date.weekday() == SATURDAY
