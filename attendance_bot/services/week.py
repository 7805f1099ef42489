"""
Расчет текущей недели (от субботы до субботы).
"""

from datetime import datetime, time, timedelta

import pytz

from attendance_bot.models.attendance import WeekWindow

DATE_FORMAT = "%d/%m/%Y"


def format_date(value: datetime) -> str:
    """Форматирует дату как DD/MM/YYYY с ведущими нулями."""
    return value.strftime(DATE_FORMAT)


def compute_current_week(now: datetime) -> WeekWindow:
    """
    Возвращает окно недели, в которую попадает now.

    Начало окна: ближайшая прошедшая суббота (или сегодня, если сегодня суббота)
    в 00:00:00.000. Конец через 7 дней в 23:59:59.999, так что обе субботы
    входят в окно. Часовой пояс now сохраняется.
    """
    # Python: Monday=0..Sunday=6, переводим в Sunday=0..Saturday=6
    day_of_week = (now.weekday() + 1) % 7
    days_back = 0 if day_of_week == 6 else day_of_week + 1

    start_day = (now - timedelta(days=days_back)).date()
    end_day = start_day + timedelta(days=7)

    start_date = datetime.combine(start_day, time.min)
    end_date = datetime.combine(end_day, time(23, 59, 59, 999000))
    if now.tzinfo is not None:
        start_date = _localize(start_date, now.tzinfo)
        end_date = _localize(end_date, now.tzinfo)

    return WeekWindow(
        start_date=start_date,
        end_date=end_date,
        start_label=format_date(start_date),
        end_label=format_date(end_date),
    )


def _localize(value: datetime, tz) -> datetime:
    # Для pytz-зон replace(tzinfo=...) дает неверное смещение (LMT)
    if hasattr(tz, "localize"):
        return tz.normalize(tz.localize(value))
    return value.replace(tzinfo=tz)


def local_now(timezone_name: str) -> datetime:
    """Текущее время в часовом поясе отображения."""
    return datetime.now(pytz.timezone(timezone_name))
