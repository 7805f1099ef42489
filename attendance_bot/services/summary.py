"""
Агрегация отметок в сводку по сменам.

Сводка строится из полного набора отметок: для каждой смены считается
количество каждого статуса и собирается список имен. Видимость записей
ограничена командами того, кто смотрит сводку.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from attendance_bot.models.attendance import SHIFTS, AttendanceRecord, Status

logger = logging.getLogger(__name__)

ANONYMOUS_USERNAME = "משתמש אנונימי"


@dataclass
class ShiftSummary:
    """
    Результат агрегации.

    Атрибуты:
        counts: смена -> статус -> количество отметок.
        names: смена -> статус -> имена в порядке первого появления.
        included_records: сколько записей прошло фильтр видимости.
    """

    counts: dict[str, dict[Status, int]] = field(default_factory=dict)
    names: dict[str, dict[Status, list[str]]] = field(default_factory=dict)
    included_records: int = 0

    @classmethod
    def empty(cls) -> "ShiftSummary":
        return cls(
            counts={shift.key: {status: 0 for status in Status} for shift in SHIFTS},
            names={shift.key: {status: [] for status in Status} for shift in SHIFTS},
        )


def is_visible(
    record: AttendanceRecord, viewer_roles: set[str], team_filter: str | None
) -> bool:
    # Пользователь без команд не видит ничего
    if not viewer_roles or not (record.user_roles & viewer_roles):
        return False
    if team_filter is not None and team_filter not in record.user_roles:
        return False
    return True


class SummaryAggregator:
    def compute(
        self,
        records: Iterable[AttendanceRecord],
        viewer_roles: set[str],
        team_filter: str | None = None,
    ) -> ShiftSummary:
        summary = ShiftSummary.empty()

        for record in records:
            if not is_visible(record, viewer_roles, team_filter):
                continue
            summary.included_records += 1
            username = record.username or ANONYMOUS_USERNAME

            for shift_key, raw_status in record.data.items():
                if shift_key not in summary.counts:
                    continue
                try:
                    status = Status(raw_status)
                except ValueError:
                    continue

                summary.counts[shift_key][status] += 1
                names = summary.names[shift_key][status]
                if username not in names:
                    names.append(username)

        logger.debug(
            f"Summary computed from {summary.included_records} visible records "
            f"(filter={team_filter!r})."
        )
        return summary
