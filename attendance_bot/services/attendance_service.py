"""
Сценарии работы с отметками: предзаполнение формы, сохранение и сводка.
"""

import logging
from datetime import datetime
from typing import Callable

from attendance_bot.core.exceptions import Unauthenticated
from attendance_bot.models.attendance import (
    SHIFT_KEYS,
    AttendanceRecord,
    Status,
    WeekWindow,
    record_key,
)
from attendance_bot.models.user import UserIdentity
from attendance_bot.services.attendance_store import AttendanceRecordStore
from attendance_bot.services.role_store import UserRoleStore
from attendance_bot.services.summary import ShiftSummary, SummaryAggregator
from attendance_bot.services.week import compute_current_week

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        records: AttendanceRecordStore,
        roles: UserRoleStore,
        aggregator: SummaryAggregator,
        now: Callable[[], datetime],
    ):
        self.records = records
        self.roles = roles
        self.aggregator = aggregator
        self._now = now

    def current_week(self) -> WeekWindow:
        return compute_current_week(self._now())

    def current_key(self, identity: UserIdentity) -> str:
        return record_key(self.current_week().start_label, identity.user_id)

    def load_current(self, identity: UserIdentity) -> dict[str, Status]:
        """Статусы текущей недели для предзаполнения формы (пусто, если отметки нет)."""
        record = self.records.get_by_key(self.current_key(identity))
        if record is None:
            return {}
        selections = {}
        for shift_key, raw_status in record.data.items():
            if shift_key not in SHIFT_KEYS:
                continue
            try:
                selections[shift_key] = Status(raw_status)
            except ValueError:
                logger.warning(f"Ignoring unknown status {raw_status!r} for {shift_key}.")
        return selections

    async def submit(
        self, identity: UserIdentity | None, selections: dict[str, Status]
    ) -> AttendanceRecord:
        """Сохраняет отметку пользователя за текущую неделю."""
        if identity is None:
            raise Unauthenticated("Sign in before submitting attendance")

        week = self.current_week()
        values = dict(
            week_start=week.start_label,
            week_end=week.end_label,
            user_id=identity.user_id,
            username=identity.username,
            data={shift: Status(status).value for shift, status in selections.items()},
        )
        roles = self.roles.get_roles(identity.user_id)
        if roles:
            values["user_roles"] = roles
        else:
            # Пустой ответ может означать сбой чтения: сохраненные команды не трогаем
            logger.warning(f"No teams read for {identity.user_id}; keeping stored ones.")
        record = AttendanceRecord(**values)
        key = record_key(week.start_label, identity.user_id)
        logger.info(f"Submitting {len(selections)} shift statuses under '{key}'.")
        return await self.records.upsert(key, record)

    def summary(
        self, identity: UserIdentity, team_filter: str | None = None
    ) -> ShiftSummary:
        """Сводка по всем отметкам, видимым пользователю."""
        records = self.records.get_all()
        viewer_roles = self.roles.get_roles(identity.user_id)
        if not viewer_roles:
            logger.info(f"User {identity.user_id} has no teams; summary is empty.")
        return self.aggregator.compute(records, viewer_roles, team_filter)

    def viewer_teams(self, identity: UserIdentity) -> set[str]:
        return self.roles.get_roles(identity.user_id)
