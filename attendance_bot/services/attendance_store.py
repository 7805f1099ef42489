"""
Хранилище недельных отметок (лист attendanceRecords).
"""

import logging
from datetime import datetime, timezone

from attendance_bot.core.exceptions import (
    BackendUnavailable,
    StoreUnavailable,
    Unauthenticated,
)
from attendance_bot.models.attendance import ATTENDANCE_HEADERS, AttendanceRecord
from attendance_bot.services.google_api import GoogleAPIService

logger = logging.getLogger(__name__)

ATTENDANCE_WORKSHEET = "attendanceRecords"


def _parse_row(row: dict) -> AttendanceRecord | None:
    try:
        return AttendanceRecord.from_row(row)
    except ValueError as e:
        # Пустые или испорченные строки в таблице не должны ломать бота
        logger.warning(f"Skipping malformed attendance row {row}: {e}")
        return None


def merge_records(
    existing: AttendanceRecord | None,
    incoming: AttendanceRecord,
    merge_existing: bool = True,
) -> AttendanceRecord:
    """
    Сливает новую отметку с сохраненной.

    Поля, которые не были явно заданы в incoming, берутся из existing,
    а карта data сливается по ключам смен (новые значения побеждают).
    """
    if existing is None or not merge_existing:
        return incoming

    merged = existing.model_dump()
    for field in incoming.model_fields_set:
        if field == "data":
            merged["data"] = {**existing.data, **incoming.data}
        else:
            merged[field] = getattr(incoming, field)
    return AttendanceRecord.model_validate(merged)


class AttendanceRecordStore:
    """
    Доступ к отметкам: запись по ключу, точечное чтение и полный просмотр.
    """

    def __init__(self, google_api: GoogleAPIService):
        self.google_api = google_api
        google_api.register_worksheet(ATTENDANCE_WORKSHEET, ATTENDANCE_HEADERS)

    async def upsert(
        self, key: str, record: AttendanceRecord, merge_existing: bool = True
    ) -> AttendanceRecord:
        """Создает или сливает отметку с ключом key. Время записи ставит хранилище."""
        if not record.user_id:
            raise Unauthenticated("Attendance record has no user id")

        saved: AttendanceRecord | None = None

        def build_row(existing_row: dict | None) -> dict:
            nonlocal saved
            existing = _parse_row(existing_row) if existing_row else None
            saved = merge_records(existing, record, merge_existing)
            saved.timestamp = datetime.now(timezone.utc)
            return saved.to_row()

        try:
            await self.google_api.upsert_row(ATTENDANCE_WORKSHEET, key, build_row)
        except BackendUnavailable as e:
            logger.error(f"Failed to upsert attendance record '{key}': {e}")
            raise StoreUnavailable(str(e)) from e

        logger.info(f"Attendance record '{key}' saved for user {record.user_id}.")
        return saved

    def get_by_key(self, key: str) -> AttendanceRecord | None:
        row = self.google_api.find_record(ATTENDANCE_WORKSHEET, key)
        if row is None:
            logger.debug(f"Attendance record '{key}' not found.")
            return None
        return _parse_row(row)

    def get_all(self) -> list[AttendanceRecord]:
        rows = self.google_api.get_records(ATTENDANCE_WORKSHEET)
        return [record for record in map(_parse_row, rows) if record is not None]

    def get_most_recent(self) -> AttendanceRecord | None:
        """Последняя по времени записи отметка любого пользователя."""
        stamped = [record for record in self.get_all() if record.timestamp]
        if not stamped:
            return None
        return max(stamped, key=lambda record: record.timestamp)
