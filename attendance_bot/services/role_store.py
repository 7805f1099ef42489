"""
Хранилище команд пользователей (лист userRoles).
"""

import logging
from datetime import datetime, timezone

from attendance_bot.core.exceptions import BackendUnavailable
from attendance_bot.models.user import ROLES_HEADERS, UserRoles
from attendance_bot.services.google_api import GoogleAPIService

logger = logging.getLogger(__name__)

ROLES_WORKSHEET = "userRoles"


def _parse_row(row: dict) -> UserRoles | None:
    try:
        return UserRoles.model_validate(row)
    except ValueError as e:
        logger.warning(f"Skipping malformed roles row {row}: {e}")
        return None


class UserRoleStore:
    def __init__(self, google_api: GoogleAPIService):
        self.google_api = google_api
        google_api.register_worksheet(ROLES_WORKSHEET, ROLES_HEADERS)

    async def set_roles(
        self, user_id: str, roles: set[str], replace: bool = False
    ) -> UserRoles:
        """
        Сохраняет команды пользователя.

        По умолчанию новые команды объединяются с уже сохраненными;
        replace=True полностью заменяет список.
        """
        saved: UserRoles | None = None

        def build_row(existing_row: dict | None) -> dict:
            nonlocal saved
            current = set()
            if existing_row and not replace:
                existing = _parse_row(existing_row)
                current = existing.roles if existing else set()
            saved = UserRoles(
                user_id=user_id,
                roles=current | set(roles),
                timestamp=datetime.now(timezone.utc),
            )
            return saved.to_row()

        await self.google_api.upsert_row(ROLES_WORKSHEET, user_id, build_row)
        logger.info(f"Roles for user {user_id} set to {sorted(saved.roles)}.")
        return saved

    def get_roles(self, user_id: str) -> set[str]:
        """Команды пользователя; при ошибке чтения пустое множество."""
        try:
            row = self.google_api.find_record(ROLES_WORKSHEET, user_id)
        except BackendUnavailable as e:
            logger.error(f"Failed to fetch roles for user {user_id}: {e}")
            return set()
        entry = _parse_row(row) if row is not None else None
        return entry.roles if entry else set()

    def get_all(self) -> dict[str, set[str]]:
        """Команды всех пользователей, ключ userId."""
        try:
            rows = self.google_api.get_records(ROLES_WORKSHEET)
        except BackendUnavailable as e:
            logger.error(f"Failed to fetch roles of all users: {e}")
            return {}
        entries = [entry for entry in map(_parse_row, rows) if entry is not None]
        return {entry.user_id: entry.roles for entry in entries}
