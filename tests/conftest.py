"""
Общие фикстуры тестов.
"""

import os

# Settings() создается при импорте attendance_bot.core.config
os.environ.setdefault("BOT_TOKEN", "test-token")
os.environ.setdefault("GOOGLE_SHEET_ID", "test-sheet-id")

import pytest  # noqa: E402

from attendance_bot.models.user import UserIdentity  # noqa: E402


class InMemorySheets:
    """
    Замена GoogleAPIService: листы хранятся как словари "ключ -> строка".
    """

    def __init__(self):
        self.worksheets: dict[str, dict[str, dict]] = {}
        self.upsert_calls: list[tuple[str, str]] = []
        self.headers: dict[str, list[str]] = {}

    def register_worksheet(self, worksheet_name: str, headers: list[str]) -> None:
        self.headers[worksheet_name] = list(headers)

    def get_records(self, worksheet_name: str) -> list[dict]:
        return [dict(row) for row in self.worksheets.get(worksheet_name, {}).values()]

    def find_record(self, worksheet_name: str, key: str) -> dict | None:
        row = self.worksheets.get(worksheet_name, {}).get(key)
        return dict(row) if row is not None else None

    async def upsert_row(self, worksheet_name: str, key: str, build_row) -> dict:
        self.upsert_calls.append((worksheet_name, key))
        sheet = self.worksheets.setdefault(worksheet_name, {})
        existing = sheet.get(key)
        row = build_row(dict(existing) if existing is not None else None)
        sheet[key] = dict(row)
        return row


@pytest.fixture
def sheets() -> InMemorySheets:
    return InMemorySheets()


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(user_id="u1", email="dana@team.org", display_name="Dana")
