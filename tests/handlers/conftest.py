"""
Фикстуры для тестов обработчиков.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from attendance_bot.models.attendance import WeekWindow
from attendance_bot.services.attendance_service import AttendanceService
from attendance_bot.services.attendance_store import AttendanceRecordStore
from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.role_store import UserRoleStore
from attendance_bot.services.session_guard import SessionGuard
from attendance_bot.services.week import compute_current_week

ADMIN_ID = 100


@pytest.fixture
def week() -> WeekWindow:
    return compute_current_week(datetime(2026, 10, 20, 10, 0))


@pytest.fixture
def mock_update_context(mocker, identity, week) -> tuple[MagicMock, MagicMock]:
    """Моки Update и Context с сервисами в bot_data и вошедшим пользователем."""
    mock_update = mocker.MagicMock()
    mock_context = mocker.MagicMock()

    mock_update.effective_user.id = ADMIN_ID
    mock_update.effective_chat.id = 555
    mock_update.effective_chat.send_message = mocker.AsyncMock()
    mock_update.effective_message.reply_text = mocker.AsyncMock()
    mock_update.effective_message.delete = mocker.AsyncMock()
    # Явно симулируем обычное сообщение
    mock_update.callback_query = None

    settings = mocker.MagicMock()
    settings.admin_ids = [ADMIN_ID]
    settings.teams = ["Medical", "Firefighting"]
    settings.message_ttl_seconds = 3

    auth = mocker.MagicMock(spec=AuthGateway)
    auth.current_user.return_value = identity
    service = mocker.MagicMock(spec=AttendanceService)
    service.current_week.return_value = week
    service.submit = mocker.AsyncMock()

    mock_context.application.bot_data = {
        "settings": settings,
        "auth_gateway": auth,
        "attendance_service": service,
        "attendance_store": mocker.MagicMock(spec=AttendanceRecordStore),
        "role_store": mocker.MagicMock(spec=UserRoleStore),
        "session_guard": mocker.MagicMock(spec=SessionGuard),
    }
    mock_context.application.bot_data["session_guard"].timeout_seconds = 3 * 3600
    mock_context.user_data = {}
    mock_context.args = []
    mock_context.bot.send_message = mocker.AsyncMock()

    return mock_update, mock_context


@pytest.fixture
def callback_update(mocker, mock_update_context):
    """Update с нажатием на inline-кнопку."""
    mock_update, mock_context = mock_update_context
    query = mocker.MagicMock()
    query.answer = mocker.AsyncMock()
    query.edit_message_text = mocker.AsyncMock()
    query.edit_message_reply_markup = mocker.AsyncMock()
    mock_update.callback_query = query
    return mock_update, mock_context
