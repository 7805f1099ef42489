"""
Интеграционные тесты для обработчиков административных команд.
"""

from datetime import datetime, timezone

import pytest

from attendance_bot.core.decorators import NOT_ADMIN_MESSAGE
from attendance_bot.core.exceptions import BackendUnavailable
from attendance_bot.handlers.admin import (
    BACKEND_ERROR_MESSAGE,
    latest_record,
    list_users,
    set_roles,
)
from attendance_bot.models.attendance import AttendanceRecord
from attendance_bot.models.user import Account

# --- Тестовые данные ---

SAMPLE_ACCOUNTS = [
    Account(userId="u1", email="dana@team.org", displayName="Dana", passwordHash="x"),
    Account(
        userId="u2",
        email="avi@team.org",
        displayName="",
        passwordHash="x",
        disabled=True,
    ),
]

# --- Тесты ---


@pytest.mark.asyncio
async def test_list_users_success(mock_update_context):
    """
    Тест: Команда /listusers выводит учетные записи с их командами.
    """
    # Arrange
    mock_update, mock_context = mock_update_context
    bot_data = mock_context.application.bot_data
    bot_data["auth_gateway"].list_accounts.return_value = SAMPLE_ACCOUNTS
    bot_data["role_store"].get_all.return_value = {"u1": {"Medical"}}

    # Act
    await list_users(mock_update, mock_context)

    # Assert
    text = mock_update.effective_message.reply_text.call_args.kwargs["text"]
    assert "Dana" in text
    assert "avi@team.org</b> 🚫" in text
    assert "<i>Medical</i>" in text
    assert "<code>u2</code>" in text


@pytest.mark.asyncio
async def test_list_users_not_admin(mock_update_context):
    """
    Тест: Команда /listusers недоступна обычному пользователю.
    """
    mock_update, mock_context = mock_update_context
    mock_update.effective_user.id = 200

    await list_users(mock_update, mock_context)

    mock_context.application.bot_data["auth_gateway"].list_accounts.assert_not_called()
    mock_update.effective_message.reply_text.assert_awaited_once_with(
        NOT_ADMIN_MESSAGE
    )


@pytest.mark.asyncio
async def test_list_users_backend_failure(mock_update_context):
    mock_update, mock_context = mock_update_context
    auth = mock_context.application.bot_data["auth_gateway"]
    auth.list_accounts.side_effect = BackendUnavailable("quota")

    await list_users(mock_update, mock_context)

    mock_update.effective_message.reply_text.assert_awaited_once_with(
        BACKEND_ERROR_MESSAGE
    )


@pytest.mark.asyncio
async def test_set_roles_replaces_teams(mock_update_context, mocker):
    mock_update, mock_context = mock_update_context
    role_store = mock_context.application.bot_data["role_store"]
    role_store.set_roles = mocker.AsyncMock()
    mock_context.args = ["u2", "Medical,", "Firefighting"]

    await set_roles(mock_update, mock_context)

    role_store.set_roles.assert_awaited_once_with(
        "u2", {"Medical", "Firefighting"}, replace=True
    )
    text = mock_update.effective_message.reply_text.call_args.args[0]
    assert "Firefighting, Medical" in text


@pytest.mark.asyncio
async def test_set_roles_unknown_team(mock_update_context, mocker):
    mock_update, mock_context = mock_update_context
    role_store = mock_context.application.bot_data["role_store"]
    role_store.set_roles = mocker.AsyncMock()
    mock_context.args = ["u2", "Police"]

    await set_roles(mock_update, mock_context)

    role_store.set_roles.assert_not_awaited()
    text = mock_update.effective_message.reply_text.call_args.args[0]
    assert "צוות לא מוכר" in text


@pytest.mark.asyncio
async def test_set_roles_missing_arguments(mock_update_context):
    mock_update, mock_context = mock_update_context
    mock_context.args = ["u2"]

    await set_roles(mock_update, mock_context)

    text = mock_update.effective_message.reply_text.call_args.args[0]
    assert "/setroles" in text


@pytest.mark.asyncio
async def test_latest_record(mock_update_context):
    mock_update, mock_context = mock_update_context
    store = mock_context.application.bot_data["attendance_store"]
    store.get_most_recent.return_value = AttendanceRecord(
        weekStart="17/10/2026",
        weekEnd="24/10/2026",
        timestamp=datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc),
        userId="u1",
        username="Dana",
        data={"ראשון בוקר": "נוכח"},
    )

    await latest_record(mock_update, mock_context)

    text = mock_update.effective_message.reply_text.call_args.args[0]
    assert "Dana" in text
    assert "19/10/2026 08:30 UTC" in text
    assert "17/10/2026 - 24/10/2026" in text


@pytest.mark.asyncio
async def test_latest_record_empty(mock_update_context):
    mock_update, mock_context = mock_update_context
    store = mock_context.application.bot_data["attendance_store"]
    store.get_most_recent.return_value = None

    await latest_record(mock_update, mock_context)

    mock_update.effective_message.reply_text.assert_awaited_once_with(
        "אין עדיין נתוני נוכחות."
    )
