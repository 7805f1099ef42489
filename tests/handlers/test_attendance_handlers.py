"""
Тесты обработчиков формы отметки.
"""

import pytest

from attendance_bot.core.exceptions import StoreUnavailable
from attendance_bot.handlers.attendance import (
    FORM_KEY,
    LOADED_MESSAGE,
    SAVE_ERROR_PREFIX,
    SAVED_MESSAGE,
    build_form_keyboard,
    form_callback,
    show_form,
)
from attendance_bot.models.attendance import SHIFTS, Status


@pytest.fixture
def send_transient(mocker):
    return mocker.patch(
        "attendance_bot.handlers.attendance.NotificationService.send_transient",
        new_callable=mocker.AsyncMock,
    )


def selected_labels(markup) -> list[str]:
    """Подписи выбранных кнопок (по одной на смену)."""
    return [
        button.text
        for row in markup.inline_keyboard
        for button in row
        if button.text.startswith("✅")
    ]


def test_form_keyboard_defaults_to_present():
    markup = build_form_keyboard({})
    assert selected_labels(markup) == [f"✅ {Status.PRESENT.value}"] * len(SHIFTS)
    assert markup.inline_keyboard[-1][0].callback_data == "att:save"
    assert markup.inline_keyboard[1][3].callback_data == "att:set:0:3"


@pytest.mark.asyncio
async def test_show_form_prefills_current_week(mock_update_context, send_transient):
    mock_update, mock_context = mock_update_context
    service = mock_context.application.bot_data["attendance_service"]
    service.load_current.return_value = {"ראשון בוקר": Status.ABSENT}

    await show_form(mock_update, mock_context)

    form = mock_context.user_data[FORM_KEY]
    assert form["ראשון בוקר"] == Status.ABSENT
    assert form["שני בוקר"] == Status.PRESENT
    kwargs = mock_update.effective_message.reply_text.call_args.kwargs
    assert kwargs["text"] == "תאריכי שבוע: 17/10/2026 - 24/10/2026"
    assert send_transient.await_args.kwargs["text"] == LOADED_MESSAGE


@pytest.mark.asyncio
async def test_set_status_updates_form(callback_update):
    mock_update, mock_context = callback_update
    mock_context.user_data[FORM_KEY] = {shift.key: Status.PRESENT for shift in SHIFTS}
    mock_update.callback_query.data = "att:set:2:1"

    await form_callback(mock_update, mock_context)

    assert mock_context.user_data[FORM_KEY][SHIFTS[2].key] == Status.ABSENT
    mock_update.callback_query.edit_message_reply_markup.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_submits_form(callback_update, send_transient, identity):
    mock_update, mock_context = callback_update
    form = {shift.key: Status.PARTIAL for shift in SHIFTS}
    mock_context.user_data[FORM_KEY] = form
    mock_update.callback_query.data = "att:save"
    service = mock_context.application.bot_data["attendance_service"]

    await form_callback(mock_update, mock_context)

    service.submit.assert_awaited_once_with(identity, form)
    assert send_transient.await_args.kwargs["text"] == SAVED_MESSAGE


@pytest.mark.asyncio
async def test_save_backend_failure_shows_transient_error(callback_update, send_transient):
    mock_update, mock_context = callback_update
    mock_context.user_data[FORM_KEY] = {}
    mock_update.callback_query.data = "att:save"
    service = mock_context.application.bot_data["attendance_service"]
    service.submit.side_effect = StoreUnavailable("sheet offline")

    await form_callback(mock_update, mock_context)

    text = send_transient.await_args.kwargs["text"]
    assert text == SAVE_ERROR_PREFIX + "sheet offline"
    assert send_transient.await_args.kwargs["ttl_seconds"] == 3
