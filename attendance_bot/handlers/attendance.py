"""
Обработчики формы недельной отметки.

Форма представлена inline-клавиатурой: для каждой смены строка с подписью и строка
из четырех взаимоисключающих статусов. Выбранный статус помечен галочкой.
"""

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from attendance_bot.core.decorators import require_auth
from attendance_bot.core.exceptions import BackendUnavailable, Unauthenticated
from attendance_bot.models.attendance import DEFAULT_STATUS, SHIFTS, Status
from attendance_bot.services.attendance_service import AttendanceService
from attendance_bot.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

STATUSES = list(Status)
FORM_KEY = "attendance_form"

SAVED_MESSAGE = "נתונים נשמרו בהצלחה!"
LOADED_MESSAGE = "נתונים קודמים נטענו בהצלחה!"
SAVE_ERROR_PREFIX = "שגיאה בשמירת נתונים: "
LOAD_ERROR_PREFIX = "שגיאה בטעינת נתונים קודמים: "


def build_form_keyboard(selections: dict[str, Status]) -> InlineKeyboardMarkup:
    keyboard = []
    for shift_index, shift in enumerate(SHIFTS):
        keyboard.append(
            [InlineKeyboardButton(f"📅 {shift.label}", callback_data="att:noop")]
        )
        selected = selections.get(shift.key, DEFAULT_STATUS)
        keyboard.append(
            [
                InlineKeyboardButton(
                    f"✅ {status.value}" if status == selected else status.value,
                    callback_data=f"att:set:{shift_index}:{status_index}",
                )
                for status_index, status in enumerate(STATUSES)
            ]
        )
    keyboard.append([InlineKeyboardButton("💾 שמירה", callback_data="att:save")])
    return InlineKeyboardMarkup(keyboard)


def _form_header(service: AttendanceService) -> str:
    week = service.current_week()
    return f"תאריכי שבוע: {week.start_label} - {week.end_label}"


async def _notify(
    update: Update, context: ContextTypes.DEFAULT_TYPE, text: str
) -> None:
    await NotificationService.send_transient(
        bot=context.bot,
        job_queue=context.job_queue,
        chat_id=update.effective_chat.id,
        text=text,
        ttl_seconds=context.application.bot_data["settings"].message_ttl_seconds,
    )


def _load_form(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> tuple[dict[str, Status], str | None]:
    """Форма со статусами текущей недели и сообщение для пользователя."""
    service: AttendanceService = context.application.bot_data["attendance_service"]
    identity = context.user_data["identity"]
    form = {shift.key: DEFAULT_STATUS for shift in SHIFTS}
    try:
        loaded = service.load_current(identity)
    except BackendUnavailable as e:
        logger.error(f"Failed to load attendance for {identity.user_id}: {e}")
        return form, LOAD_ERROR_PREFIX + str(e)
    form.update(loaded)
    return form, LOADED_MESSAGE if loaded else None


@require_auth
async def show_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Обработчик команды /attendance."""
    service: AttendanceService = context.application.bot_data["attendance_service"]
    form, notice = _load_form(update, context)
    context.user_data[FORM_KEY] = form

    await update.effective_message.reply_text(
        text=_form_header(service),
        reply_markup=build_form_keyboard(form),
        parse_mode=ParseMode.HTML,
    )
    if notice:
        await _notify(update, context, notice)


@require_auth
async def form_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Обрабатывает нажатия на кнопки формы."""
    query = update.callback_query
    parts = query.data.split(":")
    action = parts[1]

    if action == "noop":
        await query.answer()
        return

    form = context.user_data.get(FORM_KEY)
    if form is None:
        # Бот перезапускался: состояние формы потеряно, загружаем заново
        form, _ = _load_form(update, context)
        context.user_data[FORM_KEY] = form

    if action == "set":
        shift = SHIFTS[int(parts[2])]
        status = STATUSES[int(parts[3])]
        await query.answer()
        if form.get(shift.key) == status:
            return
        form[shift.key] = status
        await query.edit_message_reply_markup(reply_markup=build_form_keyboard(form))
        return

    if action == "save":
        await query.answer()
        service: AttendanceService = context.application.bot_data[
            "attendance_service"
        ]
        try:
            await service.submit(context.user_data["identity"], form)
        except Unauthenticated:
            await _notify(update, context, "🔒 עליך להתחבר תחילה: /login")
            return
        except BackendUnavailable as e:
            logger.error(f"Failed to save attendance: {e}", exc_info=True)
            await _notify(update, context, SAVE_ERROR_PREFIX + str(e))
            return
        await _notify(update, context, SAVED_MESSAGE)
