"""
Обработчики сводки по сменам: таблица количеств и таблица имен.
"""

import html
import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import MessageLimit, ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from attendance_bot.core.decorators import require_auth
from attendance_bot.core.exceptions import BackendUnavailable
from attendance_bot.models.attendance import SHIFTS, Status, WeekWindow
from attendance_bot.services.attendance_service import AttendanceService
from attendance_bot.services.notification_service import NotificationService
from attendance_bot.services.summary import ShiftSummary

logger = logging.getLogger(__name__)

ALL_TEAMS_LABEL = "הכל"
SUMMARY_ERROR_PREFIX = "שגיאה בטעינת נתוני סיכום: "
NAMES_TITLE = "<b>לפי שמות</b>\n"
MESSAGE_LIMIT = MessageLimit.MAX_TEXT_LENGTH


def render_counts(summary: ShiftSummary) -> str:
    """Таблица "לפי כמות": смена и количество по каждому статусу."""
    header = " | ".join(["משמרת"] + [status.value for status in Status])
    lines = [header]
    for shift in SHIFTS:
        counts = summary.counts[shift.key]
        lines.append(
            " | ".join([shift.label] + [str(counts[status]) for status in Status])
        )
    return "\n".join(lines)


def _name_blocks(summary: ShiftSummary) -> list[str]:
    blocks = []
    for shift in SHIFTS:
        names = summary.names[shift.key]
        rows = [
            f"  {status.value}: {', '.join(names[status])}"
            for status in Status
            if names[status]
        ]
        blocks.append("\n".join([shift.label] + (rows or ["  -"])))
    return blocks


def render_names(summary: ShiftSummary) -> str:
    """Таблица "לפי שמות": для каждой смены имена по статусам."""
    return "\n".join(_name_blocks(summary))


def _fits(text: str, budget: int) -> bool:
    return len(html.escape(text)) <= budget


def _split_line(line: str, budget: int) -> list[str]:
    """Режет строку, которая не помещается в одно сообщение."""
    parts = []
    while not _fits(line, budget):
        cut = budget
        while not _fits(line[:cut], budget):
            cut -= 1
        parts.append(line[:cut])
        line = line[cut:]
    parts.append(line)
    return parts


def pack_blocks(blocks: list[str], budget: int) -> list[str]:
    """
    Собирает блоки смен в куски, каждый из которых после HTML-экранирования
    не длиннее budget. Блок целиком переносится в следующий кусок; слишком
    длинный блок делится по строкам.
    """
    chunks: list[str] = []
    current = ""
    for block in blocks:
        if _fits(block, budget):
            pieces = [block]
        else:
            pieces = [
                part
                for line in block.split("\n")
                for part in _split_line(line, budget)
            ]
        for piece in pieces:
            candidate = f"{current}\n{piece}" if current else piece
            if _fits(candidate, budget):
                current = candidate
            else:
                chunks.append(current)
                current = piece
    if current:
        chunks.append(current)
    return chunks


def _summary_header(week: WeekWindow) -> str:
    return f"<b>סיכום נוכחות</b> {week.end_label} - {week.start_label}"


def render_summary(
    summary: ShiftSummary, week: WeekWindow, team_filter: str | None
) -> list[str]:
    """
    Сводка в виде списка сообщений: первое с таблицей количеств,
    далее таблица имен, разбитая по сменам под лимит длины сообщения.
    """
    team = team_filter or ALL_TEAMS_LABEL
    messages = [
        f"{_summary_header(week)}\n"
        f"צוות: {html.escape(team)}\n\n"
        f"<b>לפי כמות</b>\n<pre>{html.escape(render_counts(summary))}</pre>"
    ]
    budget = MESSAGE_LIMIT - len(NAMES_TITLE) - len("<pre></pre>")
    for chunk in pack_blocks(_name_blocks(summary), budget):
        messages.append(f"{NAMES_TITLE}<pre>{html.escape(chunk)}</pre>")
    return messages


def build_filter_keyboard(
    teams: list[str], viewer_teams: set[str]
) -> InlineKeyboardMarkup | None:
    """Кнопки фильтра по командам. В callback_data передается индекс команды в настройках."""
    buttons = [
        InlineKeyboardButton(team, callback_data=f"sum:team:{index}")
        for index, team in enumerate(teams)
        if team in viewer_teams
    ]
    if not buttons:
        return None
    buttons.append(InlineKeyboardButton(ALL_TEAMS_LABEL, callback_data="sum:all"))
    return InlineKeyboardMarkup([buttons])


async def _build_reply(
    update: Update, context: ContextTypes.DEFAULT_TYPE, team_filter: str | None
) -> tuple[list[str], InlineKeyboardMarkup | None]:
    bot_data = context.application.bot_data
    service: AttendanceService = bot_data["attendance_service"]
    identity = context.user_data["identity"]
    week = service.current_week()

    try:
        summary = service.summary(identity, team_filter)
    except BackendUnavailable as e:
        logger.error(f"Failed to build summary: {e}", exc_info=True)
        await NotificationService.send_transient(
            bot=context.bot,
            job_queue=context.job_queue,
            chat_id=update.effective_chat.id,
            text=SUMMARY_ERROR_PREFIX + html.escape(str(e)),
            ttl_seconds=bot_data["settings"].message_ttl_seconds,
        )
        # Таблицы не показываем, чтобы не оставить устаревшие данные
        return [_summary_header(week)], None

    keyboard = build_filter_keyboard(
        bot_data["settings"].teams, service.viewer_teams(identity)
    )
    return render_summary(summary, week, team_filter), keyboard


@require_auth
async def show_summary(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Обработчик команды /summary.
    Использование: /summary [команда]

    Кнопки фильтра прикрепляются к первому сообщению с таблицей количеств.
    """
    team_filter = " ".join(context.args).strip() if context.args else None
    messages, keyboard = await _build_reply(update, context, team_filter or None)
    await update.effective_message.reply_text(
        text=messages[0], parse_mode=ParseMode.HTML, reply_markup=keyboard
    )
    for text in messages[1:]:
        await update.effective_message.reply_text(text=text, parse_mode=ParseMode.HTML)


@require_auth
async def filter_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Переключает фильтр по команде: обновляет сообщение с кнопками
    и присылает таблицу имен заново.
    """
    query = update.callback_query
    await query.answer()

    team_filter = None
    parts = query.data.split(":")
    if parts[1] == "team":
        teams = context.application.bot_data["settings"].teams
        index = int(parts[2])
        if 0 <= index < len(teams):
            team_filter = teams[index]

    messages, keyboard = await _build_reply(update, context, team_filter)
    try:
        await query.edit_message_text(
            text=messages[0], parse_mode=ParseMode.HTML, reply_markup=keyboard
        )
    except BadRequest as e:
        # Повторное нажатие на тот же фильтр не меняет сообщение
        if "not modified" not in str(e):
            raise
        return
    for text in messages[1:]:
        await update.effective_chat.send_message(text=text, parse_mode=ParseMode.HTML)
