"""
Обработчики административных команд.
"""

import html
import logging

from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from attendance_bot.core.decorators import require_admin
from attendance_bot.core.exceptions import BackendUnavailable
from attendance_bot.handlers.auth import parse_teams
from attendance_bot.services.attendance_store import AttendanceRecordStore
from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.role_store import UserRoleStore

logger = logging.getLogger(__name__)

BACKEND_ERROR_MESSAGE = "❌ השירות אינו זמין כרגע. נסו שוב מאוחר יותר."


@require_admin
async def list_users(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Выводит список учетных записей с их командами.
    Доступно только для администраторов.
    """
    message = update.effective_message
    bot_data = context.application.bot_data
    auth: AuthGateway = bot_data["auth_gateway"]
    role_store: UserRoleStore = bot_data["role_store"]

    try:
        accounts = auth.list_accounts()
    except BackendUnavailable as e:
        logger.error(f"Failed to list accounts: {e}", exc_info=True)
        await message.reply_text(BACKEND_ERROR_MESSAGE)
        return

    if not accounts:
        await message.reply_text("👥 אין משתמשים רשומים.")
        return

    roles = role_store.get_all()
    lines = ["--- 👥 משתמשים ---"]
    for account in accounts:
        teams = ", ".join(sorted(roles.get(account.user_id, set()))) or "-"
        blocked = " 🚫" if account.disabled else ""
        lines.append(
            f"👤 <b>{html.escape(account.display_name or account.email)}</b>{blocked}\n"
            f"   ID: <code>{account.user_id}</code>\n"
            f"   צוותים: <i>{html.escape(teams)}</i>"
        )
    await message.reply_text(text="\n".join(lines), parse_mode=ParseMode.HTML)


@require_admin
async def set_roles(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Заменяет команды пользователя.
    Использование: /setroles <userId> <команда>[,<команда>...]
    """
    message = update.effective_message
    settings = context.application.bot_data["settings"]

    if len(context.args) < 2:
        await message.reply_text(
            "⚠️ פורמט שגוי.\n\n"
            "שימוש: /setroles <userId> <צוות>,<צוות>\n"
            f"צוותים זמינים: {', '.join(settings.teams)}"
        )
        return

    user_id = context.args[0]
    teams = parse_teams(" ".join(context.args[1:]), settings.teams)
    if teams is None:
        await message.reply_text(
            f"⚠️ צוות לא מוכר. צוותים זמינים: {', '.join(settings.teams)}"
        )
        return

    role_store: UserRoleStore = context.application.bot_data["role_store"]
    try:
        await role_store.set_roles(user_id, teams, replace=True)
    except BackendUnavailable as e:
        logger.error(f"Failed to set roles for {user_id}: {e}", exc_info=True)
        await message.reply_text(BACKEND_ERROR_MESSAGE)
        return

    logger.info(
        f"Admin {update.effective_user.id} set teams of {user_id} to {sorted(teams)}."
    )
    await message.reply_text(
        f"✅ הצוותים של <code>{html.escape(user_id)}</code> עודכנו: "
        f"{html.escape(', '.join(sorted(teams)))}",
        parse_mode=ParseMode.HTML,
    )


@require_admin
async def latest_record(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Показывает последнюю сохраненную отметку любого пользователя."""
    message = update.effective_message
    store: AttendanceRecordStore = context.application.bot_data["attendance_store"]

    try:
        record = store.get_most_recent()
    except BackendUnavailable as e:
        logger.error(f"Failed to fetch latest record: {e}", exc_info=True)
        await message.reply_text(BACKEND_ERROR_MESSAGE)
        return

    if record is None:
        await message.reply_text("אין עדיין נתוני נוכחות.")
        return

    saved_at = f"{record.timestamp:%d/%m/%Y %H:%M} UTC" if record.timestamp else "-"
    await message.reply_text(
        f"🕓 <b>{html.escape(record.username or record.user_id)}</b>\n"
        f"שבוע: {record.week_start} - {record.week_end}\n"
        f"נשמר: {saved_at}\n"
        f"משמרות: {len(record.data)}",
        parse_mode=ParseMode.HTML,
    )
