"""
Обработчики общих команд, доступных всем пользователям.
"""

import html
import json
import logging

from telegram import Update
from telegram.ext import ContextTypes

from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "פקודות זמינות:\n"
    "/signup - הרשמה\n"
    "/login - התחברות\n"
    "/logout - התנתקות\n"
    "/attendance - סימון נוכחות לשבוע הנוכחי\n"
    "/summary [צוות] - סיכום נוכחות\n"
    "/myid - מזהה הטלגרם שלך"
)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Обработчик команды /start.

    Приветствует вошедшего пользователя, остальным предлагает войти.
    """
    user = update.effective_user
    auth: AuthGateway = context.application.bot_data["auth_gateway"]
    identity = auth.current_user(user.id)

    if identity is None:
        logger.info(f"Anonymous user {user.id} started the bot.")
        await update.message.reply_text(
            "שלום! כדי לסמן נוכחות יש להתחבר: /login\nמשתמש חדש? /signup"
        )
        return

    logger.info(f"Signed-in user {user.id} ({identity.user_id}) started the bot.")
    await update.message.reply_html(
        f"ברוך הבא {html.escape(identity.username)} 👋\n\n{HELP_TEXT}"
    )


async def show_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(HELP_TEXT)


async def show_my_id(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Отправляет пользователю его собственный Telegram ID."""
    user = update.effective_user
    if not user:
        return

    logger.info(f"User {user.id} requested their ID.")
    await update.message.reply_text(
        f"מזהה הטלגרם שלך: <code>{user.id}</code>", parse_mode="HTML"
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Логирует ошибки и отправляет уведомление администраторам.
    """

    logger.error("Exception while handling an update:", exc_info=context.error)

    if isinstance(update, Update):
        update_str = json.dumps(update.to_dict(), indent=2, ensure_ascii=False)
    else:
        update_str = str(update)

    message = (
        f"‼️ <b>אירעה שגיאה בבוט</b> ‼️\n\n"
        f"<pre>update = {html.escape(update_str)}</pre>\n\n"
        f"<pre>{html.escape(str(context.error))}</pre>"
    )

    settings = context.application.bot_data.get("settings")
    if settings is not None:
        await NotificationService.notify_admins(context.bot, settings.admin_ids, message)
