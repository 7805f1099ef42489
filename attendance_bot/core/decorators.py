"""
Декораторы для проверки входа в систему и прав доступа.
"""

import logging
from functools import wraps
from typing import Any, Callable, Coroutine

from telegram import Update
from telegram.ext import ContextTypes

from attendance_bot.services.auth_gateway import AuthGateway

logger = logging.getLogger(__name__)

NOT_SIGNED_IN_MESSAGE = "🔒 עליך להתחבר תחילה: /login או /signup"
NOT_ADMIN_MESSAGE = "⛔️ אין לך הרשאה לפעולה זו."

Handler = Callable[[Update, ContextTypes.DEFAULT_TYPE], Coroutine[Any, Any, Any]]


async def _deny(update: Update, text: str) -> None:
    # Отвечаем на callback_query, если он есть, иначе в чат
    if update.callback_query:
        await update.callback_query.answer(text, show_alert=True)
    elif update.effective_message:
        await update.effective_message.reply_text(text)


def require_auth(func: Handler) -> Handler:
    """
    Декоратор для обработчиков, доступных только вошедшим пользователям.

    Сохраняет UserIdentity в context.user_data["identity"].
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        user = update.effective_user
        if not user:
            return None

        auth: AuthGateway = context.application.bot_data["auth_gateway"]
        identity = auth.current_user(user.id)
        if identity is None:
            logger.info(f"User {user.id} ({user.username}) is not signed in.")
            await _deny(update, NOT_SIGNED_IN_MESSAGE)
            return None

        context.user_data["identity"] = identity
        return await func(update, context)

    return wrapper


def require_admin(func: Handler) -> Handler:
    """Декоратор для административных команд (Telegram ID из ADMIN_IDS)."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        user = update.effective_user
        if not user:
            return None

        settings = context.application.bot_data["settings"]
        if user.id in settings.admin_ids:
            return await func(update, context)

        logger.warning(
            f"Unauthorized admin access attempt by user {user.id} ({user.username})."
        )
        await _deny(update, NOT_ADMIN_MESSAGE)
        return None

    return wrapper
