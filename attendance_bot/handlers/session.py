"""
Отслеживание активности и завершение неактивных сессий.
"""

import logging

from telegram import Update
from telegram.ext import ApplicationHandlerStop, ContextTypes, JobQueue

from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.session_guard import SessionGuard

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "⌛️ פג תוקף החיבור עקב חוסר פעילות. יש להתחבר מחדש: /login"

# Минимальная задержка повторной проверки, если таймер сработал чуть раньше срока
MIN_RECHECK_SECONDS = 1.0


def _job_name(user_id: int) -> str:
    return f"session:{user_id}"


def arm_session_timer(
    job_queue: JobQueue | None,
    guard: SessionGuard,
    user_id: int,
    chat_id: int | None,
    when: float | None = None,
) -> None:
    """Перевзводит таймер проверки сессии: ровно timeout от последней активности."""
    if job_queue is None:
        return
    for job in job_queue.get_jobs_by_name(_job_name(user_id)):
        job.schedule_removal()
    job_queue.run_once(
        session_timeout_job,
        when=guard.timeout_seconds if when is None else when,
        name=_job_name(user_id),
        user_id=user_id,
        chat_id=chat_id,
    )


async def session_timeout_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    job = context.job
    bot_data = context.application.bot_data
    guard: SessionGuard = bot_data["session_guard"]
    auth: AuthGateway = bot_data["auth_gateway"]

    if guard.check(job.user_id):
        if job.chat_id is not None:
            await context.bot.send_message(
                chat_id=job.chat_id, text=SESSION_EXPIRED_MESSAGE
            )
        return

    remaining = guard.seconds_until_expiry(job.user_id)
    if auth.current_user(job.user_id) is None or remaining is None:
        return
    arm_session_timer(
        context.job_queue,
        guard,
        job.user_id,
        job.chat_id,
        when=max(remaining, MIN_RECHECK_SECONDS),
    )


async def track_activity(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Выполняется для каждого обновления раньше остальных обработчиков.

    Если сессия истекла, выполняет выход и останавливает обработку обновления.
    Иначе отмечает активность и перевзводит таймер.
    """
    user = update.effective_user
    if not user:
        return

    bot_data = context.application.bot_data
    auth: AuthGateway = bot_data["auth_gateway"]
    guard: SessionGuard = bot_data["session_guard"]

    if auth.current_user(user.id) is None:
        return

    if guard.check(user.id):
        if update.callback_query:
            await update.callback_query.answer(SESSION_EXPIRED_MESSAGE, show_alert=True)
        elif update.effective_message:
            await update.effective_message.reply_text(SESSION_EXPIRED_MESSAGE)
        raise ApplicationHandlerStop

    guard.touch(user.id)
    chat_id = update.effective_chat.id if update.effective_chat else None
    arm_session_timer(context.job_queue, guard, user.id, chat_id)
