"""
Сервис для отправки уведомлений пользователям.

Сообщения об успехе и ошибках временные: через несколько секунд
после отправки бот их удаляет.
"""

import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import ContextTypes, JobQueue

logger = logging.getLogger(__name__)


async def _delete_message_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    job = context.job
    try:
        await context.bot.delete_message(chat_id=job.chat_id, message_id=job.data)
    except TelegramError as e:
        # Пользователь мог уже удалить сообщение сам
        logger.debug(f"Could not delete transient message {job.data}: {e}")


class NotificationService:
    @staticmethod
    async def send_transient(
        bot: Bot,
        job_queue: JobQueue | None,
        chat_id: int,
        text: str,
        ttl_seconds: float,
    ) -> None:
        """
        Отправляет сообщение и планирует его удаление через ttl_seconds.
        """
        try:
            message = await bot.send_message(
                chat_id=chat_id, text=text, parse_mode=ParseMode.HTML
            )
        except TelegramError as e:
            logger.error(
                f"Failed to send notification to chat {chat_id}: {e}", exc_info=True
            )
            return

        if job_queue is None:
            logger.warning("Job queue is not available, message will not be removed.")
            return
        job_queue.run_once(
            _delete_message_job,
            when=ttl_seconds,
            chat_id=chat_id,
            data=message.message_id,
            name=f"transient:{chat_id}:{message.message_id}",
        )

    @staticmethod
    async def notify_admins(bot: Bot, admin_ids: list[int], text: str) -> None:
        """Отправляет сообщение всем администраторам, разбивая длинный текст."""
        for admin_id in admin_ids:
            try:
                for start in range(0, len(text), 4096):
                    await bot.send_message(
                        chat_id=admin_id,
                        text=text[start : start + 4096],
                        parse_mode=ParseMode.HTML,
                    )
            except TelegramError as e:
                logger.error(f"Failed to send message to admin {admin_id}: {e}")
