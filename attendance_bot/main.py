"""
Основная точка входа в приложение.

Этот файл отвечает за создание сервисов и запуск Telegram-бота.
"""

import logging
from functools import partial

from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    TypeHandler,
    filters,
)

from attendance_bot.core.config import Settings, settings
from attendance_bot.core.logging_config import setup_logging
from attendance_bot.handlers import admin, attendance, auth, common, session, summary
from attendance_bot.services.attendance_service import AttendanceService
from attendance_bot.services.attendance_store import AttendanceRecordStore
from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.google_api import GoogleAPIService
from attendance_bot.services.role_store import UserRoleStore
from attendance_bot.services.session_guard import SessionGuard
from attendance_bot.services.summary import SummaryAggregator
from attendance_bot.services.week import local_now

logger = logging.getLogger(__name__)

TEXT = filters.TEXT & ~filters.COMMAND


def build_services(config: Settings, google_api: GoogleAPIService) -> dict:
    """Создает сервисы и связывает их зависимости явно, без глобального состояния."""
    role_store = UserRoleStore(google_api=google_api)
    attendance_store = AttendanceRecordStore(google_api=google_api)
    auth_gateway = AuthGateway(
        google_api=google_api, role_store=role_store, allow_signup=config.allow_signup
    )
    session_guard = SessionGuard(
        auth=auth_gateway, timeout_seconds=config.session_timeout_seconds
    )
    auth_gateway.on_auth_state_change(session_guard.handle_auth_state)
    attendance_service = AttendanceService(
        records=attendance_store,
        roles=role_store,
        aggregator=SummaryAggregator(),
        now=partial(local_now, config.display_timezone),
    )
    return {
        "settings": config,
        "google_api_service": google_api,
        "role_store": role_store,
        "attendance_store": attendance_store,
        "auth_gateway": auth_gateway,
        "session_guard": session_guard,
        "attendance_service": attendance_service,
    }


def register_handlers(application: Application) -> None:
    # Проверка сессии выполняется раньше всех остальных обработчиков
    application.add_handler(TypeHandler(Update, session.track_activity), group=-1)

    signup_handler = ConversationHandler(
        entry_points=[CommandHandler("signup", auth.signup_start)],
        states={
            auth.SIGNUP_NAME: [MessageHandler(TEXT, auth.signup_name)],
            auth.SIGNUP_EMAIL: [MessageHandler(TEXT, auth.signup_email)],
            auth.SIGNUP_PASSWORD: [MessageHandler(TEXT, auth.signup_password)],
            auth.SIGNUP_TEAMS: [MessageHandler(TEXT, auth.signup_teams)],
        },
        fallbacks=[CommandHandler("cancel", auth.cancel)],
    )
    login_handler = ConversationHandler(
        entry_points=[CommandHandler("login", auth.login_start)],
        states={
            auth.LOGIN_EMAIL: [MessageHandler(TEXT, auth.login_email)],
            auth.LOGIN_PASSWORD: [MessageHandler(TEXT, auth.login_password)],
        },
        fallbacks=[CommandHandler("cancel", auth.cancel)],
    )
    application.add_handler(signup_handler)
    application.add_handler(login_handler)

    application.add_handler(CommandHandler("start", common.start))
    application.add_handler(CommandHandler("help", common.show_help))
    application.add_handler(CommandHandler("myid", common.show_my_id))
    application.add_handler(CommandHandler("logout", auth.logout))
    application.add_handler(CommandHandler("attendance", attendance.show_form))
    application.add_handler(
        CallbackQueryHandler(attendance.form_callback, pattern=r"^att:")
    )
    application.add_handler(CommandHandler("summary", summary.show_summary))
    application.add_handler(
        CallbackQueryHandler(summary.filter_callback, pattern=r"^sum:")
    )
    application.add_handler(CommandHandler("listusers", admin.list_users))
    application.add_handler(CommandHandler("setroles", admin.set_roles))
    application.add_handler(CommandHandler("latest", admin.latest_record))
    application.add_error_handler(common.error_handler)
    application.add_handler(MessageHandler(TEXT, common.show_help))


def main() -> None:
    """Основная функция для запуска бота."""
    setup_logging()

    logger.info("Initializing services...")
    google_api_service = GoogleAPIService(
        sheet_id=settings.google_sheet_id,
        credentials_file=settings.credentials_file,
        retry_attempts=settings.backend_retry_attempts,
    )

    logger.info("Starting bot...")
    application = Application.builder().token(settings.bot_token).build()
    application.bot_data.update(build_services(settings, google_api_service))
    register_handlers(application)

    logger.info("Bot is running in polling mode.")
    application.run_polling()


if __name__ == "__main__":
    main()
