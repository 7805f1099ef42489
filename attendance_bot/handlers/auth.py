"""
Обработчики регистрации, входа и выхода.
"""

import logging

from telegram import ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes, ConversationHandler

from attendance_bot.core.exceptions import AuthError, BackendUnavailable
from attendance_bot.handlers.session import arm_session_timer
from attendance_bot.services.auth_gateway import AuthGateway

logger = logging.getLogger(__name__)

# Состояния диалогов
(SIGNUP_NAME, SIGNUP_EMAIL, SIGNUP_PASSWORD, SIGNUP_TEAMS) = range(4)
(LOGIN_EMAIL, LOGIN_PASSWORD) = range(4, 6)

SIGNUP_ERROR_PREFIX = "שגיאה בהרשמה: "
SIGNIN_ERROR_PREFIX = "שגיאה בהתחברות: "
BACKEND_ERROR_MESSAGE = "השירות אינו זמין כרגע. נסו שוב מאוחר יותר."

AUTH_ERROR_MESSAGES = {
    AuthError.EMAIL_IN_USE: "כתובת האימייל כבר בשימוש.",
    AuthError.INVALID_EMAIL: "כתובת האימייל אינה תקינה.",
    AuthError.OPERATION_NOT_ALLOWED: "אימות באמצעות אימייל/סיסמה אינו מופעל.",
    AuthError.WEAK_PASSWORD: "הסיסמה חלשה מדי. אנא בחר סיסמה חזקה יותר.",
    AuthError.USER_DISABLED: "חשבון זה נחסם.",
    AuthError.USER_NOT_FOUND: "משתמש לא נמצא עם אימייל זה.",
    AuthError.WRONG_PASSWORD: "הסיסמה שהוזנה שגויה.",
}


def describe_auth_error(error: AuthError, prefix: str) -> str:
    """Локализованное сообщение для кода ошибки; для неизвестных кодов текст ошибки."""
    return prefix + AUTH_ERROR_MESSAGES.get(error.code, str(error))


def parse_teams(text: str, allowed: list[str]) -> set[str] | None:
    """Разбирает список команд через запятую. None, если есть неизвестная команда."""
    teams = {item.strip() for item in text.split(",") if item.strip()}
    if not teams or not teams <= set(allowed):
        return None
    return teams


async def _forget_password_message(update: Update) -> None:
    # Сообщение с паролем не должно оставаться в истории чата
    try:
        await update.effective_message.delete()
    except TelegramError as e:
        logger.debug(f"Could not delete password message: {e}")


def _on_signed_in(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    arm_session_timer(
        context.job_queue,
        context.application.bot_data["session_guard"],
        update.effective_user.id,
        update.effective_chat.id,
    )


# --- Регистрация ---


async def signup_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data["signup"] = {}
    await update.effective_message.reply_text(
        "הרשמה למערכת.\n\n<b>שלב 1/4:</b> הזן את שמך המלא.",
        parse_mode="HTML",
    )
    return SIGNUP_NAME


async def signup_name(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    name = update.effective_message.text.strip()
    if not name:
        await update.effective_message.reply_text("אנא הזן שם.")
        return SIGNUP_NAME
    context.user_data["signup"]["name"] = name
    await update.effective_message.reply_text(
        "<b>שלב 2/4:</b> הזן כתובת אימייל.", parse_mode="HTML"
    )
    return SIGNUP_EMAIL


async def signup_email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data["signup"]["email"] = update.effective_message.text.strip()
    await update.effective_message.reply_text(
        "<b>שלב 3/4:</b> בחר סיסמה (לפחות 6 תווים).", parse_mode="HTML"
    )
    return SIGNUP_PASSWORD


async def signup_password(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data["signup"]["password"] = update.effective_message.text
    await _forget_password_message(update)

    settings = context.application.bot_data["settings"]
    keyboard = [[team] for team in settings.teams]
    await update.effective_chat.send_message(
        "<b>שלב 4/4:</b> בחר צוות, או כתוב כמה צוותים מופרדים בפסיק.",
        reply_markup=ReplyKeyboardMarkup(
            keyboard, one_time_keyboard=True, resize_keyboard=True
        ),
        parse_mode="HTML",
    )
    return SIGNUP_TEAMS


async def signup_teams(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    message = update.effective_message
    settings = context.application.bot_data["settings"]
    teams = parse_teams(message.text, settings.teams)
    if teams is None:
        await message.reply_text(
            "אנא בחר צוות מהרשימה: " + ", ".join(settings.teams)
        )
        return SIGNUP_TEAMS

    data = context.user_data.pop("signup")
    auth: AuthGateway = context.application.bot_data["auth_gateway"]
    try:
        identity = await auth.sign_up(
            session_id=update.effective_user.id,
            email=data["email"],
            password=data["password"],
            display_name=data["name"],
            roles=teams,
        )
    except AuthError as e:
        logger.info(f"Sign-up rejected for user {update.effective_user.id}: {e.code}")
        await message.reply_text(
            describe_auth_error(e, SIGNUP_ERROR_PREFIX) + "\n\nלניסיון חוזר: /signup",
            reply_markup=ReplyKeyboardRemove(),
        )
        return ConversationHandler.END
    except BackendUnavailable as e:
        logger.error(f"Sign-up failed: {e}", exc_info=True)
        await message.reply_text(
            SIGNUP_ERROR_PREFIX + BACKEND_ERROR_MESSAGE,
            reply_markup=ReplyKeyboardRemove(),
        )
        return ConversationHandler.END

    _on_signed_in(update, context)
    await message.reply_text(
        f"ההרשמה בוצעה בהצלחה! ברוך הבא {identity.username}.\n"
        "לסימון נוכחות: /attendance\nלסיכום: /summary",
        reply_markup=ReplyKeyboardRemove(),
    )
    return ConversationHandler.END


# --- Вход ---


async def login_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data["login"] = {}
    await update.effective_message.reply_text("הזן כתובת אימייל.")
    return LOGIN_EMAIL


async def login_email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.user_data["login"]["email"] = update.effective_message.text.strip()
    await update.effective_message.reply_text("הזן סיסמה.")
    return LOGIN_PASSWORD


async def login_password(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    password = update.effective_message.text
    await _forget_password_message(update)
    email = context.user_data.pop("login")["email"]

    auth: AuthGateway = context.application.bot_data["auth_gateway"]
    try:
        identity = auth.sign_in(update.effective_user.id, email, password)
    except AuthError as e:
        logger.info(f"Sign-in rejected for user {update.effective_user.id}: {e.code}")
        await update.effective_chat.send_message(
            describe_auth_error(e, SIGNIN_ERROR_PREFIX) + "\n\nלניסיון חוזר: /login"
        )
        return ConversationHandler.END
    except BackendUnavailable as e:
        logger.error(f"Sign-in failed: {e}", exc_info=True)
        await update.effective_chat.send_message(
            SIGNIN_ERROR_PREFIX + BACKEND_ERROR_MESSAGE
        )
        return ConversationHandler.END

    _on_signed_in(update, context)
    await update.effective_chat.send_message(
        f"התחברת בהצלחה! ברוך הבא {identity.username}.\n"
        "לסימון נוכחות: /attendance\nלסיכום: /summary"
    )
    return ConversationHandler.END


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Отменяет текущий диалог."""
    context.user_data.pop("signup", None)
    context.user_data.pop("login", None)
    await update.effective_message.reply_text(
        "הפעולה בוטלה.", reply_markup=ReplyKeyboardRemove()
    )
    return ConversationHandler.END


async def logout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    auth: AuthGateway = context.application.bot_data["auth_gateway"]
    auth.sign_out(update.effective_user.id)
    context.user_data.pop("identity", None)
    context.user_data.pop("attendance_form", None)
    await update.effective_message.reply_text("התנתקת מהמערכת. להתחברות: /login")
