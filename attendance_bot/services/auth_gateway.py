"""
Сервис идентификации пользователей.

Учетные записи (email + хэш пароля) хранятся в листе accounts.
Сессией считается Telegram-чат пользователя: session_id равен его Telegram ID.
"""

import logging
import uuid
from typing import Callable, Hashable

from pydantic import EmailStr, TypeAdapter, ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from attendance_bot.core.exceptions import AuthError
from attendance_bot.models.user import ACCOUNT_HEADERS, Account, UserIdentity
from attendance_bot.services.google_api import GoogleAPIService
from attendance_bot.services.role_store import UserRoleStore

logger = logging.getLogger(__name__)

ACCOUNTS_WORKSHEET = "accounts"
MIN_PASSWORD_LENGTH = 6

AuthStateListener = Callable[[Hashable, UserIdentity | None], None]

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    try:
        return _email_adapter.validate_python(email.strip()).lower()
    except ValidationError as e:
        raise AuthError(AuthError.INVALID_EMAIL) from e


class AuthGateway:
    """
    Регистрация, вход и выход пользователей.

    Подписчики on_auth_state_change получают (session_id, identity) при входе
    и (session_id, None) при выходе.
    """

    def __init__(
        self,
        google_api: GoogleAPIService,
        role_store: UserRoleStore,
        allow_signup: bool = True,
    ):
        google_api.register_worksheet(ACCOUNTS_WORKSHEET, ACCOUNT_HEADERS)
        self.google_api = google_api
        self.role_store = role_store
        self.allow_signup = allow_signup
        self._sessions: dict[Hashable, UserIdentity] = {}
        self._listeners: list[AuthStateListener] = []

    def on_auth_state_change(self, callback: AuthStateListener) -> Callable[[], None]:
        """Подписывает callback на изменения состояния входа. Возвращает функцию отписки."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def _notify(self, session_id: Hashable, identity: UserIdentity | None) -> None:
        for listener in list(self._listeners):
            listener(session_id, identity)

    def current_user(self, session_id: Hashable) -> UserIdentity | None:
        return self._sessions.get(session_id)

    def list_accounts(self) -> list[Account]:
        accounts = []
        for row in self.google_api.get_records(ACCOUNTS_WORKSHEET):
            try:
                accounts.append(Account.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed account row {row.get('userId')}: "
                    f"{e.error_count()} validation error(s)"
                )
        return accounts

    def _find_account(self, email: str) -> Account | None:
        for account in self.list_accounts():
            if account.email.lower() == email:
                return account
        return None

    async def sign_up(
        self,
        session_id: Hashable,
        email: str,
        password: str,
        display_name: str,
        roles: set[str],
    ) -> UserIdentity:
        """Создает учетную запись, сохраняет команды и выполняет вход."""
        if not self.allow_signup:
            raise AuthError(AuthError.OPERATION_NOT_ALLOWED)
        email = normalize_email(email)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(AuthError.WEAK_PASSWORD)
        if self._find_account(email) is not None:
            logger.warning(f"Sign-up attempt with an e-mail already in use: {email}")
            raise AuthError(AuthError.EMAIL_IN_USE)

        account = Account(
            user_id=uuid.uuid4().hex,
            email=email,
            display_name=display_name.strip(),
            password_hash=generate_password_hash(password),
        )
        await self.google_api.upsert_row(
            ACCOUNTS_WORKSHEET, account.user_id, lambda _: account.to_row()
        )
        await self.role_store.set_roles(account.user_id, roles)
        logger.info(f"Account {account.user_id} ({email}) created.")

        identity = account.to_identity()
        self._sessions[session_id] = identity
        self._notify(session_id, identity)
        return identity

    def sign_in(self, session_id: Hashable, email: str, password: str) -> UserIdentity:
        email = normalize_email(email)
        account = self._find_account(email)
        if account is None:
            raise AuthError(AuthError.USER_NOT_FOUND)
        if account.disabled:
            logger.warning(f"Disabled account {account.user_id} tried to sign in.")
            raise AuthError(AuthError.USER_DISABLED)
        if not check_password_hash(account.password_hash, password):
            logger.warning(f"Wrong password for account {account.user_id}.")
            raise AuthError(AuthError.WRONG_PASSWORD)

        identity = account.to_identity()
        self._sessions[session_id] = identity
        logger.info(f"Session {session_id} signed in as {account.user_id}.")
        self._notify(session_id, identity)
        return identity

    def sign_out(self, session_id: Hashable) -> None:
        identity = self._sessions.pop(session_id, None)
        if identity is None:
            return
        logger.info(f"Session {session_id} ({identity.user_id}) signed out.")
        self._notify(session_id, None)
