"""
Исключения предметной области.

Все ошибки хранилища и авторизации перехватываются в обработчиках
и превращаются в локализованное сообщение для пользователя.
"""


class AttendanceBotError(Exception):
    """Базовое исключение приложения."""


class AuthError(AttendanceBotError):
    """
    Провайдер идентификации отклонил операцию с учетными данными.

    Атрибуты:
        code (str): Машиночитаемый код ошибки (например, "wrong-password").
    """

    EMAIL_IN_USE = "email-already-in-use"
    INVALID_EMAIL = "invalid-email"
    OPERATION_NOT_ALLOWED = "operation-not-allowed"
    WEAK_PASSWORD = "weak-password"
    USER_DISABLED = "user-disabled"
    USER_NOT_FOUND = "user-not-found"
    WRONG_PASSWORD = "wrong-password"

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code


class BackendUnavailable(AttendanceBotError):
    """Сбой сети или сервиса Google при чтении или записи."""


class StoreUnavailable(BackendUnavailable):
    """Хранилище отметок недоступно при записи."""


class Unauthenticated(AttendanceBotError):
    """Попытка записи без вошедшего в систему пользователя."""
