"""
Принудительный выход пользователя после периода бездействия.

Отметка последней активности обновляется на каждое действие пользователя.
Проверка выполняется при каждом входящем обновлении и по таймеру, который
взводится ровно на timeout от последней активности (см. handlers.session).
Это удобство для пользователя, а не механизм безопасности.
"""

import logging
import time
from typing import Callable, Hashable

from attendance_bot.services.auth_gateway import AuthGateway

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3 * 60 * 60


class SessionGuard:
    def __init__(
        self,
        auth: AuthGateway,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.auth = auth
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._last_activity: dict[Hashable, float] = {}

    def touch(self, session_id: Hashable) -> None:
        """Отмечает активность пользователя."""
        self._last_activity[session_id] = self._clock()

    def clear(self, session_id: Hashable) -> None:
        self._last_activity.pop(session_id, None)

    def last_activity(self, session_id: Hashable) -> float | None:
        return self._last_activity.get(session_id)

    def seconds_until_expiry(self, session_id: Hashable) -> float | None:
        last_activity = self._last_activity.get(session_id)
        if last_activity is None:
            return None
        return last_activity + self.timeout_seconds - self._clock()

    def is_expired(self, session_id: Hashable) -> bool:
        last_activity = self._last_activity.get(session_id)
        if last_activity is None:
            return False
        return self._clock() - last_activity > self.timeout_seconds

    def check(self, session_id: Hashable) -> bool:
        """
        Проверяет сессию и при истечении выполняет выход.

        Returns:
            True, если сессия истекла и пользователь был разлогинен.
        """
        if not self.is_expired(session_id):
            return False
        logger.info(f"Session {session_id} expired after inactivity, signing out.")
        self.auth.sign_out(session_id)
        self.clear(session_id)
        return True

    def handle_auth_state(self, session_id: Hashable, identity) -> None:
        """Подписчик AuthGateway: вход запускает отсчет, выход его сбрасывает."""
        if identity is None:
            self.clear(session_id)
        else:
            self.touch(session_id)
