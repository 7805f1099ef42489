"""
Тесты для SessionGuard.
"""

import pytest

from attendance_bot.services.auth_gateway import AuthGateway
from attendance_bot.services.session_guard import DEFAULT_TIMEOUT_SECONDS, SessionGuard

SESSION = 42


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth(mocker):
    return mocker.Mock(spec=AuthGateway)


@pytest.fixture
def guard(auth, clock) -> SessionGuard:
    return SessionGuard(auth=auth, clock=clock)


def test_default_timeout_is_three_hours(guard):
    assert guard.timeout_seconds == DEFAULT_TIMEOUT_SECONDS == 3 * 60 * 60


def test_session_without_activity_is_not_expired(guard, auth):
    assert guard.check(SESSION) is False
    auth.sign_out.assert_not_called()


def test_active_session_is_kept(guard, auth, clock):
    guard.touch(SESSION)
    clock.now += DEFAULT_TIMEOUT_SECONDS

    assert guard.check(SESSION) is False
    assert guard.seconds_until_expiry(SESSION) == 0
    auth.sign_out.assert_not_called()


def test_inactive_session_forces_sign_out(guard, auth, clock):
    """Тест: после timeout бездействия выполняются выход и очистка отметки активности."""
    guard.touch(SESSION)
    clock.now += DEFAULT_TIMEOUT_SECONDS + 1

    assert guard.check(SESSION) is True
    auth.sign_out.assert_called_once_with(SESSION)
    assert guard.last_activity(SESSION) is None


def test_activity_resets_timer(guard, auth, clock):
    guard.touch(SESSION)
    clock.now += DEFAULT_TIMEOUT_SECONDS - 10
    guard.touch(SESSION)
    clock.now += DEFAULT_TIMEOUT_SECONDS - 10

    assert guard.check(SESSION) is False
    assert guard.seconds_until_expiry(SESSION) == 10


def test_auth_state_changes_drive_activity(guard, clock):
    guard.handle_auth_state(SESSION, object())
    assert guard.last_activity(SESSION) == clock.now

    guard.handle_auth_state(SESSION, None)
    assert guard.last_activity(SESSION) is None
