# backend/tests/unit/flows/test_auth_flow.py
import asyncio
import logging
from typing import Callable, List, Optional
from unittest.mock import MagicMock

import pytest

from carenow.core.exceptions import AuthenticationException
from carenow.flows.auth_flow import AuthFlow
from carenow.flows.states import (
    Authenticated,
    AuthError,
    AuthLoading,
    PasswordResetSent,
    PhoneCodeSent,
    Unauthenticated,
)
from carenow.models.user import User
from carenow.schemas.auth import AuthUser
from carenow.services.user_service import UserService


class FakeAuthProvider:
    """In-memory provider driven by the tests."""

    def __init__(self):
        self.user: Optional[AuthUser] = None
        self.listeners: List[Callable] = []
        self.fail_with: Optional[AuthenticationException] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _set_user(self, user):
        self.user = user
        for listener in list(self.listeners):
            listener(user)
        return user

    async def sign_in_with_email(self, email, password):
        self._check()
        return self._set_user(AuthUser(uid="uid-1", email=email, email_verified=True))

    async def sign_up_with_email(self, email, password, display_name=None):
        self._check()
        return self._set_user(AuthUser(uid="uid-2", email=email, display_name=display_name))

    async def verify_phone_number(self, phone_number):
        self._check()
        return "verification-1"

    async def sign_in_with_phone(self, verification_id, sms_code):
        self._check()
        return self._set_user(AuthUser(uid="uid-3", phone_number="+84900000000"))

    async def send_password_reset_email(self, email):
        self._check()

    async def update_profile(self, display_name=None, photo_url=None):
        self._check()
        return self._set_user(self.user.model_copy(update={"display_name": display_name}))

    async def sign_out(self):
        self._set_user(None)

    async def delete_account(self):
        self._set_user(None)

    def current_user(self):
        return self.user

    def add_auth_state_listener(self, callback):
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)


@pytest.fixture
def provider():
    return FakeAuthProvider()


@pytest.fixture
def auth(provider, db):
    flow = AuthFlow(provider, UserService(db))
    yield flow
    flow.dispose()


@pytest.mark.asyncio
async def test_sign_in_emits_loading_then_authenticated(auth):
    states = []
    auth.add_listener(states.append)
    state = await auth.sign_in_with_email("mai@example.com", "secret")
    assert isinstance(states[0], AuthLoading)
    assert isinstance(state, Authenticated)
    assert state.user.email == "mai@example.com"
    assert auth.is_authenticated


@pytest.mark.asyncio
async def test_sign_up_creates_profile(auth, db):
    await auth.sign_up_with_email("new@example.com", "secret", "New")
    user = db.get(User, "uid-2")
    assert user.display_name == "New"


@pytest.mark.asyncio
async def test_provider_errors_become_auth_error(auth, provider):
    provider.fail_with = AuthenticationException("Wrong password", code="wrong-password")
    state = await auth.sign_in_with_email("mai@example.com", "bad")
    assert state == AuthError("Wrong password", "wrong-password")


@pytest.mark.asyncio
async def test_phone_flow(auth, db):
    state = await auth.verify_phone_number("+84900000000")
    assert state == PhoneCodeSent("verification-1", "+84900000000")
    state = await auth.sign_in_with_phone("verification-1", "123456")
    assert isinstance(state, Authenticated)
    assert db.get(User, "uid-3").phone_number == "+84900000000"


@pytest.mark.asyncio
async def test_password_reset_and_sign_out(auth):
    assert await auth.send_password_reset_email("mai@example.com") == PasswordResetSent("mai@example.com")
    await auth.sign_in_with_email("mai@example.com", "secret")
    assert await auth.sign_out() == Unauthenticated()


@pytest.mark.asyncio
async def test_check_status(auth, provider):
    assert await auth.check_status() == Unauthenticated()
    provider.user = AuthUser(uid="uid-9")
    assert isinstance(await auth.check_status(), Authenticated)


@pytest.mark.asyncio
async def test_update_profile_and_delete_account(auth, db):
    await auth.sign_up_with_email("new@example.com", "secret")
    state = await auth.update_profile(display_name="Renamed")
    assert state.user.display_name == "Renamed"
    assert db.get(User, "uid-2").display_name == "Renamed"

    assert await auth.delete_account() == Unauthenticated()
    assert db.get(User, "uid-2") is None


@pytest.mark.asyncio
async def test_provider_changes_from_other_threads_are_observed(provider, db):
    flow = AuthFlow(provider, UserService(db))
    states = []
    flow.add_listener(states.append)

    await asyncio.to_thread(provider._set_user, AuthUser(uid="elsewhere"))
    await flow.settle()
    assert isinstance(flow.state, Authenticated)
    assert flow.state.user.uid == "elsewhere"

    await asyncio.to_thread(provider._set_user, None)
    await flow.settle()
    assert flow.state == Unauthenticated()
    assert [type(s) for s in states] == [Authenticated, Unauthenticated]
    flow.dispose()


@pytest.mark.asyncio
async def test_provider_change_on_loop_thread(provider):
    flow = AuthFlow(provider, MagicMock())
    provider._set_user(AuthUser(uid="elsewhere"))
    await flow.settle()
    assert isinstance(flow.state, Authenticated)
    flow.dispose()


@pytest.mark.asyncio
async def test_provider_change_during_operation_is_ignored(auth):
    states = []
    auth.add_listener(states.append)
    await auth.sign_in_with_email("mai@example.com", "secret")
    await auth.settle()
    assert [type(s) for s in states] == [AuthLoading, Authenticated]


@pytest.mark.asyncio
async def test_async_listeners_are_awaited(auth):
    seen = []

    async def listener(state):
        await asyncio.sleep(0)
        seen.append(type(state))

    auth.add_listener(listener)
    await auth.sign_in_with_email("mai@example.com", "secret")
    assert seen == [AuthLoading, Authenticated]


@pytest.mark.asyncio
async def test_concurrent_operations_are_serialised(auth):
    seen = []

    async def listener(state):
        await asyncio.sleep(0)
        seen.append(type(state))

    auth.add_listener(listener)
    await asyncio.gather(
        auth.sign_in_with_email("mai@example.com", "secret"),
        auth.sign_out(),
        auth.check_status(),
    )
    assert seen == [
        AuthLoading,
        Authenticated,
        AuthLoading,
        Unauthenticated,
        AuthLoading,
        Unauthenticated,
    ]


@pytest.mark.asyncio
async def test_failing_listener_on_provider_change_is_logged(provider, caplog):
    flow = AuthFlow(provider, MagicMock())

    async def broken(state):
        raise RuntimeError("listener broke")

    flow.add_listener(broken)
    with caplog.at_level(logging.ERROR, logger="carenow.flows.auth_flow"):
        provider._set_user(AuthUser(uid="elsewhere"))
        await flow.settle()

    assert "listener broke" in caplog.text
    assert isinstance(flow.state, Authenticated)
    flow.dispose()


def test_provider_change_without_event_loop_is_dropped(provider, caplog):
    flow = AuthFlow(provider, MagicMock())
    with caplog.at_level(logging.WARNING, logger="carenow.flows.auth_flow"):
        provider._set_user(AuthUser(uid="elsewhere"))
    assert "no event loop bound" in caplog.text
    assert not isinstance(flow.state, Authenticated)
    flow.dispose()


def test_dispose_detaches_observer(provider):
    flow = AuthFlow(provider, MagicMock())
    flow.dispose()
    assert provider.listeners == []
    provider._set_user(AuthUser(uid="later"))
    assert not isinstance(flow.state, Authenticated)
