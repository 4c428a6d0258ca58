# backend/carenow/flows/auth_flow.py
"""
Auth session flow.

Wraps an AuthProvider: every operation emits AuthLoading followed by the
resulting state, and provider-side auth changes (sign-in elsewhere, token
expiry) are observed through the listener registered at construction.

Operations are serialised by a lock. Provider callbacks may arrive on any
thread; they are handed to the flow's event loop and ignored while an
operation is in flight, since that operation sets the resulting state.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Set, Union

from ..core.exceptions import DomainException
from ..core.executors import StoreExecutor, run_blocking
from ..integrations.auth import AuthProvider
from ..schemas.auth import AuthUser
from ..services.user_service import UserService
from .states import (
    Authenticated,
    AuthError,
    AuthInitial,
    AuthLoading,
    AuthState,
    PasswordResetSent,
    PhoneCodeSent,
    Unauthenticated,
)

logger = logging.getLogger(__name__)

Listener = Callable[[AuthState], Union[None, Awaitable[None]]]


class AuthFlow:
    def __init__(
        self,
        provider: AuthProvider,
        user_service: Optional[UserService] = None,
        store: Optional[StoreExecutor] = None,
    ):
        self.provider = provider
        self.user_service = user_service
        self.store = store
        self._state: AuthState = AuthInitial()
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            pass
        self._remove_provider_listener: Optional[Callable[[], None]] = (
            provider.add_auth_state_listener(self._on_provider_change)
        )

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Event loop that provider callbacks are delivered on."""
        self._loop = loop or asyncio.get_running_loop()

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def dispose(self) -> None:
        """Detach from the provider's auth-state notifications."""
        if self._remove_provider_listener is not None:
            self._remove_provider_listener()
            self._remove_provider_listener = None
        for task in list(self._pending):
            task.cancel()
        self._listeners.clear()

    async def settle(self) -> None:
        """Wait until delivered provider changes have been applied."""
        await asyncio.sleep(0)
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _set_state(self, state: AuthState) -> None:
        self._state = state
        for listener in list(self._listeners):
            result = listener(state)
            if inspect.isawaitable(result):
                await result

    # Provider callbacks

    def _on_provider_change(self, user: Optional[AuthUser]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("Auth state change dropped: no event loop bound")
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._schedule_provider_change(user)
        else:
            loop.call_soon_threadsafe(self._schedule_provider_change, user)

    def _schedule_provider_change(self, user: Optional[AuthUser]) -> None:
        if self._lock.locked() or isinstance(self._state, AuthLoading):
            return
        task = asyncio.ensure_future(self._apply_provider_change(user))
        self._pending.add(task)
        task.add_done_callback(self._provider_change_done)

    async def _apply_provider_change(self, user: Optional[AuthUser]) -> None:
        if self._lock.locked():
            return
        async with self._lock:
            await self._set_state(Authenticated(user) if user is not None else Unauthenticated())

    def _provider_change_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Auth state listener failed: {exc}")

    async def _run(self, operation: Callable[[], Awaitable[AuthState]]) -> AuthState:
        if self._loop is None:
            self.bind_loop()
        async with self._lock:
            await self._set_state(AuthLoading())
            try:
                state = await operation()
            except DomainException as e:
                logger.info(f"Auth operation failed: {e.code} {e.message}")
                state = AuthError(e.message, e.code)
            except Exception as e:
                logger.exception("Unexpected auth error")
                state = AuthError(str(e) or type(e).__name__, "UNEXPECTED_ERROR")
            await self._set_state(state)
            return state

    async def check_status(self) -> AuthState:
        async def op() -> AuthState:
            user = self.provider.current_user()
            return Authenticated(user) if user is not None else Unauthenticated()

        return await self._run(op)

    async def sign_in_with_email(self, email: str, password: str) -> AuthState:
        async def op() -> AuthState:
            return Authenticated(await self.provider.sign_in_with_email(email, password))

        return await self._run(op)

    async def sign_up_with_email(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthState:
        async def op() -> AuthState:
            user = await self.provider.sign_up_with_email(email, password, display_name)
            if self.user_service is not None:
                await run_blocking(self.store, self.user_service.ensure_profile, user)
            return Authenticated(user)

        return await self._run(op)

    async def verify_phone_number(self, phone_number: str) -> AuthState:
        async def op() -> AuthState:
            verification_id = await self.provider.verify_phone_number(phone_number)
            return PhoneCodeSent(verification_id, phone_number)

        return await self._run(op)

    async def sign_in_with_phone(self, verification_id: str, sms_code: str) -> AuthState:
        async def op() -> AuthState:
            user = await self.provider.sign_in_with_phone(verification_id, sms_code)
            if self.user_service is not None:
                await run_blocking(self.store, self.user_service.ensure_profile, user)
            return Authenticated(user)

        return await self._run(op)

    async def send_password_reset_email(self, email: str) -> AuthState:
        async def op() -> AuthState:
            await self.provider.send_password_reset_email(email)
            return PasswordResetSent(email)

        return await self._run(op)

    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> AuthState:
        async def op() -> AuthState:
            user = await self.provider.update_profile(display_name=display_name, photo_url=photo_url)
            if self.user_service is not None:
                await run_blocking(self.store, self.user_service.ensure_profile, user)
            return Authenticated(user)

        return await self._run(op)

    async def sign_out(self) -> AuthState:
        async def op() -> AuthState:
            await self.provider.sign_out()
            return Unauthenticated()

        return await self._run(op)

    async def delete_account(self) -> AuthState:
        async def op() -> AuthState:
            user = self.provider.current_user()
            await self.provider.delete_account()
            if user is not None and self.user_service is not None:
                await run_blocking(self.store, self.user_service.delete_profile, user.uid)
            return Unauthenticated()

        return await self._run(op)
