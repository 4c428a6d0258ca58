# backend/carenow/integrations/auth.py
"""Identity provider seam used by the auth session flow."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from ..schemas.auth import AuthUser

AuthStateListener = Callable[[Optional[AuthUser]], Any]


@runtime_checkable
class AuthProvider(Protocol):
    """
    Operations of the external auth provider.

    Implementations raise AuthenticationException with the provider's error
    code on failure. ``add_auth_state_listener`` returns a callable that
    removes the listener.
    """

    async def sign_in_with_email(self, email: str, password: str) -> AuthUser:
        ...

    async def sign_up_with_email(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        ...

    async def verify_phone_number(self, phone_number: str) -> str:
        ...

    async def sign_in_with_phone(self, verification_id: str, sms_code: str) -> AuthUser:
        ...

    async def send_password_reset_email(self, email: str) -> None:
        ...

    async def update_profile(
        self, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> AuthUser:
        ...

    async def sign_out(self) -> None:
        ...

    async def delete_account(self) -> None:
        ...

    def current_user(self) -> Optional[AuthUser]:
        ...

    def add_auth_state_listener(self, callback: AuthStateListener) -> Callable[[], None]:
        ...
