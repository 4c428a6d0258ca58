from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """Identity reported by the auth provider."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    display_name: Optional[str] = None
    email_verified: bool = False
