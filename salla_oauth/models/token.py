"""
Token models.

Produced once per token exchange and handed straight to the caller;
nothing here is persisted.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from salla_oauth.models.profile import UserProfile


class TokenResult(BaseModel):
    """Result of an authorization-code or refresh-token grant."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    # Every other field the token endpoint returned, refresh_token removed
    raw_extras: Dict[str, Any] = Field(default_factory=dict)

    @property
    def token_type(self) -> str:
        return str(self.raw_extras.get("token_type", "bearer"))


class AuthResult(BaseModel):
    """What the host application receives after a successful callback."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    profile: UserProfile
    user: Any = None
