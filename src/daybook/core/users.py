"""User identity and auth session types."""

import time
from dataclasses import dataclass, field
from enum import Enum

from .entries import from_iso


class AuthEvent(Enum):
    """Session changes pushed by the identity provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class User:
    """The signed-in user, as shown to the person using the app."""

    id: str
    email: str
    name: str
    created_at: int


@dataclass
class AuthSession:
    """An active provider session."""

    access_token: str
    refresh_token: str = ""
    expires_at: int = 0
    user: dict = field(default_factory=dict)

    def expires_soon(self, margin: int = 300) -> bool:
        """True when the access token expires within `margin` seconds."""
        if not self.expires_at:
            return False
        return time.time() >= self.expires_at - margin

    @classmethod
    def from_api(cls, data: dict) -> "AuthSession":
        """Create AuthSession from a token endpoint response."""
        expires_at = data.get("expires_at")
        if not expires_at:
            expires_at = int(time.time()) + data.get("expires_in", 3600)
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_at=int(expires_at),
            user=data.get("user") or {},
        )


@dataclass
class SignUpResult:
    """Outcome of a sign-up. `session` is None until the email is confirmed."""

    user: dict | None
    session: AuthSession | None

    @property
    def needs_confirmation(self) -> bool:
        return self.user is not None and self.session is None


def display_name(provider_user: dict) -> str:
    """Profile name, else the email local-part, else "User"."""
    metadata = provider_user.get("user_metadata") or {}
    if metadata.get("full_name"):
        return metadata["full_name"]
    local_part = (provider_user.get("email") or "").split("@")[0]
    return local_part or "User"


def map_user(provider_user: dict) -> User:
    """Map a provider user object to a User."""
    created = provider_user.get("created_at")
    return User(
        id=provider_user["id"],
        email=provider_user.get("email") or "",
        name=display_name(provider_user),
        created_at=from_iso(created) if created else 0,
    )
