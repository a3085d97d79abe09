"""Domain models for authentication and user profiles."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Principal:
    """The auth service's record of an identity."""

    id: UUID
    email: str | None
    email_confirmed_at: datetime | None = None
    user_metadata: dict[str, object] = field(default_factory=dict)
    created_at: datetime | None = None

    @property
    def is_verified(self) -> bool:
        return self.email_confirmed_at is not None


@dataclass(frozen=True)
class AuthTokens:
    """Tokens issued by the auth service for one login."""

    access_token: str
    refresh_token: str
    expires_at: int


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful password sign-in."""

    principal: Principal
    tokens: AuthTokens


@dataclass(frozen=True)
class UserProfile:
    """Application-level user record keyed by the principal id."""

    id: UUID
    email: str
    name: str
    created_at: datetime
    avatar_url: str | None = None


@dataclass(frozen=True)
class ProfileDraft:
    """Profile fields written on first login; timestamps are server-assigned."""

    id: UUID
    email: str
    name: str


def derive_display_name(principal: Principal) -> str:
    """Pick a display name from metadata, the email local part, or a default."""
    name = principal.user_metadata.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    if principal.email:
        local_part = principal.email.split("@")[0].strip()
        if local_part:
            return local_part
    return "User"
