"""Persisted session model."""

from pydantic import BaseModel, ConfigDict

from meditect.domain.models import AuthTokens, UserProfile


class Session(BaseModel):
    """Auth tokens plus the resolved profile, stored as one JSON value."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    expires_at: int
    user: UserProfile

    @classmethod
    def from_tokens(cls, tokens: AuthTokens, user: UserProfile) -> "Session":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.expires_at,
            user=user,
        )

    @property
    def tokens(self) -> AuthTokens:
        return AuthTokens(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_at=self.expires_at,
        )
