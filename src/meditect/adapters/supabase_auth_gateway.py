"""Supabase-backed auth gateway."""

import logging
import time
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meditect.adapters.supabase_errors import AUTH_ERRORS, translate_auth_error
from meditect.domain.models import AuthResult, AuthTokens, Principal
from meditect.errors import AuthServiceError
from meditect.services.auth import AuthGateway

logger = logging.getLogger(__name__)

INVALID_SESSION = "invalid_session"


@dataclass
class SupabaseAuthGateway(AuthGateway):
    """Supabase Auth implementation of the auth surface.

    The Supabase client persists its own session through the credential
    store as soon as a sign-in succeeds, so callers that reject a sign-in
    afterwards must call ``discard_session``.
    """

    client: Client

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc
        if response.user is None or response.session is None:
            raise AuthServiceError("Sign-in returned no session")
        return AuthResult(
            principal=_to_principal(response.user),
            tokens=_to_tokens(response.session),
        )

    def sign_up(
        self, email: str, password: str, metadata: dict[str, object]
    ) -> Principal:
        """Register a principal; any session issued alongside is discarded."""
        try:
            response = self.client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata}}
            )
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc
        if response.user is None:
            raise AuthServiceError("Sign-up returned no user")
        if response.session is not None:
            self.discard_session()
        return _to_principal(response.user)

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc

    def discard_session(self) -> None:
        """Drop the client's session, locally even when the server is unreachable."""
        try:
            self.client.auth.sign_out({"scope": "local"})
        except AUTH_ERRORS:
            logger.warning("Logout request failed, removing the local session only")
            # Clears storage and the refresh timer without a network call.
            self.client.auth._remove_session()  # noqa: SLF001

    def reset_password_for_email(self, email: str) -> None:
        try:
            self.client.auth.reset_password_for_email(email)
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc

    def get_current_principal(self) -> Principal | None:
        """Return the principal behind the client's current session."""
        try:
            response = self.client.auth.get_user()
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc
        if response is None or response.user is None:
            return None
        return _to_principal(response.user)

    def resume_session(self, tokens: AuthTokens) -> None:
        """Install stored tokens; the client refreshes them when expired."""
        try:
            self.client.auth.set_session(tokens.access_token, tokens.refresh_token)
        except AUTH_ERRORS as exc:
            raise translate_auth_error(exc) from exc
        except (ValueError, IndexError) as exc:
            # Raised while decoding a malformed access token.
            raise AuthServiceError(
                "Stored session tokens are malformed", code=INVALID_SESSION
            ) from exc


def _to_principal(user) -> Principal:  # type: ignore[no-untyped-def]
    return Principal(
        id=UUID(str(user.id)),
        email=user.email,
        email_confirmed_at=user.email_confirmed_at,
        user_metadata=dict(user.user_metadata or {}),
        created_at=user.created_at,
    )


def _to_tokens(session) -> AuthTokens:  # type: ignore[no-untyped-def]
    expires_at = session.expires_at
    if expires_at is None:
        expires_at = int(time.time()) + int(session.expires_in)
    return AuthTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=int(expires_at),
    )
