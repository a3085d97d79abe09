"""Session and profile reconciliation workflow."""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from meditect.domain.models import (
    AuthResult,
    AuthTokens,
    Principal,
    ProfileDraft,
    UserProfile,
    derive_display_name,
)
from meditect.domain.sessions import Session
from meditect.errors import (
    AuthServiceError,
    ConflictError,
    CredentialStoreError,
    DataServiceError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    ProfileCreationFailedError,
    ProfileFetchFailedError,
    RegistrationFailedError,
    RemoteServiceError,
    ResetRequestFailedError,
    SignOutFailedError,
)

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIRMED = "email_not_confirmed"


class CredentialStore(Protocol):
    """Encrypted key-value store for the persisted session."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Replace the stored value in a single write."""

    def delete(self, key: str) -> None:
        """Remove the stored value, if present."""


class AuthGateway(Protocol):
    """Auth surface of the hosted backend."""

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        """Exchange credentials for a principal and tokens."""

    def sign_up(
        self, email: str, password: str, metadata: dict[str, object]
    ) -> Principal:
        """Register a principal carrying auxiliary metadata."""

    def sign_out(self) -> None:
        """End the current remote session."""

    def discard_session(self) -> None:
        """Forget the client-side session without reporting failures."""

    def reset_password_for_email(self, email: str) -> None:
        """Send a password reset message."""

    def get_current_principal(self) -> Principal | None:
        """Return the principal of the active remote session, if any."""

    def resume_session(self, tokens: AuthTokens) -> None:
        """Hand previously issued tokens back to the auth client."""


class ProfileRepository(Protocol):
    """Persistence interface for the profiles table."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user id, if present."""

    def insert_profile(self, draft: ProfileDraft) -> None:
        """Insert a profile row; raises ConflictError if the id exists."""

    def upsert_profile(self, draft: ProfileDraft) -> None:
        """Insert a profile row, leaving an existing row with the id in place."""


@dataclass(frozen=True)
class AuthState:
    """Read-only snapshot of the workflow state."""

    user: UserProfile | None
    busy: bool

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


Listener = Callable[[AuthState], None]


@dataclass
class AuthWorkflow:
    """Owns the signed-in user and keeps it reconciled with the backend.

    Operations run strictly in sequence. ``busy`` is only a hint for callers
    to disable repeated triggers; two overlapping first sign-ins are made safe
    by the insert-then-upsert fallback during profile bootstrap.
    """

    auth_gateway: AuthGateway
    profile_repository: ProfileRepository
    credential_store: CredentialStore
    session_key: str = "session"
    profile_fetch_attempts: int = 3
    profile_fetch_backoff_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    _session: Session | None = field(default=None, init=False, repr=False)
    _user: UserProfile | None = field(default=None, init=False, repr=False)
    _busy: bool = field(default=False, init=False, repr=False)
    _listeners: list[Listener] = field(default_factory=list, init=False, repr=False)

    @property
    def user(self) -> UserProfile | None:
        return self._user

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def busy(self) -> bool:
        return self._busy

    def snapshot(self) -> AuthState:
        """Return the current state."""
        return AuthState(user=self._user, busy=self._busy)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener, send it the current state, return an unsubscriber."""
        self._listeners.append(listener)
        listener(self.snapshot())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def require_user(self) -> UserProfile:
        """Return the signed-in profile or raise NotAuthenticatedError."""
        if self._user is None:
            raise NotAuthenticatedError()
        return self._user

    def restore_session(self) -> None:
        """Rebuild the signed-in state from the stored session, never raising."""
        with self._busy_scope():
            stored = self._load_stored_session()
            if stored is None:
                return
            user_id = stored.user.id
            try:
                self.auth_gateway.resume_session(stored.tokens)
                profile = self.profile_repository.get_profile(user_id)
            except RemoteServiceError:
                logger.exception(
                    "Failed to restore session", extra={"user_id": str(user_id)}
                )
                return
            except Exception:
                logger.exception(
                    "Unexpected error while restoring session",
                    extra={"user_id": str(user_id)},
                )
                return
            if profile is None:
                logger.warning(
                    "Stored session has no profile row", extra={"user_id": str(user_id)}
                )
                return
            self._set_state(stored.model_copy(update={"user": profile}), profile)

    def sign_in(self, email: str, password: str) -> UserProfile:
        """Authenticate, reconcile the profile row and persist the session."""
        with self._busy_scope():
            try:
                result = self.auth_gateway.sign_in_with_password(email, password)
            except AuthServiceError as exc:
                logger.warning("Sign-in rejected", extra={"code": exc.code})
                if exc.code == EMAIL_NOT_CONFIRMED:
                    raise EmailNotVerifiedError() from exc
                raise InvalidCredentialsError() from exc

            try:
                if not result.principal.is_verified:
                    raise EmailNotVerifiedError()
                profile = self._resolve_profile(result.principal)
            except Exception:
                # The auth client already holds the new session.
                self._discard_remote_session()
                raise
            session = Session.from_tokens(result.tokens, profile)
            self._persist_session(session)
            self._set_state(session, profile)
            return profile

    def sign_up(self, email: str, password: str, name: str) -> None:
        """Register a principal; the profile is created on first verified login."""
        with self._busy_scope():
            try:
                principal = self.auth_gateway.sign_up(email, password, {"name": name})
            except AuthServiceError as exc:
                logger.warning("Sign-up rejected", extra={"code": exc.code})
                raise RegistrationFailedError(exc.message) from exc
            logger.info(
                "Registered principal awaiting email verification",
                extra={"user_id": str(principal.id)},
            )

    def sign_out(self) -> None:
        """Clear local state, then report a failed remote sign-out if any."""
        remote_error: AuthServiceError | None = None
        with self._busy_scope():
            try:
                self.auth_gateway.sign_out()
            except AuthServiceError as exc:
                logger.warning("Remote sign-out failed", extra={"code": exc.code})
                remote_error = exc
                self._discard_remote_session()
            self._set_state(None, None)
            try:
                self.credential_store.delete(self.session_key)
            except CredentialStoreError:
                logger.exception("Failed to delete stored session")
        if remote_error is not None:
            raise SignOutFailedError(remote_error.message) from remote_error

    def forgot_password(self, email: str) -> None:
        """Request a password reset message."""
        with self._busy_scope():
            try:
                self.auth_gateway.reset_password_for_email(email)
            except AuthServiceError as exc:
                logger.warning("Password reset request failed", extra={"code": exc.code})
                raise ResetRequestFailedError() from exc

    def _discard_remote_session(self) -> None:
        try:
            self.auth_gateway.discard_session()
        except RemoteServiceError:
            logger.exception("Failed to discard auth client session")

    def _resolve_profile(self, principal: Principal) -> UserProfile:
        try:
            existing = self.profile_repository.get_profile(principal.id)
        except DataServiceError as exc:
            logger.exception(
                "Failed to fetch profile", extra={"user_id": str(principal.id)}
            )
            raise ProfileFetchFailedError(str(principal.id)) from exc
        if existing is not None:
            return existing

        draft = ProfileDraft(
            id=principal.id,
            email=principal.email or "",
            name=derive_display_name(principal),
        )
        self._create_profile(draft)
        return self._fetch_created_profile(draft.id)

    def _create_profile(self, draft: ProfileDraft) -> None:
        user_id = str(draft.id)
        try:
            current = self.auth_gateway.get_current_principal()
        except AuthServiceError as exc:
            raise ProfileCreationFailedError(user_id, exc.message) from exc
        if current is None or current.id != draft.id:
            raise ProfileCreationFailedError(
                user_id, "authenticated principal does not match profile id"
            )

        try:
            self.profile_repository.insert_profile(draft)
        except ConflictError:
            logger.info(
                "Profile already exists, falling back to upsert",
                extra={"user_id": user_id},
            )
            try:
                self.profile_repository.upsert_profile(draft)
            except DataServiceError as exc:
                raise ProfileCreationFailedError(user_id, exc.message) from exc
        except DataServiceError as exc:
            raise ProfileCreationFailedError(user_id, exc.message) from exc

    def _fetch_created_profile(self, user_id: UUID) -> UserProfile:
        retrying = Retrying(
            stop=stop_after_attempt(max(self.profile_fetch_attempts, 1)),
            wait=wait_exponential(multiplier=self.profile_fetch_backoff_seconds),
            retry=(
                retry_if_exception_type(DataServiceError)
                | retry_if_result(lambda profile: profile is None)
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
            reraise=True,
        )
        try:
            return retrying(self.profile_repository.get_profile, user_id)
        except DataServiceError as exc:
            raise ProfileCreationFailedError(str(user_id), exc.message) from exc
        except RetryError as exc:
            raise ProfileCreationFailedError(
                str(user_id), "profile not visible after creation"
            ) from exc

    def _load_stored_session(self) -> Session | None:
        try:
            raw = self.credential_store.get(self.session_key)
        except CredentialStoreError:
            logger.exception("Failed to read stored session")
            return None
        if raw is None:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable stored session")
            return None

    def _persist_session(self, session: Session) -> None:
        try:
            self.credential_store.set(self.session_key, session.model_dump_json())
        except CredentialStoreError:
            logger.exception(
                "Failed to persist session", extra={"user_id": str(session.user.id)}
            )

    def _set_state(self, session: Session | None, user: UserProfile | None) -> None:
        self._session = session
        self._user = user
        self._notify()

    @contextmanager
    def _busy_scope(self) -> Iterator[None]:
        self._busy = True
        self._notify()
        try:
            yield
        finally:
            self._busy = False
            self._notify()

    def _notify(self) -> None:
        state = self.snapshot()
        for listener in list(self._listeners):
            listener(state)
