"""Translate Supabase client errors into Meditect remote-layer errors."""

import httpx
from supabase import AuthError, PostgrestAPIError

from meditect.errors import AuthServiceError, ConflictError, DataServiceError

UNIQUE_VIOLATION = "23505"
TRANSPORT_ERROR = "transport_error"

# Neither the auth client nor postgrest wraps connection failures.
AUTH_ERRORS = (AuthError, httpx.HTTPError)
DATA_ERRORS = (PostgrestAPIError, httpx.HTTPError)


def translate_auth_error(exc: AuthError | httpx.HTTPError) -> AuthServiceError:
    """Map an auth client or transport error, keeping its machine-readable code."""
    if isinstance(exc, httpx.HTTPError):
        return AuthServiceError(
            f"Auth service unreachable: {exc}", code=TRANSPORT_ERROR
        )
    details: dict[str, object] = {}
    status = getattr(exc, "status", None)
    if status is not None:
        details["status"] = status
    return AuthServiceError(
        getattr(exc, "message", None) or str(exc),
        code=getattr(exc, "code", None),
        details=details,
    )


def translate_data_error(exc: PostgrestAPIError | httpx.HTTPError) -> DataServiceError:
    """Map a PostgREST or transport error, singling out uniqueness violations."""
    if isinstance(exc, httpx.HTTPError):
        return DataServiceError(
            f"Data service unreachable: {exc}", code=TRANSPORT_ERROR
        )
    message = exc.message or str(exc)
    details = {"hint": exc.hint} if exc.hint else None
    if exc.code == UNIQUE_VIOLATION:
        return ConflictError(message, code=exc.code, details=details)
    return DataServiceError(message, code=exc.code, details=details)
