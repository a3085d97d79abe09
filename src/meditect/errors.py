"""
Exception hierarchy for Meditect.

Adapters translate third-party client errors into the remote-layer
exceptions below. Services translate those into the operation-level
exceptions that callers render as user-facing messages.
"""

from typing import Any


class MeditectError(Exception):
    """Base exception for all Meditect errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a serializable dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Remote layer


class RemoteServiceError(MeditectError):
    """Error communicating with the hosted backend."""

    def __init__(
        self,
        message: str,
        service: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class AuthServiceError(RemoteServiceError):
    """The auth surface rejected a request."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, service="auth", code=code, details=details)


class DataServiceError(RemoteServiceError):
    """A table read or write failed."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, service="data", code=code, details=details)


class ConflictError(DataServiceError):
    """A write violated a uniqueness constraint."""


class CredentialStoreError(MeditectError):
    """Reading, writing or deleting a secure store entry failed."""


# Session and profile workflow


class AuthWorkflowError(MeditectError):
    """Base class for failures surfaced by the auth workflow."""


class InvalidCredentialsError(AuthWorkflowError):
    """Raised when the email/password pair is rejected."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class EmailNotVerifiedError(AuthWorkflowError):
    """Raised when the principal has not confirmed their email address."""

    def __init__(
        self,
        message: str = (
            "Please verify your email address before signing in. "
            "Check your inbox for the verification link."
        ),
    ):
        super().__init__(message, code="EMAIL_NOT_VERIFIED")


class ProfileFetchFailedError(AuthWorkflowError):
    """Raised when the profile row could not be read."""

    def __init__(self, user_id: str):
        super().__init__(
            "Failed to fetch user profile",
            code="PROFILE_FETCH_FAILED",
            details={"user_id": user_id},
        )


class ProfileCreationFailedError(AuthWorkflowError):
    """Raised when the profile row could not be created or confirmed."""

    def __init__(self, user_id: str, reason: str):
        super().__init__(
            "Failed to create user profile",
            code="PROFILE_CREATION_FAILED",
            details={"user_id": user_id, "reason": reason},
        )


class RegistrationFailedError(AuthWorkflowError):
    """Raised when sign-up is rejected; carries the remote reason."""

    def __init__(self, reason: str):
        super().__init__(
            f"Registration failed: {reason}",
            code="REGISTRATION_FAILED",
            details={"reason": reason},
        )
        self.reason = reason


class ResetRequestFailedError(AuthWorkflowError):
    """Raised when a password reset could not be requested."""

    def __init__(self):
        super().__init__(
            "Failed to request a password reset. Please try again later.",
            code="RESET_REQUEST_FAILED",
        )


class SignOutFailedError(AuthWorkflowError):
    """Raised after local sign-out when the remote session was not ended."""

    def __init__(self, reason: str):
        super().__init__(
            "Signed out locally, but the server session could not be ended",
            code="SIGN_OUT_FAILED",
            details={"reason": reason},
        )


class NotAuthenticatedError(AuthWorkflowError):
    """Raised when an operation needs a signed-in user."""

    def __init__(self, message: str = "You must be logged in"):
        super().__init__(message, code="NOT_AUTHENTICATED")


# Medicine catalogue


class MedicineError(MeditectError):
    """Base class for medicine catalogue failures."""


class InvalidMedicineError(MedicineError):
    """Raised when a scan result lacks the fields needed to save it."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing medicine information: {', '.join(missing)}",
            code="INVALID_MEDICINE",
            details={"missing": missing},
        )


class MedicineNotFoundError(MedicineError):
    """Raised when a medicine record does not exist for the user."""

    def __init__(self, medicine_id: str):
        super().__init__(
            f"Medicine not found: {medicine_id}",
            code="MEDICINE_NOT_FOUND",
            details={"medicine_id": medicine_id},
        )


class MedicineSaveFailedError(MedicineError):
    """Raised when a medicine record could not be stored."""

    def __init__(self, reason: str):
        super().__init__(
            "Failed to save medicine information",
            code="MEDICINE_SAVE_FAILED",
            details={"reason": reason},
        )


# Medicine recognition


class RecognitionError(MeditectError):
    """Raised when no usable medicine details came back for a photo."""

    def __init__(self, reason: str):
        super().__init__(
            "Could not read the medicine package. Please try another photo.",
            code="RECOGNITION_FAILED",
            details={"reason": reason},
        )
        self.reason = reason
