"""Signup-specific exceptions."""

from typing import Any

from clubhub.core.errors import AppException, ConflictError


class SignupSessionExpiredError(ConflictError):
    """The session's expiry passed; the client must start over."""

    message = "Signup session has expired"
    error_code = "signup_session_expired"


class InvalidSignupStateError(ConflictError):
    """The operation does not apply to the session's current state."""

    message = "Signup session is not in the expected state"
    error_code = "invalid_signup_state"

    def __init__(
        self,
        expected: str | list[str],
        actual: str,
        message: str | None = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            expected=expected if isinstance(expected, list) else [expected],
            actual=actual,
            **context,
        )


class SignupAlreadyCompletedError(ConflictError):
    message = "Signup session is already completed"
    error_code = "signup_already_completed"


class ActivationError(AppException):
    """Activation cannot proceed for this session."""

    message = "Tenant activation failed"
    error_code = "activation_failed"
    status_code = 409
