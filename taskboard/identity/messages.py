"""User-facing messages for identity flows."""

from .base import AuthErrorCode

RESET_EMAIL_REQUIRED = "Please enter your email address."
RESET_EMAIL_SENT = "Password reset email sent! Check your inbox."
GENERIC_ERROR = "An error occurred. Please try again."

_RESET_ERRORS: dict[AuthErrorCode, str] = {
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email address.",
    AuthErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Too many requests. Please try again later.",
}

_SIGN_IN_ERRORS: dict[AuthErrorCode, str] = {
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email address.",
    AuthErrorCode.WRONG_PASSWORD: "Incorrect email or password.",
    AuthErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorCode.EMAIL_ALREADY_IN_USE: "An account with this email already exists.",
    AuthErrorCode.WEAK_PASSWORD: "Password must be at least 6 characters.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Too many requests. Please try again later.",
}


def reset_error_message(code: AuthErrorCode | str) -> str:
    """Known error categories get a specific message, everything else the generic one."""
    try:
        code = AuthErrorCode(code)
    except ValueError:
        return GENERIC_ERROR
    return _RESET_ERRORS.get(code, GENERIC_ERROR)


def sign_in_error_message(code: AuthErrorCode | str) -> str:
    try:
        code = AuthErrorCode(code)
    except ValueError:
        return GENERIC_ERROR
    return _SIGN_IN_ERRORS.get(code, GENERIC_ERROR)
