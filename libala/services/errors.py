"""Domain exceptions raised by the identity services.

Routes translate these into HTTP responses; the services never build
responses themselves.
"""


class AuthError(Exception):
    """Base class for authentication and token failures."""

    message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class InvalidCredentialsError(AuthError):
    """Unknown email, missing password hash or wrong password.

    The three cases share one message so responses never reveal whether an
    account exists.
    """

    message = "Invalid email or password."


class EmailNotVerifiedError(AuthError):
    """Correct password, but the account's email is not confirmed yet."""

    message = "Account not verified. Please confirm your email address."

    def __init__(self, email: str) -> None:
        super().__init__()
        self.email = email


class InvalidTokenError(AuthError):
    """Unknown, expired, already used or wrong-purpose one-time token."""

    message = "Invalid or expired link."
