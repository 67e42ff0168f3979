"""Domain errors raised by the auth services.

Services raise these; route handlers translate them into HTTP responses.
The default status_code is what most routes use, but a route may map an
error differently (login answers 404 for an unknown email, session
verification answers 401).
"""


class TollgateError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ValidationError(TollgateError):
    status_code = 400
    default_message = "Invalid request"


class UserNotFound(TollgateError):
    status_code = 404
    default_message = "User not found"


class EmailAlreadyExists(TollgateError):
    status_code = 409
    default_message = "Email already exists"


class Unauthorized(TollgateError):
    """Bad password, bad or expired token or session."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid password"


class InvalidSession(Unauthorized):
    default_message = "Invalid session"


class SessionExpired(Unauthorized):
    default_message = "Session expired"


class SessionNotFound(Unauthorized):
    default_message = "Session not found"


class InvalidToken(Unauthorized):
    default_message = "Invalid token"


class SessionEncryptionError(TollgateError):
    """Encrypting a session envelope failed. Never downgraded to plaintext."""
