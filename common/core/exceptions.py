class AppException(Exception):
    """Base application exception."""

    pass


class AuthenticationError(AppException):
    """Missing, malformed or rejected bearer credential."""

    pass


class VerificationError(AppException):
    """Inbound webhook failed signature verification."""

    pass


class NotFoundError(AppException):
    """Resource not found exception."""

    pass


class ValidationError(AppException):
    """Validation error exception."""

    pass


class ProviderUnavailableError(AppException):
    """Payment provider could not be reached after retries.

    Distinct from "no subscription": callers must surface this as an
    unknown state, never as inactive.
    """

    def __init__(self, message: str, operation: str = "", attempts: int = 0):
        super().__init__(message)
        self.operation = operation
        self.attempts = attempts


class ConfigurationError(AppException):
    """Required configuration missing or malformed. Fatal at startup."""

    pass
