"""Server-side error taxonomy.

Learn: Services raise these, never HTTPException. A single exception
handler in main.py renders any NimbusError as {"error": message} with
its status_code, so routes stay free of try/except boilerplate.

Token errors are precise here (invalid vs expired) for logs, but the
access guard collapses both into one "unauthorized" response.
"""

from typing import Optional

CONFIGURATION_ERROR_MESSAGE = (
    "Server configuration error: JWT_SECRET is missing. "
    "Please configure it in your .env file."
)


class NimbusError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Response body for this error."""
        return {"error": self.message}


class ValidationError(NimbusError):
    """Malformed or missing input the client can correct."""

    status_code = 400


class ConflictError(NimbusError):
    """A uniqueness constraint (email or username) would be violated."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthenticationError(NimbusError):
    """Bad credentials. The message never says which part was wrong."""

    status_code = 401


class ConfigurationError(NimbusError):
    """Deployment-level misconfiguration (e.g. no signing secret)."""

    status_code = 500

    def __init__(self, message: str = CONFIGURATION_ERROR_MESSAGE):
        super().__init__(message)


class TokenError(NimbusError):
    """Raised when a bearer token cannot be verified."""

    status_code = 401


class InvalidTokenError(TokenError):
    """Malformed token, bad signature, or missing claims."""


class ExpiredTokenError(TokenError):
    """Signature is fine but the validity window has passed."""


class UpstreamError(NimbusError):
    """The weather provider answered with an error, relayed as-is."""

    def __init__(self, message: str, status_code: int = 502, code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.code is not None:
            body["code"] = self.code
        return body
