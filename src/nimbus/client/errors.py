"""Client-side error taxonomy.

Learn: The split that matters is "the server said no" vs "we never got
an answer". Only an explicit 401 from the server ends a session;
timeouts and network errors leave it alone so a flaky connection never
logs anybody out.
"""

from typing import Optional

TIMEOUT_MESSAGE = "Request timeout. Please check your connection and try again."
NETWORK_MESSAGE = "Network error. Please check your connection."


class ClientError(Exception):
    """Base class for everything the client raises."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestTimeoutError(ClientError, TimeoutError):
    """The call did not finish inside the time budget and was cancelled."""

    def __init__(self, message: str = TIMEOUT_MESSAGE):
        super().__init__(message)


class NetworkError(ClientError):
    """The server could not be reached."""

    def __init__(self, message: str = NETWORK_MESSAGE):
        super().__init__(message)


class AuthRequestError(ClientError):
    """The server answered register/login with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServerConfigurationError(AuthRequestError):
    """The server reported that it is misconfigured. Retrying won't help."""


class MissingTokenError(ClientError):
    """A success response arrived without a token."""

    def __init__(self, message: str = "No token received from server"):
        super().__init__(message)


class SupersededError(ClientError):
    """A newer login, register or logout replaced this call before it resolved."""

    def __init__(self, message: str = "Request superseded by a newer session change"):
        super().__init__(message)


class StorageError(ClientError):
    """The session could not be saved on this device."""

    def __init__(self, message: str = "Unable to save your session on this device."):
        super().__init__(message)


class NotAuthenticatedError(ClientError):
    """A protected call was attempted without a session."""

    def __init__(self, message: str = "You are not authenticated. Please login again."):
        super().__init__(message)


class UnauthorizedError(ClientError):
    """The server rejected the session token. The session has been cleared."""

    def __init__(self, message: str = "Session expired. Please login again."):
        super().__init__(message)


class WeatherRequestError(ClientError):
    """A weather lookup failed for a reason other than authentication."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
