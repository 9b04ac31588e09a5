"""
Exceptions for the wg-easy client.

Every error carries a closed ``ErrorKind`` so callers can branch either with
``except NotFoundError`` or with ``match err.kind``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Kinds of failure the client can report."""

    CONFIGURATION = "config_error"
    AUTHENTICATION = "auth_failed"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK = "network_error"
    SERVER = "server_error"
    NOT_FOUND = "peer_not_found"
    VALIDATION = "validation_error"
    OPERATION = "operation_failed"


class WgEasyError(Exception):
    """Base exception for the wg-easy client."""

    kind: ErrorKind = ErrorKind.OPERATION

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.timestamp = datetime.now()

    @property
    def code(self) -> str:
        return self.kind.value.upper()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(WgEasyError):
    """Missing or invalid client configuration."""

    kind = ErrorKind.CONFIGURATION


class AuthenticationError(WgEasyError):
    """Login failed or no credential is available."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class UnauthorizedError(WgEasyError):
    """The service answered 401; the session must be re-established."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message, status_code=401)


class RateLimitedError(WgEasyError):
    """The service answered 429."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: float = 60.0):
        super().__init__(f"Rate limit exceeded, retry after {retry_after}s", status_code=429)
        self.retry_after = retry_after


class RequestTimeoutError(WgEasyError):
    """A single request exceeded the configured timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_ms: int):
        super().__init__(f"Request timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class NetworkError(WgEasyError):
    """All attempts of a request failed."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ServerError(WgEasyError):
    """The service answered with a 5xx status."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str, status_code: int):
        super().__init__(message, status_code=status_code)


class NotFoundError(WgEasyError):
    """Peer not found in the collection."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, peer_id: str):
        super().__init__(f"Peer not found: {peer_id}", status_code=404)
        self.peer_id = peer_id


class ValidationError(WgEasyError):
    """Caller input rejected before any network call."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(f"Validation error for '{field}': {message}")
        self.field = field
        self.value = value


class OperationError(WgEasyError):
    """A remote operation returned without the expected result."""

    kind = ErrorKind.OPERATION


class PeerCreationError(OperationError):
    """The create call succeeded but the new peer cannot be located."""

    def __init__(self, name: str):
        super().__init__(f"Created peer not found: {name}")
        self.name = name


class QRCodeError(OperationError):
    """The QR encoder failed to render a configuration."""

    def __init__(self, peer_id: str, reason: str = ""):
        msg = f"Failed to generate QR code for peer {peer_id}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.peer_id = peer_id
        self.reason = reason
