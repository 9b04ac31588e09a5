"""
wg-easy client - Python access layer for the wg-easy WireGuard manager.

Authenticates against the wg-easy HTTP API, manages peers with
read-after-write caching and offers in-memory queries over the peer list.

Usage:
    from wg_easy import WgEasyClient

    async with await WgEasyClient.connect(base_url="http://localhost:51821",
                                           password="secret") as wg:
        online = (await wg.get_peers()).get_online()
"""

from wg_easy.client import WgEasyClient
from wg_easy.collection import PeerCollection
from wg_easy.config import Config
from wg_easy.events import DomainEvent, EventEmitter, EventType
from wg_easy.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    NetworkError,
    NotFoundError,
    OperationError,
    PeerCreationError,
    QRCodeError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    UnauthorizedError,
    ValidationError,
    WgEasyError,
)
from wg_easy.models import (
    PaginatedResult,
    Peer,
    PeerCreate,
    PeerFilter,
    PeerStatistics,
    ServerStatus,
)
from wg_easy.repository import PeerRepository
from wg_easy.session import Session, SessionManager
from wg_easy.transport import ApiResponse, HttpTransport

__version__ = "0.1.0"
__all__ = [
    # Client
    "WgEasyClient",
    "Config",
    # Core components
    "HttpTransport",
    "ApiResponse",
    "SessionManager",
    "Session",
    "PeerRepository",
    "PeerCollection",
    "EventEmitter",
    "EventType",
    "DomainEvent",
    # Models
    "Peer",
    "PeerCreate",
    "PeerFilter",
    "PaginatedResult",
    "PeerStatistics",
    "ServerStatus",
    # Exceptions
    "WgEasyError",
    "ErrorKind",
    "ConfigurationError",
    "AuthenticationError",
    "UnauthorizedError",
    "RateLimitedError",
    "RequestTimeoutError",
    "NetworkError",
    "ServerError",
    "NotFoundError",
    "ValidationError",
    "OperationError",
    "PeerCreationError",
    "QRCodeError",
]
