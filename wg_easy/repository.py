"""
Peer repository for the wg-easy API.

Keeps one cached snapshot of the peer collection and mediates every remote
mutation. Any write invalidates the cache before returning, so the next read
by the same caller always refetches.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from wg_easy import qr
from wg_easy.collection import PeerCollection
from wg_easy.events import EventEmitter, EventType
from wg_easy.exceptions import (
    NotFoundError,
    OperationError,
    PeerCreationError,
    QRCodeError,
    UnauthorizedError,
)
from wg_easy.models import Peer, PeerCreate
from wg_easy.session import SessionManager
from wg_easy.transport import ApiResponse, HttpTransport
from wg_easy.validators import validate_id, validate_ip_address, validate_peer_name

logger = logging.getLogger(__name__)

PEERS_PATH = "/api/wireguard/client"


@dataclass(frozen=True)
class CacheEntry:
    """A snapshot and the monotonic instant it was fetched."""

    snapshot: PeerCollection
    fetched_at: float

    def is_valid(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at < ttl


class PeerRepository:
    """
    Cache-coherent access to the remote peer collection.

    Features:
    - TTL cache over the full collection
    - Read-after-write: mutations invalidate the cache
    - Session guard before every remote call
    - Domain events after successful mutations
    """

    DEFAULT_CACHE_TTL = 5000

    def __init__(
        self,
        transport: HttpTransport,
        sessions: SessionManager,
        events: Optional[EventEmitter] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            transport: HTTP transport shared with the session manager
            sessions: Session guard
            events: Event emitter for peer events
            cache_ttl: Cache lifetime in milliseconds
            clock: Monotonic clock in seconds
        """
        self.transport = transport
        self.sessions = sessions
        self.events = events or sessions.events
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: Optional[CacheEntry] = None

    # =========================================================================
    # Cache
    # =========================================================================

    @property
    def cache(self) -> Optional[CacheEntry]:
        return self._cache

    def is_cache_valid(self) -> bool:
        if self._cache is None:
            return False
        return self._cache.is_valid(self._clock(), self.cache_ttl / 1000)

    def invalidate_cache(self) -> None:
        self._cache = None

    # =========================================================================
    # Remote calls
    # =========================================================================

    async def _call(self, method: str, path: str, body: Optional[dict] = None) -> ApiResponse:
        await self.sessions.ensure_authenticated()
        try:
            return await self.transport.request(method, path, body=body)
        except UnauthorizedError:
            # The cookie is no longer accepted; probe again next time
            self.sessions.invalidate()
            raise

    def _check(self, response: ApiResponse, peer_id: str, action: str) -> None:
        if response.success:
            return
        if response.status_code == 404:
            raise NotFoundError(peer_id)
        raise OperationError(
            f"Failed to {action} peer {peer_id} (HTTP {response.status_code})",
            response.status_code,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def find_all(self, force_refresh: bool = False) -> PeerCollection:
        if not force_refresh and self.is_cache_valid():
            logger.debug("Returning cached peers")
            return self._cache.snapshot

        logger.debug("Fetching all peers")
        response = await self._call("GET", PEERS_PATH)

        if not response.success:
            raise OperationError(
                f"Failed to list peers (HTTP {response.status_code})", response.status_code
            )
        if not isinstance(response.data, list):
            raise OperationError("Unexpected peer list payload", response.status_code)

        snapshot = PeerCollection.from_raw_data(response.data)
        self._cache = CacheEntry(snapshot=snapshot, fetched_at=self._clock())
        return snapshot

    async def find_by_id(self, peer_id: str) -> Peer:
        validate_id(peer_id)

        peer = (await self.find_all()).get(peer_id)
        if peer is None:
            raise NotFoundError(peer_id)
        return peer

    async def find_by_name(self, name: str) -> Peer:
        peer = (await self.find_all()).find_by_name(name)
        if peer is None:
            raise NotFoundError(name)
        return peer

    async def exists(self, peer_id: str) -> bool:
        try:
            await self.find_by_id(peer_id)
        except NotFoundError:
            return False
        return True

    async def count(self) -> int:
        return len(await self.find_all())

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, dto: Union[PeerCreate, str]) -> Peer:
        """
        Create a peer and return it.

        The service acknowledges creation without returning the new id, so
        the collection is refetched and the newest peer with a matching name
        (case-insensitive) is taken as the result.
        """
        if isinstance(dto, str):
            dto = PeerCreate(name=dto)
        name = validate_peer_name(dto.name)

        logger.info(f"Creating peer: {name}")
        response = await self._call("POST", PEERS_PATH, {"name": name})
        self.invalidate_cache()

        if not response.success:
            raise OperationError(
                f"Failed to create peer {name} (HTTP {response.status_code})",
                response.status_code,
            )

        snapshot = await self.find_all(force_refresh=True)
        peer = snapshot.find_last_by_name(name)
        if peer is None:
            raise PeerCreationError(name)

        self.events.emit(EventType.PEER_CREATED, peer)
        return peer

    async def delete(self, peer_id: str) -> Peer:
        """Delete a peer and return the record that was removed."""
        peer = await self.find_by_id(peer_id)

        logger.info(f"Deleting peer: {peer.name} ({peer_id})")
        response = await self._call("DELETE", f"{PEERS_PATH}/{peer_id}")
        self.invalidate_cache()
        self._check(response, peer_id, "delete")

        self.events.emit(EventType.PEER_DELETED, peer)
        return peer

    async def _mutate(
        self,
        peer_id: str,
        method: str,
        action: str,
        body: Optional[dict],
        event: EventType,
    ) -> Peer:
        response = await self._call(method, f"{PEERS_PATH}/{peer_id}/{action}", body)
        self.invalidate_cache()
        self._check(response, peer_id, action)

        if isinstance(response.data, dict) and response.data.get("id") == peer_id:
            peer = Peer.model_validate(response.data)
        else:
            peer = await self.find_by_id(peer_id)

        self.events.emit(event, peer)
        return peer

    async def rename(self, peer_id: str, name: str) -> Peer:
        validate_id(peer_id)
        name = validate_peer_name(name)

        logger.info(f"Renaming peer {peer_id} to {name}")
        return await self._mutate(peer_id, "PUT", "name", {"name": name}, EventType.PEER_UPDATED)

    async def update_address(self, peer_id: str, address: str) -> Peer:
        validate_id(peer_id)
        validate_ip_address(address)

        logger.info(f"Updating address of peer {peer_id} to {address}")
        return await self._mutate(
            peer_id, "PUT", "address", {"address": address}, EventType.PEER_UPDATED
        )

    async def enable(self, peer_id: str) -> Peer:
        validate_id(peer_id)

        logger.info(f"Enabling peer {peer_id}")
        return await self._mutate(peer_id, "POST", "enable", None, EventType.PEER_ENABLED)

    async def disable(self, peer_id: str) -> Peer:
        validate_id(peer_id)

        logger.info(f"Disabling peer {peer_id}")
        return await self._mutate(peer_id, "POST", "disable", None, EventType.PEER_DISABLED)

    # =========================================================================
    # Configuration export
    # =========================================================================

    async def get_configuration(self, peer_id: str) -> str:
        """Fetch the peer's WireGuard configuration as text."""
        validate_id(peer_id)

        logger.debug(f"Getting configuration for peer {peer_id}")
        response = await self._call("GET", f"{PEERS_PATH}/{peer_id}/configuration")
        self._check(response, peer_id, "get configuration of")

        if not isinstance(response.data, str) or not response.data:
            raise OperationError(f"Failed to get configuration for peer {peer_id}")
        return response.data

    async def get_qr_code(self, peer_id: str) -> str:
        """Render the peer's configuration as an SVG QR code."""
        configuration = await self.get_configuration(peer_id)

        logger.debug(f"Generating QR code for peer {peer_id}")
        try:
            return qr.render_svg(configuration)
        except Exception as e:
            logger.error(f"Failed to generate QR code for peer {peer_id}: {e}")
            raise QRCodeError(peer_id, str(e)) from e
