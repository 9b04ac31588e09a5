"""wg-easy API client."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from wg_easy.collection import PeerCollection
from wg_easy.config import Config
from wg_easy.events import EventEmitter, EventHandler, EventType
from wg_easy.models import Peer
from wg_easy.repository import PeerRepository
from wg_easy.services import ConfigService, PeerService
from wg_easy.session import Session, SessionManager
from wg_easy.transport import HttpTransport

logger = logging.getLogger(__name__)


class WgEasyClient:
    """
    Entry point for talking to a wg-easy server.

    Each instance owns its own cookie jar, session and cache.

    Example:
        async with await WgEasyClient.connect(base_url="http://localhost:51821",
                                               password="secret") as wg:
            peer = await wg.create_peer("laptop")
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **options: Any,
    ):
        """
        Args:
            config: Prepared configuration; keyword options build one otherwise
            transport: Optional httpx transport, used by tests
            **options: Config fields (base_url, password, timeout, ...)
        """
        self.config = config or Config(**options)
        self.events = EventEmitter()

        self.http = HttpTransport(
            self.config.base_url,
            timeout=self.config.timeout,
            retry_attempts=self.config.retry_attempts,
            retry_delay=self.config.retry_delay,
            transport=transport,
        )
        self.auth = SessionManager(self.http, self.config.password, self.events)
        self.repository = PeerRepository(
            self.http, self.auth, self.events, cache_ttl=self.config.cache_ttl
        )
        self.peers = PeerService(self.repository)
        self.configs = ConfigService(self.peers)

        self._initialized = False

    # Factories

    @classmethod
    def from_env(cls, **kwargs: Any) -> "WgEasyClient":
        return cls(Config.from_env(), **kwargs)

    @classmethod
    async def connect(cls, config: Optional[Config] = None, **options: Any) -> "WgEasyClient":
        """Create a client and authenticate it."""
        client = cls(config, **options)
        await client.initialize()
        return client

    async def initialize(self) -> None:
        if self._initialized:
            return

        logger.info("Initializing wg-easy client")
        await self.auth.ensure_authenticated()
        self._initialized = True

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "WgEasyClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # Session

    async def login(self, password: Optional[str] = None) -> Session:
        return await self.auth.login(password)

    async def logout(self) -> None:
        await self.auth.logout()

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def get_config(self) -> dict[str, Any]:
        return self.config.to_dict()

    # Peer shortcuts

    async def get_peers(self) -> PeerCollection:
        return await self.peers.get_all()

    async def get_peer(self, peer_id: str) -> Peer:
        return await self.peers.get_by_id(peer_id)

    async def create_peer(self, name: str) -> Peer:
        return await self.peers.create(name)

    async def delete_peer(self, peer_id: str) -> Peer:
        return await self.peers.delete(peer_id)

    async def enable_peer(self, peer_id: str) -> Peer:
        return await self.peers.enable(peer_id)

    async def disable_peer(self, peer_id: str) -> Peer:
        return await self.peers.disable(peer_id)

    async def get_peer_config(self, peer_id: str) -> str:
        return await self.peers.get_configuration(peer_id)

    async def get_peer_qr_code(self, peer_id: str) -> str:
        return await self.peers.get_qr_code(peer_id)

    # Events

    def on(self, event: EventType, handler: EventHandler) -> "WgEasyClient":
        self.events.on(event, handler)
        return self

    def off(self, event: EventType, handler: EventHandler) -> "WgEasyClient":
        self.events.off(event, handler)
        return self

    def once(self, event: EventType, handler: EventHandler) -> "WgEasyClient":
        self.events.once(event, handler)
        return self
