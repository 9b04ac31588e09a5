"""Higher-level peer operations built on the repository."""

import logging
from typing import Optional

from wg_easy.collection import PeerCollection
from wg_easy.exceptions import NotFoundError
from wg_easy.models import PaginatedResult, Peer, PeerCreate, PeerFilter, PeerStatistics
from wg_easy.repository import PeerRepository

logger = logging.getLogger(__name__)


class PeerService:
    """
    Peer operations for application code.

    Queries run over the repository's cached snapshot; bulk operations run
    sequentially so each one sees the previous one's effect.
    """

    def __init__(self, repository: PeerRepository):
        self.repository = repository

    async def get_all(self, force_refresh: bool = False) -> PeerCollection:
        return await self.repository.find_all(force_refresh=force_refresh)

    async def get_by_id(self, peer_id: str) -> Peer:
        return await self.repository.find_by_id(peer_id)

    async def get_by_name(self, name: str) -> Optional[Peer]:
        try:
            return await self.repository.find_by_name(name)
        except NotFoundError:
            return None

    async def create(self, name: str) -> Peer:
        return await self.repository.create(PeerCreate(name=name))

    async def delete(self, peer_id: str) -> Peer:
        return await self.repository.delete(peer_id)

    async def delete_by_name(self, name: str) -> Optional[Peer]:
        """Delete the first peer with this name, if any."""
        peer = await self.get_by_name(name)
        if peer is None:
            return None
        return await self.delete(peer.id)

    async def enable(self, peer_id: str) -> Peer:
        return await self.repository.enable(peer_id)

    async def disable(self, peer_id: str) -> Peer:
        return await self.repository.disable(peer_id)

    async def toggle(self, peer_id: str) -> Peer:
        peer = await self.get_by_id(peer_id)
        if peer.enabled:
            return await self.disable(peer_id)
        return await self.enable(peer_id)

    async def rename(self, peer_id: str, name: str) -> Peer:
        return await self.repository.rename(peer_id, name)

    async def update_address(self, peer_id: str, address: str) -> Peer:
        return await self.repository.update_address(peer_id, address)

    async def get_configuration(self, peer_id: str) -> str:
        return await self.repository.get_configuration(peer_id)

    async def get_qr_code(self, peer_id: str) -> str:
        return await self.repository.get_qr_code(peer_id)

    # Queries

    async def filter(self, filters: Optional[PeerFilter] = None, **criteria) -> PeerCollection:
        return (await self.get_all()).filter_by(filters, **criteria)

    async def search(self, query: str) -> PeerCollection:
        return (await self.get_all()).search(query)

    async def paginate(self, page: int = 1, limit: int = 10) -> PaginatedResult:
        return (await self.get_all()).paginate(page, limit)

    async def get_online(self) -> PeerCollection:
        return (await self.get_all()).get_online()

    async def get_offline(self) -> PeerCollection:
        return (await self.get_all()).get_offline()

    async def get_enabled(self) -> PeerCollection:
        return (await self.get_all()).get_enabled()

    async def get_disabled(self) -> PeerCollection:
        return (await self.get_all()).get_disabled()

    async def get_statistics(self) -> PeerStatistics:
        return (await self.get_all()).get_statistics()

    async def count(self) -> int:
        return await self.repository.count()

    async def exists(self, peer_id: str) -> bool:
        return await self.repository.exists(peer_id)

    # Bulk operations

    async def bulk_create(self, names: list[str]) -> list[Peer]:
        return [await self.create(name) for name in names]

    async def bulk_delete(self, peer_ids: list[str]) -> list[Peer]:
        return [await self.delete(peer_id) for peer_id in peer_ids]

    async def bulk_enable(self, peer_ids: list[str]) -> list[Peer]:
        return [await self.enable(peer_id) for peer_id in peer_ids]

    async def bulk_disable(self, peer_ids: list[str]) -> list[Peer]:
        return [await self.disable(peer_id) for peer_id in peer_ids]
