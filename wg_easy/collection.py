"""
Immutable, queryable snapshot of peers.

Every transformation returns a new PeerCollection, so a caller holding an
earlier snapshot never observes later changes.
"""

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any, Callable, Optional

from wg_easy.exceptions import ValidationError
from wg_easy.models import PaginatedResult, Peer, PeerFilter, PeerStatistics, utcnow


class PeerCollection:
    """Insertion-ordered mapping of peer id to Peer."""

    def __init__(self, peers: Iterable[Peer] = ()):
        # Later duplicates replace earlier ones but keep the first position
        self._peers: dict[str, Peer] = {}
        for peer in peers:
            self._peers[peer.id] = peer

    @classmethod
    def from_raw_data(cls, data: Iterable[dict[str, Any]]) -> "PeerCollection":
        return cls(Peer.model_validate(item) for item in data)

    def __len__(self) -> int:
        return len(self._peers)

    def __iter__(self) -> Iterator[Peer]:
        return iter(self._peers.values())

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._peers

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PeerCollection):
            return NotImplemented
        return list(self._peers.items()) == list(other._peers.items())

    def __repr__(self) -> str:
        return f"PeerCollection(size={len(self)})"

    @property
    def size(self) -> int:
        return len(self._peers)

    @property
    def is_empty(self) -> bool:
        return not self._peers

    def to_list(self) -> list[Peer]:
        return list(self._peers.values())

    def ids(self) -> list[str]:
        return list(self._peers)

    def get(self, peer_id: str) -> Optional[Peer]:
        return self._peers.get(peer_id)

    def has(self, peer_id: str) -> bool:
        return peer_id in self._peers

    # =========================================================================
    # Copy-on-write updates
    # =========================================================================

    def add(self, peer: Peer) -> "PeerCollection":
        """Insert or replace a peer by id."""
        return PeerCollection([*self._peers.values(), peer])

    def remove(self, peer_id: str) -> "PeerCollection":
        return PeerCollection(p for p in self._peers.values() if p.id != peer_id)

    def update(self, peer_id: str, **updates: Any) -> "PeerCollection":
        peer = self._peers.get(peer_id)
        if peer is None:
            return self
        return self.add(peer.clone(**updates))

    # =========================================================================
    # Filtering
    # =========================================================================

    def filter(self, predicate: Callable[[Peer], bool]) -> "PeerCollection":
        return PeerCollection(p for p in self._peers.values() if predicate(p))

    def filter_by(self, filters: Optional[PeerFilter] = None, **criteria: Any) -> "PeerCollection":
        """
        Keep peers matching every given criterion.

        Accepts a PeerFilter, keyword criteria (same field names), or both;
        keyword criteria override the filter object's fields.
        """
        if filters is None:
            filters = PeerFilter(**criteria)
        elif criteria:
            filters = filters.model_copy(update=PeerFilter(**criteria).model_dump(exclude_none=True))

        now = utcnow()
        return self.filter(lambda p: filters.matches(p, now))

    def get_enabled(self) -> "PeerCollection":
        return self.filter(lambda p: p.enabled)

    def get_disabled(self) -> "PeerCollection":
        return self.filter(lambda p: not p.enabled)

    def get_online(self, now: Optional[datetime] = None) -> "PeerCollection":
        now = now or utcnow()
        return self.filter(lambda p: p.online_at(now))

    def get_offline(self, now: Optional[datetime] = None) -> "PeerCollection":
        now = now or utcnow()
        return self.filter(lambda p: not p.online_at(now))

    def search(self, query: str) -> "PeerCollection":
        """
        Match the query against name (case-insensitive), address and public
        key (both case-sensitive).
        """
        lowered = query.lower()
        return self.filter(
            lambda p: lowered in p.name.lower() or query in p.address or query in p.public_key
        )

    def find_by_name(self, name: str) -> Optional[Peer]:
        """First peer whose name equals ``name`` ignoring case."""
        lowered = name.lower()
        return next((p for p in self._peers.values() if p.name.lower() == lowered), None)

    def find_last_by_name(self, name: str) -> Optional[Peer]:
        """Newest peer whose name equals ``name`` ignoring case."""
        lowered = name.lower()
        return next((p for p in reversed(self._peers.values()) if p.name.lower() == lowered), None)

    # =========================================================================
    # Sorting
    # =========================================================================

    def sort(self, key: Callable[[Peer], Any], reverse: bool = False) -> "PeerCollection":
        return PeerCollection(sorted(self._peers.values(), key=key, reverse=reverse))

    def sort_by_name(self, ascending: bool = True) -> "PeerCollection":
        return self.sort(lambda p: (p.name.lower(), p.name, p.id), reverse=not ascending)

    def sort_by_created_at(self, ascending: bool = True) -> "PeerCollection":
        return self.sort(lambda p: (p.created_at, p.id), reverse=not ascending)

    def sort_by_transfer(self, ascending: bool = False) -> "PeerCollection":
        return self.sort(lambda p: (p.total_transfer, p.id), reverse=not ascending)

    # =========================================================================
    # Pagination and aggregates
    # =========================================================================

    def paginate(self, page: int = 1, limit: int = 10) -> PaginatedResult:
        """
        Return one 1-indexed page. Pages before the first or past the end are
        empty rather than an error.
        """
        if limit < 1:
            raise ValidationError("limit", "Limit must be at least 1", limit)

        total = len(self._peers)
        total_pages = -(-total // limit)
        if page < 1:
            items = []
        else:
            offset = (page - 1) * limit
            items = self.to_list()[offset : offset + limit]

        return PaginatedResult(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    def get_statistics(self, now: Optional[datetime] = None) -> PeerStatistics:
        now = now or utcnow()
        stats = {
            "total": 0,
            "enabled": 0,
            "disabled": 0,
            "online": 0,
            "offline": 0,
            "total_transfer_rx": 0,
            "total_transfer_tx": 0,
        }

        for peer in self._peers.values():
            stats["total"] += 1
            stats["enabled" if peer.enabled else "disabled"] += 1
            stats["online" if peer.online_at(now) else "offline"] += 1
            stats["total_transfer_rx"] += peer.transfer_rx
            stats["total_transfer_tx"] += peer.transfer_tx

        return PeerStatistics(**stats)
