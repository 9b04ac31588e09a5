"""
Tests for PeerRepository: caching, read-after-write and mutations.
"""

import httpx
import pytest

from conftest import BASE_URL, PASSWORD, EventLog, FakeWgEasy, make_peer_data
from wg_easy.events import EventEmitter, EventType
from wg_easy.exceptions import (
    NotFoundError,
    OperationError,
    PeerCreationError,
    QRCodeError,
    UnauthorizedError,
    ValidationError,
)
from wg_easy.repository import PEERS_PATH, CacheEntry, PeerRepository
from wg_easy.session import SessionManager
from wg_easy.transport import HttpTransport


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return EventEmitter()


@pytest.fixture
async def repository(server, clock, events):
    http = HttpTransport(BASE_URL, retry_delay=0, transport=httpx.MockTransport(server.handler))
    sessions = SessionManager(http, PASSWORD, events)
    repo = PeerRepository(http, sessions, events, cache_ttl=5000, clock=clock)
    yield repo
    await http.close()


def list_calls(server: FakeWgEasy) -> int:
    return server.calls("GET", PEERS_PATH)


class TestCache:
    """Test the TTL cache over the peer list."""

    def test_cache_entry_validity(self):
        entry = CacheEntry(snapshot=None, fetched_at=10.0)
        assert entry.is_valid(14.9, 5.0) is True
        assert entry.is_valid(15.0, 5.0) is False

    @pytest.mark.asyncio
    async def test_reads_within_ttl_share_one_fetch(self, repository, server, clock):
        first = await repository.find_all()
        clock.advance(4.9)
        second = await repository.find_all()

        assert list_calls(server) == 1
        assert first is second
        assert first.size == 2

    @pytest.mark.asyncio
    async def test_refetch_after_ttl(self, repository, server, clock):
        await repository.find_all()
        clock.advance(5.0)
        await repository.find_all()

        assert list_calls(server) == 2

    @pytest.mark.asyncio
    async def test_force_refresh(self, repository, server):
        await repository.find_all()
        await repository.find_all(force_refresh=True)

        assert list_calls(server) == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self, repository, server):
        repository.cache_ttl = 0

        await repository.find_all()
        await repository.find_all()

        assert list_calls(server) == 2

    @pytest.mark.asyncio
    async def test_invalidate_cache(self, repository, server):
        await repository.find_all()
        assert repository.is_cache_valid() is True

        repository.invalidate_cache()

        assert repository.cache is None
        assert repository.is_cache_valid() is False

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated_from_later_writes(self, repository):
        before = await repository.find_all()

        await repository.create("tablet")
        after = await repository.find_all()

        assert before.size == 2
        assert after.size == 3

    @pytest.mark.asyncio
    async def test_list_failure_raises(self, repository, server):
        await repository.sessions.ensure_authenticated()
        server.queued = [httpx.Response(403, json={"error": "Forbidden"})]

        with pytest.raises(OperationError) as exc_info:
            await repository.find_all()

        assert exc_info.value.status_code == 403


class TestReads:
    """Test lookups through the cached collection."""

    @pytest.mark.asyncio
    async def test_find_by_id(self, repository):
        peer = await repository.find_by_id("peer-1")
        assert peer.name == "laptop"

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            await repository.find_by_id("nope")

        assert exc_info.value.peer_id == "nope"

    @pytest.mark.asyncio
    async def test_find_by_id_rejects_empty(self, repository, server):
        with pytest.raises(ValidationError):
            await repository.find_by_id("")

        assert server.requests == []

    @pytest.mark.asyncio
    async def test_find_by_name_ignores_case(self, repository):
        peer = await repository.find_by_name("LAPTOP")
        assert peer.id == "peer-1"

    @pytest.mark.asyncio
    async def test_find_by_name_missing(self, repository):
        with pytest.raises(NotFoundError):
            await repository.find_by_name("tablet")

    @pytest.mark.asyncio
    async def test_exists_and_count(self, repository, server):
        assert await repository.exists("peer-2") is True
        assert await repository.exists("peer-9") is False
        assert await repository.count() == 2
        assert list_calls(server) == 1


class TestCreate:
    """Test peer creation."""

    @pytest.mark.asyncio
    async def test_create(self, repository, server, events):
        created = EventLog()
        events.on(EventType.PEER_CREATED, created)

        peer = await repository.create("dev-1")

        assert peer.name == "dev-1"
        assert peer.id == "new-1"
        assert len(created) == 1
        assert created[0].peer == peer
        assert server.calls("POST", PEERS_PATH) == 1

    @pytest.mark.asyncio
    async def test_read_after_create(self, repository, server):
        await repository.find_all()

        await repository.create("dev-1")
        peers = await repository.find_all()

        assert "new-1" in peers

    @pytest.mark.asyncio
    async def test_create_strips_name(self, repository, server):
        peer = await repository.create("  dev-1  ")
        assert peer.name == "dev-1"

    @pytest.mark.asyncio
    async def test_create_invalid_name(self, repository, server):
        with pytest.raises(ValidationError):
            await repository.create("bad name!")

        assert server.requests == []

    @pytest.mark.asyncio
    async def test_create_picks_newest_duplicate(self, repository, server):
        first = await repository.create("twin")
        second = await repository.create("twin")

        assert first.id == "new-1"
        assert second.id == "new-2"

    @pytest.mark.asyncio
    async def test_create_not_located(self, repository, server):
        await repository.sessions.ensure_authenticated()
        server.queued = [httpx.Response(200, json={"success": True})]

        with pytest.raises(PeerCreationError) as exc_info:
            await repository.create("ghost")

        assert exc_info.value.name == "ghost"

    @pytest.mark.asyncio
    async def test_create_rejected(self, repository, server):
        await repository.sessions.ensure_authenticated()
        server.queued = [httpx.Response(400, json={"error": "Bad Request"})]

        with pytest.raises(OperationError):
            await repository.create("dev-1")


class TestDelete:
    """Test peer deletion."""

    @pytest.mark.asyncio
    async def test_delete(self, repository, server, events):
        deleted = EventLog()
        events.on(EventType.PEER_DELETED, deleted)

        peer = await repository.delete("peer-1")

        assert peer.id == "peer-1"
        assert deleted[0].peer.id == "peer-1"
        with pytest.raises(NotFoundError):
            await repository.find_by_id("peer-1")

    @pytest.mark.asyncio
    async def test_delete_missing(self, repository, server):
        with pytest.raises(NotFoundError):
            await repository.delete("nope")

        assert server.calls("DELETE", f"{PEERS_PATH}/nope") == 0

    @pytest.mark.asyncio
    async def test_create_then_delete(self, repository):
        peer = await repository.create("dev-1")

        await repository.delete(peer.id)

        with pytest.raises(NotFoundError):
            await repository.find_by_id(peer.id)

    @pytest.mark.asyncio
    async def test_delete_removed_remotely(self, repository, server):
        await repository.find_all()
        server.peers = [p for p in server.peers if p["id"] != "peer-1"]

        with pytest.raises(NotFoundError):
            await repository.delete("peer-1")

        assert repository.cache is None


class TestMutations:
    """Test enable, disable, rename and address updates."""

    @pytest.mark.asyncio
    async def test_disable(self, repository, events):
        received = EventLog()
        events.on(EventType.PEER_DISABLED, received)

        peer = await repository.disable("peer-1")

        assert peer.enabled is False
        assert received[0].peer.enabled is False

    @pytest.mark.asyncio
    async def test_enable(self, repository, events):
        received = EventLog()
        events.on(EventType.PEER_ENABLED, received)

        peer = await repository.enable("peer-2")

        assert peer.enabled is True
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_read_after_write(self, repository, server, clock):
        await repository.find_all()

        await repository.disable("peer-1")
        peer = await repository.find_by_id("peer-1")

        assert peer.enabled is False

    @pytest.mark.asyncio
    async def test_rename(self, repository, events):
        received = EventLog()
        events.on(EventType.PEER_UPDATED, received)

        peer = await repository.rename("peer-1", "workstation")

        assert peer.name == "workstation"
        assert received[0].type == EventType.PEER_UPDATED

    @pytest.mark.asyncio
    async def test_rename_invalid(self, repository, server):
        with pytest.raises(ValidationError):
            await repository.rename("peer-1", "")

        assert server.requests == []

    @pytest.mark.asyncio
    async def test_update_address(self, repository):
        peer = await repository.update_address("peer-1", "10.8.0.50")
        assert peer.address == "10.8.0.50"

    @pytest.mark.asyncio
    async def test_update_address_invalid(self, repository, server):
        with pytest.raises(ValidationError):
            await repository.update_address("peer-1", "10.8.0.300")

        assert server.requests == []

    @pytest.mark.asyncio
    async def test_mutation_uses_returned_peer(self, repository, server):
        server.return_updated_peer = True

        await repository.disable("peer-1")

        # The response carried the peer, no list refetch was needed
        assert list_calls(server) == 0

    @pytest.mark.asyncio
    async def test_mutation_missing_peer(self, repository):
        with pytest.raises(NotFoundError):
            await repository.enable("nope")

    @pytest.mark.asyncio
    async def test_mutation_failure_invalidates(self, repository, server):
        await repository.find_all()
        server.queued = [httpx.Response(400, json={"error": "Bad Request"})]

        with pytest.raises(OperationError):
            await repository.disable("peer-1")

        assert repository.cache is None


class TestConfiguration:
    """Test configuration and QR export."""

    @pytest.mark.asyncio
    async def test_get_configuration(self, repository):
        configuration = await repository.get_configuration("peer-1")

        assert configuration.startswith("[Interface]")
        assert "Address = 10.8.0.2/24" in configuration

    @pytest.mark.asyncio
    async def test_get_configuration_missing(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_configuration("nope")

    @pytest.mark.asyncio
    async def test_get_configuration_empty(self, repository, server):
        await repository.sessions.ensure_authenticated()
        server.queued = [httpx.Response(200, text="")]

        with pytest.raises(OperationError):
            await repository.get_configuration("peer-1")

    @pytest.mark.asyncio
    async def test_get_qr_code(self, repository):
        svg = await repository.get_qr_code("peer-1")

        assert "<svg" in svg

    @pytest.mark.asyncio
    async def test_get_qr_code_encoder_failure(self, repository, monkeypatch):
        def broken(data):
            raise ValueError("data too long")

        monkeypatch.setattr("wg_easy.repository.qr.render_svg", broken)

        with pytest.raises(QRCodeError) as exc_info:
            await repository.get_qr_code("peer-1")

        assert "data too long" in str(exc_info.value)


class TestSessionGuard:
    """Test authentication around repository calls."""

    @pytest.mark.asyncio
    async def test_logs_in_on_first_call(self, repository, server):
        await repository.find_all()

        assert server.calls("POST", "/api/session") == 1

    @pytest.mark.asyncio
    async def test_unauthorized_invalidates_session(self, repository, server):
        await repository.find_all()
        server._sessions.clear()
        repository.invalidate_cache()

        # Local session still looks valid, so the list call is sent and rejected
        with pytest.raises(UnauthorizedError):
            await repository.find_all()

        assert repository.sessions.session is None

        peers = await repository.find_all()
        assert peers.size == 2
        assert server.calls("POST", "/api/session") == 2

    @pytest.mark.asyncio
    async def test_open_server(self, clock):
        server = FakeWgEasy(password=None, peers=[make_peer_data()])
        http = HttpTransport(BASE_URL, transport=httpx.MockTransport(server.handler))
        repo = PeerRepository(http, SessionManager(http), clock=clock)

        peers = await repo.find_all()

        assert peers.size == 1
        await http.close()
