"""
Pytest fixtures for the wg-easy client.

Provides peer payload factories and an in-memory wg-easy server reachable
through httpx.MockTransport.
"""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import pytest

from wg_easy.client import WgEasyClient
from wg_easy.config import Config

BASE_URL = "http://wg.test"
PASSWORD = "secret"
SESSION_COOKIE = "connect.sid"

PEER_ROUTE = re.compile(r"^/api/wireguard/client/([^/]+)(?:/(\w+))?$")


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def make_peer_data(
    peer_id: str = "peer-1",
    name: str = "laptop",
    enabled: bool = True,
    address: str = "10.8.0.2",
    public_key: Optional[str] = None,
    created_at: Optional[datetime] = None,
    handshake_ago: Optional[timedelta] = None,
    transfer_rx: int = 0,
    transfer_tx: int = 0,
) -> dict[str, Any]:
    """Peer payload in the service's camelCase shape."""
    created = created_at or datetime(2024, 1, 1, tzinfo=timezone.utc)
    now = datetime.now(timezone.utc)
    return {
        "id": peer_id,
        "name": name,
        "enabled": enabled,
        "address": address,
        "publicKey": public_key or f"PUBKEY{peer_id}xyz=",
        "createdAt": iso(created),
        "updatedAt": iso(created),
        "downloadableConfig": True,
        "persistentKeepalive": "25",
        "latestHandshakeAt": iso(now - handshake_ago) if handshake_ago is not None else None,
        "transferRx": transfer_rx,
        "transferTx": transfer_tx,
    }


class EventLog(list):
    """List usable as an event handler; records every event it receives."""

    __hash__ = object.__hash__

    def __call__(self, event) -> None:
        self.append(event)


class FakeWgEasy:
    """
    Minimal wg-easy server.

    Sessions are tracked with a cookie. Responses queued in ``queued`` are
    returned (in order) before normal routing, to script failures.
    """

    def __init__(self, password: Optional[str] = PASSWORD, peers: Optional[list[dict]] = None):
        self.password = password
        self.peers: list[dict] = list(peers or [])
        self.requests: list[httpx.Request] = []
        self.queued: list[Any] = []
        self.return_updated_peer = False
        self._sessions: set[str] = set()
        self._counter = 0

    # Helpers for assertions

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def _authenticated(self, request: httpx.Request) -> bool:
        if self.password is None:
            return True
        cookie = request.headers.get("cookie", "")
        return any(f"{SESSION_COOKIE}={sid}" in cookie for sid in self._sessions)

    def _find(self, peer_id: str) -> Optional[dict]:
        return next((p for p in self.peers if p["id"] == peer_id), None)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.queued:
            item = self.queued.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        path, method = request.url.path, request.method
        body = json.loads(request.content) if request.content else {}

        if path == "/api/session":
            return self._session(request, method, body)

        if not self._authenticated(request):
            return httpx.Response(401, json={"error": "Not Logged In"})

        if path == "/api/wireguard/client":
            if method == "GET":
                return httpx.Response(200, json=self.peers)
            if method == "POST":
                self._counter += 1
                self.peers.append(
                    make_peer_data(
                        peer_id=f"new-{self._counter}",
                        name=body["name"],
                        address=f"10.8.0.{100 + self._counter}",
                        created_at=datetime.now(timezone.utc),
                    )
                )
                return httpx.Response(200, json={"success": True})

        match = PEER_ROUTE.match(path)
        if match:
            return self._peer(method, match.group(1), match.group(2), body)

        return httpx.Response(404, json={"error": "Not Found"})

    def _session(self, request: httpx.Request, method: str, body: dict) -> httpx.Response:
        if method == "GET":
            return httpx.Response(
                200,
                json={
                    "authenticated": self._authenticated(request),
                    "requiresPassword": self.password is not None,
                },
            )
        if method == "POST":
            if body.get("password") != self.password:
                return httpx.Response(401, json={"error": "Incorrect Password"})
            sid = f"sid{len(self._sessions) + 1}"
            self._sessions.add(sid)
            return httpx.Response(
                200,
                json={"success": True},
                headers={"set-cookie": f"{SESSION_COOKIE}={sid}; Path=/; HttpOnly"},
            )
        if method == "DELETE":
            self._sessions.clear()
            return httpx.Response(200, json={"success": True})
        return httpx.Response(405)

    def _peer(self, method: str, peer_id: str, action: Optional[str], body: dict) -> httpx.Response:
        peer = self._find(peer_id)
        if peer is None:
            return httpx.Response(404, json={"error": "Client Not Found"})

        if action is None and method == "DELETE":
            self.peers.remove(peer)
            return httpx.Response(200, json={"success": True})
        if action == "configuration" and method == "GET":
            text = (
                "[Interface]\n"
                f"PrivateKey = PRIV{peer_id}=\n"
                f"Address = {peer['address']}/24\n"
                "\n[Peer]\n"
                "PublicKey = SERVERKEY=\n"
                "Endpoint = vpn.example.com:51820\n"
            )
            return httpx.Response(200, text=text)

        if action == "name" and method == "PUT":
            peer["name"] = body["name"]
        elif action == "address" and method == "PUT":
            peer["address"] = body["address"]
        elif action == "enable" and method == "POST":
            peer["enabled"] = True
        elif action == "disable" and method == "POST":
            peer["enabled"] = False
        else:
            return httpx.Response(404, json={"error": "Not Found"})

        if self.return_updated_peer:
            return httpx.Response(200, json=peer)
        return httpx.Response(200, json={"success": True})


@pytest.fixture
def server() -> FakeWgEasy:
    return FakeWgEasy(
        peers=[
            make_peer_data("peer-1", "laptop", address="10.8.0.2", transfer_rx=1000, transfer_tx=500),
            make_peer_data("peer-2", "phone", address="10.8.0.3", enabled=False),
        ]
    )


@pytest.fixture
def mock_transport(server: FakeWgEasy) -> httpx.MockTransport:
    return httpx.MockTransport(server.handler)


@pytest.fixture
def config() -> Config:
    return Config(base_url=BASE_URL, password=PASSWORD, retry_delay=0)


@pytest.fixture
async def wg(config: Config, mock_transport: httpx.MockTransport):
    client = WgEasyClient(config, transport=mock_transport)
    yield client
    await client.close()
