"""
Data models for the wg-easy client.

Peer records are parsed from the service's camelCase JSON and are immutable:
an update produces a new Peer with the same id.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# A peer counts as online while its last handshake is this recent
ONLINE_WINDOW = timedelta(minutes=3)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with binary units, e.g. 1536 -> '1.5 KB'."""
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    units = ["B", "KB", "MB", "GB", "TB"]
    for unit in units:
        if value < 1024 or unit == units[-1]:
            break
        value /= 1024
    return f"{round(value, 2):g} {unit}"


def format_duration(delta: timedelta) -> str:
    """Format a duration with its two most significant units, e.g. '2h 5m'."""
    seconds = max(0, int(delta.total_seconds()))
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


class Peer(BaseModel):
    """
    A WireGuard peer managed by the remote service.

    Field names are snake_case; the service's camelCase keys are accepted
    as aliases and produced again by ``to_dict()``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    enabled: bool = True
    address: str
    public_key: str = Field(alias="publicKey")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    downloadable_config: bool = Field(default=True, alias="downloadableConfig")
    persistent_keepalive: str = Field(default="off", alias="persistentKeepalive")
    latest_handshake_at: Optional[datetime] = Field(default=None, alias="latestHandshakeAt")
    transfer_rx: int = Field(default=0, ge=0, alias="transferRx")
    transfer_tx: int = Field(default=0, ge=0, alias="transferTx")

    @field_validator("persistent_keepalive", mode="before")
    @classmethod
    def _keepalive_as_str(cls, value: Any) -> str:
        return "off" if value is None else str(value)

    @field_validator("created_at", "updated_at", "latest_handshake_at")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def online_at(self, now: datetime) -> bool:
        """Check whether the last handshake falls inside the online window."""
        if self.latest_handshake_at is None:
            return False
        return self.latest_handshake_at > _as_utc(now) - ONLINE_WINDOW

    @property
    def is_online(self) -> bool:
        return self.online_at(utcnow())

    @property
    def total_transfer(self) -> int:
        return self.transfer_rx + self.transfer_tx

    @property
    def transfer_rx_formatted(self) -> str:
        return format_bytes(self.transfer_rx)

    @property
    def transfer_tx_formatted(self) -> str:
        return format_bytes(self.transfer_tx)

    @property
    def total_transfer_formatted(self) -> str:
        return format_bytes(self.total_transfer)

    @property
    def age(self) -> timedelta:
        return utcnow() - self.created_at

    @property
    def last_seen_formatted(self) -> Optional[str]:
        if self.latest_handshake_at is None:
            return None
        return f"{format_duration(utcnow() - self.latest_handshake_at)} ago"

    def clone(self, **updates: Any) -> "Peer":
        """Return a validated copy with the given fields replaced."""
        return type(self).model_validate({**self.model_dump(), **updates})

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the service's JSON shape."""
        return self.model_dump(by_alias=True, mode="json")

    def __str__(self) -> str:
        return (
            f"Peer(id={self.id}, name={self.name}, "
            f"enabled={self.enabled}, online={self.is_online})"
        )


class PeerCreate(BaseModel):
    """Payload for creating a peer."""

    name: str


class PeerFilter(BaseModel):
    """
    Conjunctive filter criteria. A peer matches when it satisfies every
    criterion that is set; unset criteria are ignored.
    """

    enabled: Optional[bool] = None
    name_contains: Optional[str] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    has_recent_handshake: Optional[bool] = None
    min_transfer_rx: Optional[int] = None
    min_transfer_tx: Optional[int] = None

    @field_validator("created_after", "created_before")
    @classmethod
    def _bounds_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def matches(self, peer: Peer, now: Optional[datetime] = None) -> bool:
        if self.enabled is not None and peer.enabled != self.enabled:
            return False
        if self.name_contains and self.name_contains.lower() not in peer.name.lower():
            return False
        if self.created_after is not None and peer.created_at < self.created_after:
            return False
        if self.created_before is not None and peer.created_at > self.created_before:
            return False
        if self.has_recent_handshake is not None:
            online = peer.online_at(now or utcnow())
            if online != self.has_recent_handshake:
                return False
        if self.min_transfer_rx is not None and peer.transfer_rx < self.min_transfer_rx:
            return False
        if self.min_transfer_tx is not None and peer.transfer_tx < self.min_transfer_tx:
            return False
        return True


class PaginatedResult(BaseModel):
    """One page of peers."""

    items: list[Peer]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PeerStatistics(BaseModel):
    """Aggregate counters over a collection."""

    total: int = 0
    enabled: int = 0
    disabled: int = 0
    online: int = 0
    offline: int = 0
    total_transfer_rx: int = 0
    total_transfer_tx: int = 0

    @property
    def total_transfer(self) -> int:
        return self.total_transfer_rx + self.total_transfer_tx


class ServerStatus(BaseModel):
    """
    Snapshot of the WireGuard interface's state.

    ``timestamp`` records when the snapshot was taken on this side.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_running: bool = Field(alias="isRunning")
    interface_name: str = Field(alias="interfaceName")
    public_key: str = Field(alias="publicKey")
    address: str
    listen_port: int = Field(alias="listenPort")
    clients: int = Field(default=0, ge=0)
    total_transfer_rx: int = Field(default=0, ge=0, alias="totalTransferRx")
    total_transfer_tx: int = Field(default=0, ge=0, alias="totalTransferTx")
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def total_transfer(self) -> int:
        return self.total_transfer_rx + self.total_transfer_tx

    @property
    def total_transfer_formatted(self) -> str:
        return format_bytes(self.total_transfer)

    def to_dict(self) -> dict[str, Any]:
        """camelCase JSON shape with an ISO-8601 timestamp."""
        return self.model_dump(by_alias=True, mode="json")
