"""Input validation run before any request leaves the client."""

import ipaddress
import re
from typing import Any

from wg_easy.exceptions import ValidationError

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 64


def validate_peer_name(name: Any) -> str:
    """Check a peer name and return it stripped."""
    if not name or not isinstance(name, str):
        raise ValidationError("name", "Name is required and must be a string", name)

    stripped = name.strip()

    if len(stripped) < MIN_NAME_LENGTH:
        raise ValidationError(
            "name", f"Name must be at least {MIN_NAME_LENGTH} character(s)", name
        )
    if len(stripped) > MAX_NAME_LENGTH:
        raise ValidationError(
            "name", f"Name must not exceed {MAX_NAME_LENGTH} characters", name
        )
    if not NAME_PATTERN.match(stripped):
        raise ValidationError(
            "name",
            "Name can only contain alphanumeric characters, underscores, and hyphens",
            name,
        )
    return stripped


def validate_ip_address(address: Any) -> str:
    """Accept an IPv4 or IPv6 address, optionally with a prefix length."""
    if not address or not isinstance(address, str):
        raise ValidationError("address", "Address is required and must be a string", address)

    try:
        if "/" in address:
            ipaddress.ip_interface(address)
        else:
            ipaddress.ip_address(address)
    except ValueError:
        raise ValidationError("address", "Invalid IP address format", address)
    return address


def validate_id(peer_id: Any) -> str:
    if not peer_id or not isinstance(peer_id, str):
        raise ValidationError("id", "ID is required and must be a string", peer_id)
    if not peer_id.strip():
        raise ValidationError("id", "ID cannot be empty", peer_id)
    return peer_id
