"""
Configuration export helpers.

Exports pair a peer's WireGuard config text with its QR code; the file
helpers split a config into ``{section: {key: value}}``.
"""

import logging

from pydantic import BaseModel

from wg_easy import qr
from wg_easy.exceptions import QRCodeError, WgEasyError
from wg_easy.services.peers import PeerService

logger = logging.getLogger(__name__)


class ConfigExport(BaseModel):
    """Exported configuration of one peer."""

    peer_id: str
    peer_name: str
    configuration: str
    qr_code: str


class ConfigService:
    def __init__(self, peers: PeerService):
        self.peers = peers

    async def export_peer(self, peer_id: str) -> ConfigExport:
        logger.info(f"Exporting configuration for peer {peer_id}")

        peer = await self.peers.get_by_id(peer_id)
        configuration = await self.peers.get_configuration(peer_id)
        try:
            qr_code = qr.render_svg(configuration)
        except Exception as e:
            logger.error(f"Failed to generate QR code for peer {peer_id}: {e}")
            raise QRCodeError(peer_id, str(e)) from e

        return ConfigExport(
            peer_id=peer.id,
            peer_name=peer.name,
            configuration=configuration,
            qr_code=qr_code,
        )

    async def export_all(self) -> list[ConfigExport]:
        """Export every peer; peers that fail to export are skipped."""
        logger.info("Exporting all peer configurations")

        exports = []
        for peer in await self.peers.get_all():
            try:
                exports.append(await self.export_peer(peer.id))
            except WgEasyError as e:
                logger.warning(f"Failed to export peer {peer.id}: {e}")

        return exports

    @staticmethod
    def generate_config_file(configuration: str, peer_name: str) -> tuple[str, str]:
        """Return ``(filename, content)`` for a peer's config file."""
        return f"{peer_name}.conf", configuration

    @staticmethod
    def parse_config_file(content: str) -> dict[str, dict[str, str]]:
        """
        Parse an INI-style WireGuard config.

        Repeated sections (e.g. several [Peer] blocks) are merged; key/value
        lines outside a section are ignored.
        """
        result: dict[str, dict[str, str]] = {}
        section = ""

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1]
                result.setdefault(section, {})
            elif "=" in line and section:
                key, value = line.split("=", 1)
                result[section][key.strip()] = value.strip()

        return result
