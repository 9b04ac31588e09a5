"""Application-level services on top of the peer repository."""

from wg_easy.services.configs import ConfigExport, ConfigService
from wg_easy.services.peers import PeerService

__all__ = ["ConfigExport", "ConfigService", "PeerService"]
