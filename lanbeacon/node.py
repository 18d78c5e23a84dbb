"""
Beacon Node - Main Controller

Wires the pieces of a discovery node together:
- Settings registry loaded from the configuration
- Persistent identity (uuid + display name)
- Broadcast discovery engine
- Peer directory for applications
"""

import logging
from pathlib import Path
from typing import List, Optional

from .config import Config
from .discovery import DiscoveryEngine, DiscoveryManager, DiscoveredPeer
from .identity import Identity, load_identity
from .settings import SettingsRegistry

logger = logging.getLogger(__name__)


class BeaconNode:
    """
    A complete LAN discovery node.

    Combines all components into a unified interface:
    - start() / stop(): Announce ourselves and track peers
    - reload(config): Apply changed settings without restarting
    - get_peers(): Peers currently visible on the LAN
    """

    def __init__(self, config: Config = None):
        """
        Initialize a beacon node.

        Args:
            config: Node configuration (uses defaults if not provided)
        """
        self.config = config or Config()

        self.settings = SettingsRegistry()
        self.settings.update(self.config.settings())

        self.identity: Identity = load_identity(
            Path(self.config.data_dir), self.config.device_name
        )

        self.engine = DiscoveryEngine(self.settings, self.identity)
        self.discovery = DiscoveryManager(self.engine, filter_self=self.config.filter_self)

        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self):
        """Start announcing and listening."""
        if self._running:
            return

        logger.info(f"Starting beacon node {self.identity.uuid}...")
        await self.discovery.start()
        self._running = True

        logger.info("Beacon node started")
        logger.info(f"  UUID: {self.identity.uuid}")
        logger.info(f"  Name: {self.identity.name}")
        logger.info(f"  Port: {self.engine.port}")

    async def stop(self):
        """Stop the beacon node."""
        if not self._running:
            return

        logger.info("Stopping beacon node...")
        self._running = False
        await self.discovery.stop()
        logger.info("Beacon node stopped")

    def reload(self, config: Config) -> List[str]:
        """
        Apply a new configuration to the running node.

        Broadcast settings are pushed through the settings registry, so
        only the ones that changed are reapplied. A new display name is
        used from the next announcement on.

        Returns:
            Names of the settings that changed
        """
        changed = self.settings.update(config.settings())
        self.discovery.filter_self = config.filter_self

        if config.device_name and config.device_name != self.identity.name:
            self.identity = Identity(uuid=self.identity.uuid, name=config.device_name)
            self.engine.identity = self.identity
            changed.append('DeviceName')

        if Path(config.data_dir) != Path(self.config.data_dir):
            logger.warning("data_dir changes take effect after a restart")

        self.config = config
        if changed:
            logger.info(f"Reloaded settings: {', '.join(changed)}")
        return changed

    def get_peers(self) -> List[DiscoveredPeer]:
        """Get peers currently visible on the LAN."""
        return self.discovery.get_peers()

    def get_peer(self, peer_id: str) -> Optional[DiscoveredPeer]:
        return self.discovery.get_peer(peer_id)

    def get_stats(self) -> dict:
        """Get node statistics."""
        return {
            'uuid': self.identity.uuid,
            'name': self.identity.name,
            'running': self._running,
            'discovery': self.discovery.get_stats(),
            'settings': {name: self.settings.value(name) for name in self.config.settings()},
        }
