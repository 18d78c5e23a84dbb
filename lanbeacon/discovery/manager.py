"""
Discovery Manager

Turns the engine's raw peer events into a directory of peers that
applications can query.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..identity import NAME_KEY
from .broadcast import DiscoveryEngine
from .protocol import ADDRESSES_KEY

logger = logging.getLogger(__name__)


@dataclass
class DiscoveredPeer:
    """Information about a discovered peer."""
    peer_id: str
    name: str
    addresses: List[str] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    last_seen: float = 0.0  # seconds, on the engine clock

    @property
    def ip(self) -> Optional[str]:
        return self.addresses[0] if self.addresses else None


# Callback type for peer discovery events
PeerCallback = Callable[[DiscoveredPeer, bool], None]  # (peer, is_added)


class DiscoveryManager:
    """
    Keeps the latest known properties of every visible peer.

    The engine reports every announcement, including our own; the
    manager hides our own uuid when filter_self is set and only
    notifies callbacks when a peer appears or disappears.
    """

    def __init__(self, engine: DiscoveryEngine, filter_self: bool = True):
        """
        Initialize discovery manager.

        Args:
            engine: The broadcast discovery engine to listen to
            filter_self: Hide announcements carrying our own uuid
        """
        self.engine = engine
        self.filter_self = filter_self

        self._peers: Dict[str, DiscoveredPeer] = {}
        self._callbacks: List[PeerCallback] = []

        # Wire up engine events
        self.engine.on_peer_updated(self._on_peer_updated)
        self.engine.on_peer_removed(self._on_peer_removed)

    def on_peer_change(self, callback: PeerCallback):
        """Register a callback for peer discovery events."""
        self._callbacks.append(callback)

    def get_peers(self) -> List[DiscoveredPeer]:
        """Get list of all discovered peers."""
        return list(self._peers.values())

    def get_peer(self, peer_id: str) -> Optional[DiscoveredPeer]:
        """Get a specific peer by id."""
        return self._peers.get(peer_id)

    async def start(self):
        """Start discovery."""
        logger.info("Starting peer discovery...")
        await self.engine.start()

    async def stop(self):
        """Stop discovery and forget all peers."""
        await self.engine.stop()
        self._peers.clear()
        logger.info("Peer discovery stopped")

    async def discover(self, timeout: float = 3.0) -> List[DiscoveredPeer]:
        """
        Wait for announcements for a period of time.

        Args:
            timeout: How long to wait for discovery (seconds)

        Returns:
            List of discovered peers
        """
        logger.info(f"Discovering peers for {timeout}s...")
        await asyncio.sleep(timeout)
        peers = self.get_peers()
        logger.info(f"Discovered {len(peers)} peers")
        return peers

    def _is_self(self, peer_id: str) -> bool:
        return self.filter_self and peer_id == self.engine.identity.uuid

    def _on_peer_updated(self, peer_id: str, properties: Dict[str, Any]):
        """Handle an announcement from the engine."""
        if self._is_self(peer_id):
            return

        is_new = peer_id not in self._peers
        extra = {k: v for k, v in properties.items() if k not in (NAME_KEY, ADDRESSES_KEY)}

        peer = DiscoveredPeer(
            peer_id=peer_id,
            name=str(properties.get(NAME_KEY, '')),
            addresses=list(properties.get(ADDRESSES_KEY, [])),
            properties=extra,
            last_seen=self.engine.peer_table.last_seen(peer_id) / 1000,
        )
        self._peers[peer_id] = peer

        if is_new:
            logger.info(f"Discovered peer {peer.name or peer_id} at {peer.ip}")
            self._notify(peer, True)

    def _on_peer_removed(self, peer_id: str):
        """Handle an expired peer from the engine."""
        peer = self._peers.pop(peer_id, None)
        if peer is None:
            return

        logger.info(f"Peer lost: {peer.name or peer_id} ({peer.ip})")
        self._notify(peer, False)

    def _notify(self, peer: DiscoveredPeer, is_added: bool):
        for callback in self._callbacks:
            try:
                callback(peer, is_added)
            except Exception as e:
                logger.error(f"Callback error: {e}")

    def get_stats(self) -> dict:
        """Get discovery statistics."""
        return {
            'total_peers': len(self._peers),
            'tracked_ids': len(self.engine.peer_table),
            'bound': self.engine.is_bound,
            'port': self.engine.port,
        }
