"""
UDP Broadcast Discovery

Design Decision: Broadcast vs Multicast
========================================

Options:
1. UDP Broadcast (directed subnet broadcast)
   - Simple, works on most LANs
   - Doesn't cross routers
   - IPv4 only

2. UDP Multicast
   - Can cross routers (if configured)
   - Needs group membership on every interface
   - Some switches filter it

Decision: Directed broadcast on every interface
- Simplest approach that reaches every attached segment
- One socket, one port: announcements are sent from the listening
  port to the same port number on every broadcast address, so every
  node is both announcer and listener

Design Decision: Scheduling
===========================
Announcer, Listener and Expirer all run as callbacks on one asyncio
event loop (two RepeatingTimers and a socket reader). The peer table
is therefore only touched from one place at a time and needs no lock.
Nothing in here blocks: the socket is non-blocking and interface
enumeration is bounded by the number of local interfaces.

Design Decision: Live Reconfiguration
=====================================
Interval, expiry and port are settings in the SettingsRegistry. A
change notification reapplies only the settings it names:
- interval: stop timer, apply period, announce once, restart
- expiry:   stop timer, apply period, expire once, restart
- port:     close socket, bind the new port (a failed bind is logged
            and leaves discovery idle until the port changes again)

Note: our own announcements come back to us and are reported like any
other peer. Filtering by uuid is left to the caller.
"""

import asyncio
import logging
import socket
import time
from typing import Callable, Dict, Iterable, List, Optional, Set, Any

from ..config import (
    BROADCAST_EXPIRY,
    BROADCAST_INTERVAL,
    BROADCAST_PORT,
    DEFAULT_BROADCAST_EXPIRY,
    DEFAULT_BROADCAST_INTERVAL,
    DEFAULT_BROADCAST_PORT,
)
from ..identity import Identity
from ..settings import Setting, SettingsRegistry, SettingType
from .interfaces import list_broadcast_addresses
from .peers import PeerTable
from .protocol import encode_announcement, parse_datagram
from .timer import RepeatingTimer

logger = logging.getLogger(__name__)

# Tag used for log entries about the broadcast socket
MESSAGE_TAG = "broadcast"

# Largest possible UDP payload
MAX_DATAGRAM_SIZE = 65535

# Settings in the order a change batch is applied. The port goes first
# so that the announcement made by an interval change uses the new socket.
RECONFIGURATION_ORDER = (BROADCAST_PORT, BROADCAST_INTERVAL, BROADCAST_EXPIRY)

# Callback types for peer events
PeerUpdatedCallback = Callable[[str, Dict[str, Any]], None]  # (peer_id, properties)
PeerRemovedCallback = Callable[[str], None]  # (peer_id)


def current_msecs() -> int:
    """Wall clock time in milliseconds."""
    return int(time.time() * 1000)


def plan_reconfiguration(keys: Iterable[str]) -> List[str]:
    """
    Decide which settings a change batch has to reapply.

    Unrecognized names are dropped; the result follows RECONFIGURATION_ORDER.
    """
    changed = set(keys)
    return [key for key in RECONFIGURATION_ORDER if key in changed]


class DiscoveryEngine:
    """
    Broadcast announcer, listener and peer expirer sharing one UDP socket.

    Usage:
        engine = DiscoveryEngine(settings, identity)
        engine.on_peer_updated(lambda peer_id, props: ...)
        engine.on_peer_removed(lambda peer_id: ...)
        await engine.start()
        ...
        await engine.stop()
    """

    def __init__(self, settings: SettingsRegistry, identity: Identity,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 clock: Callable[[], int] = current_msecs,
                 scanner: Optional[Callable[[], Set[str]]] = None):
        """
        Initialize broadcast discovery.

        Args:
            settings: Registry holding the broadcast settings
            identity: Our uuid and display name
            loop: Event loop to run on (the running loop if omitted)
            clock: Returns the current time in milliseconds
            scanner: Returns the broadcast addresses to announce to
                     (defaults to list_broadcast_addresses)
        """
        self.settings = settings
        self.identity = identity
        self._given_loop = loop
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._clock = clock
        self._scanner = scanner or list_broadcast_addresses

        self.peer_table = PeerTable()

        self._socket: Optional[socket.socket] = None
        self._broadcast_timer: Optional[RepeatingTimer] = None
        self._expiry_timer: Optional[RepeatingTimer] = None

        self._updated_callbacks: List[PeerUpdatedCallback] = []
        self._removed_callbacks: List[PeerRemovedCallback] = []

        self._broadcast_interval = Setting(
            SettingType.INTEGER, BROADCAST_INTERVAL, "Broadcast Interval",
            DEFAULT_BROADCAST_INTERVAL, minimum=1,
        )
        self._broadcast_expiry = Setting(
            SettingType.INTEGER, BROADCAST_EXPIRY, "Broadcast Expiry",
            DEFAULT_BROADCAST_EXPIRY, minimum=1,
        )
        self._broadcast_port = Setting(
            SettingType.INTEGER, BROADCAST_PORT, "Broadcast Port",
            DEFAULT_BROADCAST_PORT, minimum=0, maximum=65535,
        )

        self._appliers = {
            BROADCAST_PORT: self._apply_port,
            BROADCAST_INTERVAL: self._apply_interval,
            BROADCAST_EXPIRY: self._apply_expiry,
        }

        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_bound(self) -> bool:
        return self._socket is not None

    @property
    def port(self) -> Optional[int]:
        """Local port of the shared socket, None while unbound."""
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    @property
    def broadcast_timer(self) -> Optional[RepeatingTimer]:
        return self._broadcast_timer

    @property
    def expiry_timer(self) -> Optional[RepeatingTimer]:
        return self._expiry_timer

    def on_peer_updated(self, callback: PeerUpdatedCallback):
        """Register a callback for every decoded announcement."""
        self._updated_callbacks.append(callback)

    def on_peer_removed(self, callback: PeerRemovedCallback):
        """Register a callback for expired peers."""
        self._removed_callbacks.append(callback)

    async def start(self):
        """Register our settings, bind the socket and start both timers."""
        if self._running:
            return

        self._loop = self._given_loop or asyncio.get_running_loop()

        self._broadcast_timer = RepeatingTimer(self.announce, loop=self._loop)
        self._expiry_timer = RepeatingTimer(self.expire, loop=self._loop)

        self.settings.add(self._broadcast_interval)
        self.settings.add(self._broadcast_expiry)
        self.settings.add(self._broadcast_port)
        self.settings.subscribe(self.on_settings_changed)

        self._running = True

        # Load the initial settings
        self.on_settings_changed(list(RECONFIGURATION_ORDER))

        logger.info(f"Broadcast discovery started as {self.identity.name} ({self.identity.uuid})")

    async def stop(self):
        """Stop both timers, close the socket and forget all peers."""
        if not self._running:
            return

        self._running = False
        self.settings.unsubscribe(self.on_settings_changed)

        if self._broadcast_timer:
            self._broadcast_timer.stop()
        if self._expiry_timer:
            self._expiry_timer.stop()
        self._close_socket()

        self.settings.remove(self._broadcast_interval)
        self.settings.remove(self._broadcast_expiry)
        self.settings.remove(self._broadcast_port)

        self.peer_table.clear()
        logger.info("Broadcast discovery stopped")

    # === Announcer ===

    def announce(self) -> int:
        """
        Send our announcement to every broadcast address.

        Returns:
            Number of datagrams handed to the socket
        """
        if self._socket is None:
            return 0

        addresses = self._scanner()
        if not addresses:
            return 0

        data = encode_announcement(self.identity.payload())
        port = self.port

        sent = 0
        for address in addresses:
            try:
                self._socket.sendto(data, (address, port))
                sent += 1
            except OSError as e:
                # Some addresses may not work
                logger.debug(f"Broadcast to {address}:{port} failed: {e}")

        return sent

    # === Listener ===

    def _on_readable(self):
        """Drain every pending datagram from the socket."""
        while self._socket is not None:
            try:
                data, addr = self._socket.recvfrom(MAX_DATAGRAM_SIZE)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as e:
                logger.debug(f"Error receiving broadcast: {e}")
                break

            self._handle_datagram(data, addr)

    def _handle_datagram(self, data: bytes, addr):
        """Decode one datagram, refresh the peer and notify observers."""
        parsed = parse_datagram(data, addr[0])
        if parsed is None:
            logger.debug(f"Ignoring invalid discovery packet from {addr[0]}")
            return

        peer_id, properties = parsed
        self.peer_table.refresh(peer_id, self._clock())

        for callback in self._updated_callbacks:
            try:
                callback(peer_id, properties)
            except Exception as e:
                logger.error(f"Callback error: {e}")

    # === Expirer ===

    def expire(self) -> List[str]:
        """
        Evict peers not heard from within the expiry window.

        Returns:
            Evicted peer ids
        """
        now = self._clock()
        expiry = self.settings.value(BROADCAST_EXPIRY)

        removed = self.peer_table.evict_older_than(expiry, now)
        for peer_id in removed:
            logger.debug(f"Broadcast: peer timed out {peer_id}")
            for callback in self._removed_callbacks:
                try:
                    callback(peer_id)
                except Exception as e:
                    logger.error(f"Callback error: {e}")

        return removed

    # === Reconfiguration ===

    def on_settings_changed(self, keys: List[str]):
        """Reapply the broadcast settings named in a change batch."""
        if not self._running:
            return

        for key in plan_reconfiguration(keys):
            self._appliers[key]()

    def _apply_interval(self):
        self._broadcast_timer.restart(self.settings.value(BROADCAST_INTERVAL))

    def _apply_expiry(self):
        self._expiry_timer.restart(self.settings.value(BROADCAST_EXPIRY))

    def _apply_port(self):
        self._close_socket()
        self._bind(self.settings.value(BROADCAST_PORT))

    def _bind(self, port: int) -> bool:
        """Bind a fresh socket to the wildcard address on the given port."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.setblocking(False)
            sock.bind(('', port))
        except OSError as e:
            sock.close()
            logger.error(f"[{MESSAGE_TAG}] Unable to bind UDP port {port}: {e.strerror or e}")
            return False

        self._socket = sock
        self._loop.add_reader(sock.fileno(), self._on_readable)
        logger.info(f"Broadcast socket bound to UDP port {self.port}")
        return True

    def _close_socket(self):
        if self._socket is None:
            return
        sock, self._socket = self._socket, None
        self._loop.remove_reader(sock.fileno())
        sock.close()
