"""
Discovery Module - Peer Discovery on LAN

Announces this node by UDP broadcast and tracks the nodes it hears:
- Interface scanning for broadcast addresses
- Announcer, listener and expirer sharing one UDP socket
- A peer directory for applications
"""

from .broadcast import DiscoveryEngine, plan_reconfiguration
from .interfaces import list_broadcast_addresses
from .manager import DiscoveryManager, DiscoveredPeer
from .peers import PeerTable
from .protocol import decode_announcement, encode_announcement, parse_datagram
from .timer import RepeatingTimer

__all__ = [
    'DiscoveryEngine',
    'DiscoveryManager',
    'DiscoveredPeer',
    'PeerTable',
    'RepeatingTimer',
    'list_broadcast_addresses',
    'plan_reconfiguration',
    'encode_announcement',
    'decode_announcement',
    'parse_datagram',
]
