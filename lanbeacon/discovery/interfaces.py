"""
Interface Scanner

Design Decision: Which Addresses to Broadcast To
================================================

Options Considered:
1. Limited broadcast (255.255.255.255)
   - One send, no enumeration
   - Only leaves through the default interface on most systems
2. Subnet broadcast guessed from the local IP (assume /24)
   - Wrong on anything but /24 networks
3. Directed broadcast of every broadcast-capable interface
   - Reaches every attached segment
   - Needs interface enumeration

Decision: Directed broadcast per interface, enumerated with psutil
- psutil reports the broadcast address of each IPv4 entry
- Interfaces that are down or lack the broadcast flag are skipped
- Where the platform reports no flags and no broadcast address
  (Windows), the address is derived from the netmask
"""

import ipaddress
import logging
import socket
from typing import Optional, Set

import psutil

logger = logging.getLogger(__name__)


def _can_broadcast(stats) -> bool:
    """Check interface flags; platforms without flags are assumed capable."""
    if stats is None:
        return True
    if not stats.isup:
        return False
    flags = getattr(stats, 'flags', '')
    if not flags:
        return True
    return 'broadcast' in flags.split(',')


def _derive_broadcast(address: str, netmask: Optional[str]) -> Optional[str]:
    """Compute a directed broadcast address from address and netmask."""
    if not netmask:
        return None
    try:
        network = ipaddress.IPv4Network(f"{address}/{netmask}", strict=False)
    except ValueError:
        return None
    if network.prefixlen >= 31 or network.network_address.is_loopback:
        return None
    return str(network.broadcast_address)


def list_broadcast_addresses() -> Set[str]:
    """
    Get the IPv4 broadcast addresses of all broadcast-capable interfaces.

    Returns:
        De-duplicated set of addresses (empty if none were found)
    """
    addresses: Set[str] = set()

    try:
        interfaces = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, RuntimeError) as e:
        logger.debug(f"Interface enumeration failed: {e}")
        return addresses

    for name, entries in interfaces.items():
        iface_stats = stats.get(name)
        if not _can_broadcast(iface_stats):
            continue

        has_flags = bool(getattr(iface_stats, 'flags', ''))
        for entry in entries:
            if entry.family != socket.AF_INET:
                continue
            broadcast = entry.broadcast
            if not broadcast and not has_flags:
                broadcast = _derive_broadcast(entry.address, entry.netmask)
            if broadcast:
                addresses.add(broadcast)

    return addresses
