"""
Announcement Wire Format

Design Decision: Message Format
===============================

Options Considered:
1. JSON - Human readable, self-describing, extensible
2. MessagePack - Compact, needs a decoder on every peer
3. Custom binary - Most compact, hardest to extend

Decision: Compact JSON object in a single UDP datagram
- An announcement is two short strings, far below any datagram limit
- Receivers forward unknown fields as peer properties, so the format
  can grow without breaking older nodes
- Only "uuid" is mandatory on receipt; a datagram without it is not
  an announcement

Example:
    {"uuid":"3f2a...","name":"Laptop"}
"""

import json
from typing import Any, Dict, Optional, Tuple

from ..identity import UUID_KEY

# Property injected by receivers with the sender address seen on the wire
ADDRESSES_KEY = 'addresses'


def encode_announcement(payload: Dict[str, Any]) -> bytes:
    """Serialize an announcement to compact JSON bytes."""
    return json.dumps(payload, separators=(',', ':')).encode('utf-8')


def decode_announcement(data: bytes) -> Optional[Dict[str, Any]]:
    """
    Decode announcement bytes into a property mapping.

    Returns:
        The decoded object, or None if the datagram is not a valid
        announcement (malformed JSON, not an object, no usable uuid)
    """
    try:
        message = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError):
        return None

    if not isinstance(message, dict):
        return None

    peer_id = message.get(UUID_KEY)
    if not isinstance(peer_id, str) or not peer_id:
        return None

    return message


def parse_datagram(data: bytes, sender_ip: str) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Turn a received datagram into a peer id and its properties.

    The uuid is taken out of the property set and the observed sender
    address is injected under "addresses".

    Returns:
        (peer_id, properties) or None if the datagram is discarded
    """
    message = decode_announcement(data)
    if message is None:
        return None

    peer_id = message.pop(UUID_KEY)
    message[ADDRESSES_KEY] = [sender_ip]
    return peer_id, message
