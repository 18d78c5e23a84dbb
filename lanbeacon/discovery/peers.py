"""
Peer Table

Maps peer ids to the time (ms) their last announcement arrived. The
table is owned by the event loop that runs discovery, so it is only
ever touched from one place at a time and needs no locking.
"""

from typing import Dict, List, Optional


class PeerTable:
    """Last-seen timestamps of visible peers, keyed by peer id."""

    def __init__(self):
        self._last_seen: Dict[str, int] = {}

    def refresh(self, peer_id: str, now: int):
        """
        Create or refresh a record.

        A timestamp older than the stored one is ignored so last-seen
        never moves backwards.
        """
        current = self._last_seen.get(peer_id)
        if current is None or now > current:
            self._last_seen[peer_id] = now

    def evict_older_than(self, threshold: int, now: int) -> List[str]:
        """
        Remove every record with now - last_seen > threshold.

        Returns:
            Evicted peer ids, in insertion order
        """
        stale = [
            peer_id for peer_id, last_seen in list(self._last_seen.items())
            if now - last_seen > threshold
        ]
        for peer_id in stale:
            del self._last_seen[peer_id]
        return stale

    def last_seen(self, peer_id: str) -> Optional[int]:
        return self._last_seen.get(peer_id)

    def snapshot(self) -> Dict[str, int]:
        """Copy of the table."""
        return dict(self._last_seen)

    def clear(self):
        self._last_seen.clear()

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._last_seen

    def __len__(self) -> int:
        return len(self._last_seen)
