"""
LAN Beacon - Peer discovery on the local network segment.

Every node periodically broadcasts a small JSON announcement carrying its
stable id and display name, listens for the announcements of others, and
expires peers it has not heard from within a configurable window.
"""

__version__ = '0.1.0'
