"""
Local node identity.

The uuid is generated once and persisted under the data directory so
that peers keep recognising this node across restarts. The display
name defaults to the host name and may be overridden per run.
"""

import logging
import platform
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

UUID_FILE = 'device_uuid'

# Keys used in announcement payloads
UUID_KEY = 'uuid'
NAME_KEY = 'name'


@dataclass(frozen=True)
class Identity:
    """Stable id and human-readable name of this node."""
    uuid: str
    name: str

    def payload(self) -> Dict[str, str]:
        """Announcement fields for this identity."""
        return {UUID_KEY: self.uuid, NAME_KEY: self.name}


def default_device_name() -> str:
    return platform.node() or 'unknown'


def load_identity(data_dir: Path, name: Optional[str] = None) -> Identity:
    """
    Load the persistent identity, creating it on first use.

    Args:
        data_dir: Directory holding the uuid file (created if missing)
        name: Display name override (defaults to the host name)
    """
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    id_file = data_dir / UUID_FILE

    device_uuid = ''
    if id_file.exists():
        device_uuid = id_file.read_text().strip()

    if not device_uuid:
        device_uuid = str(uuid.uuid4())
        id_file.write_text(device_uuid)
        logger.info(f"Generated new device uuid {device_uuid}")

    return Identity(uuid=device_uuid, name=name or default_device_name())
