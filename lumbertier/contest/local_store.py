"""
Durable client-local key/value storage: one JSON file per key.

Writes go to a temp file first and are then renamed over the target, so a
record is never left half-written.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)


class LocalStore:
    """File-per-key JSON store."""

    def __init__(self, state_dir: Path):
        """
        Initialize the store.

        Args:
            state_dir: Directory holding one <key>.json file per record
        """
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        # Percent-encoding keeps arbitrary ids filesystem-safe and collision-free
        return self.state_dir / f"{quote(key, safe='')}.json"

    def read(self, key: str) -> Optional[Any]:
        """
        Read a record.

        Returns:
            Decoded JSON value, or None if the key is absent or unreadable
        """
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Failed to read local record {key}: {e}")
            return None

    def write(self, key: str, value: Any) -> None:
        """Write a record atomically (temp file + rename)."""
        path = self._path_for(key)
        temp_path = path.with_suffix('.tmp')

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(value, f, indent=2)
            temp_path.replace(path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote local record {key} → {path}")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed local record {key}")

    def keys(self) -> List[str]:
        return sorted(unquote(p.stem) for p in self.state_dir.glob('*.json'))
