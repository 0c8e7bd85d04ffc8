"""JSON file persistence for cached aggregate results."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Sequence, Tuple

import aiofiles
import aiofiles.os

from ..exceptions import MalformedRecordError
from ..sources.models import TournamentRecord, ensure_utc

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1

PersistedEntry = Tuple[Sequence[TournamentRecord], datetime, datetime]


class JsonCachePersistence:
    """
    Single JSON document mapping filter signatures to cached results.

    Layout::

        {"version": 1,
         "entries": {"<key>": {"tournaments": [...],
                               "created_at": "...",
                               "expires_at": "..."}}}
    """

    def __init__(self, path: str):
        """Initialize persistence.

        Args:
            path: Path to the JSON cache file
        """
        self.path = Path(path)

        # Ensure cache directory exists
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def load(self) -> Dict[str, PersistedEntry]:
        """
        Read all persisted entries.

        Unreadable files, unknown versions and malformed entries are
        logged and skipped.
        """
        if not await aiofiles.os.path.exists(self.path):
            return {}

        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as fh:
                document = json.loads(await fh.read())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read cache file {self.path}: {e}")
            return {}

        if not isinstance(document, dict) or document.get("version") != CACHE_FORMAT_VERSION:
            logger.warning(f"Ignoring cache file {self.path} with unsupported format")
            return {}

        entries: Dict[str, PersistedEntry] = {}
        for key, raw in (document.get("entries") or {}).items():
            try:
                tournaments = [TournamentRecord.from_dict(t) for t in raw["tournaments"]]
                entries[key] = (
                    tournaments,
                    ensure_utc(datetime.fromisoformat(raw["created_at"])),
                    ensure_utc(datetime.fromisoformat(raw["expires_at"])),
                )
            except (MalformedRecordError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable cache entry {key}: {e}")

        return entries

    async def save(self, entries: Dict[str, PersistedEntry]) -> None:
        """Write all entries atomically, replacing the previous file."""
        document = {
            "version": CACHE_FORMAT_VERSION,
            "entries": {
                key: {
                    "tournaments": [t.to_dict() for t in tournaments],
                    "created_at": created_at.isoformat(),
                    "expires_at": expires_at.isoformat(),
                }
                for key, (tournaments, created_at, expires_at) in entries.items()
            },
        }

        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as fh:
                await fh.write(json.dumps(document, indent=2))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write cache file {self.path}: {e}")
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
