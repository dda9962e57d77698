"""Persistence for resolved lyrics and the per-media metadata document."""

import json
import logging
import threading
from pathlib import Path
from typing import Protocol

import aiofiles

from singsync.models.lyrics import LyricsResult, TrackMeta

logger = logging.getLogger(__name__)

LYRICS_FILENAME = "lyrics.json"
META_FILENAME = "meta.json"


class LyricsRepository(Protocol):
    async def get(self, media_id: str) -> LyricsResult | None: ...

    async def put(self, result: LyricsResult) -> None: ...


class FileLyricsRepository:
    """One ``<root>/<media_id>/lyrics.json`` document per media id.

    Documents are overwritten wholesale. Unreadable or malformed documents
    read back as a cache miss.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, media_id: str) -> Path:
        return self.root / media_id / LYRICS_FILENAME

    async def get(self, media_id: str) -> LyricsResult | None:
        path = self.path_for(media_id)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = json.loads(await f.read())
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable lyrics cache %s", path)
            return None
        return LyricsResult.coerce(raw, media_id)

    async def put(self, result: LyricsResult) -> None:
        path = self.path_for(result.media_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(result.model_dump(by_alias=True), ensure_ascii=False, indent=2)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(payload)


class InMemoryLyricsRepository:
    """Thread-safe in-memory repository, mostly for tests and local runs."""

    def __init__(self) -> None:
        self._results: dict[str, LyricsResult] = {}
        self._lock = threading.Lock()

    async def get(self, media_id: str) -> LyricsResult | None:
        with self._lock:
            return self._results.get(media_id)

    async def put(self, result: LyricsResult) -> None:
        with self._lock:
            self._results[result.media_id] = result


class MetadataReader:
    """Reads ``meta.json``; missing or broken documents yield empty strings."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    async def read(self, media_id: str) -> TrackMeta:
        path = self.root / media_id / META_FILENAME
        if not path.exists():
            return TrackMeta()
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = json.loads(await f.read())
        except (OSError, ValueError):
            return TrackMeta()
        if not isinstance(raw, dict):
            return TrackMeta()

        title = raw.get("title")
        channel = raw.get("channelTitle")
        return TrackMeta(
            title=title if isinstance(title, str) else "",
            channel_title=channel if isinstance(channel, str) else "",
        )
