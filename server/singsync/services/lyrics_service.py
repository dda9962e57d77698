"""Lyrics resolution pipeline: captions, catalog, AI-aligned catalog, transcription.

Sources run strictly in order; later stages reuse the audio file and the
transcription timeline of earlier ones. Every source degrades to "no
candidates" on failure, so ``resolve_lyrics`` always returns a well-formed
result.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from weakref import WeakValueDictionary

from singsync.config import settings
from singsync.models.lyrics import LyricsCandidate, LyricsResult, ScriptType, TrackMeta
from singsync.services.captions import CaptionSource
from singsync.services.catalog import CatalogClient, CatalogSource, catalog_candidates
from singsync.services.downloader import MediaDownloader
from singsync.services.parsers import Segment, segments_to_lines
from singsync.services.script import detect_expected_script, is_script_compatible
from singsync.services.scoring import pick_top_candidates, score_all
from singsync.services.storage import FileLyricsRepository, LyricsRepository, MetadataReader
from singsync.services.transcription import TranscriptionSource, align_plain_text

logger = logging.getLogger(__name__)

MAX_PLAIN_TO_ALIGN = 2


class KeyedLocks:
    """One asyncio lock per media id, released from memory once unused."""

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            yield


def is_cache_usable(cached: LyricsResult, expected: ScriptType) -> bool:
    """A cached result is reused only if it has candidates and matches the script.

    An empty payload (the cached "no lyrics" result) counts as compatible.
    """
    if not cached.candidates:
        return False
    text = cached.full_text()
    return not text or is_script_compatible(text, expected)


class LyricsService:
    """Resolves the best lyrics for a media id from several unreliable sources."""

    def __init__(
        self,
        repository: LyricsRepository | None = None,
        metadata: MetadataReader | None = None,
        captions: CaptionSource | None = None,
        catalog: CatalogSource | None = None,
        transcription: TranscriptionSource | None = None,
        cache_root: Path | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self.cache_root = Path(cache_root) if cache_root else settings.cache_root
        downloader = MediaDownloader()
        self.repository = repository or FileLyricsRepository(self.cache_root)
        self.metadata = metadata or MetadataReader(self.cache_root)
        self.captions = captions or CaptionSource(downloader)
        self._catalog_client: CatalogClient | None = None
        if catalog is None:
            self._catalog_client = CatalogClient()
            catalog = CatalogSource(self._catalog_client)
        self.catalog = catalog
        self.transcription = transcription or TranscriptionSource(downloader)
        self.locks = locks or KeyedLocks()

    def media_dir(self, media_id: str) -> Path:
        path = self.cache_root / media_id
        path.mkdir(parents=True, exist_ok=True)
        return path

    async def resolve_lyrics(self, media_id: str) -> LyricsResult:
        """Return the best lyrics for ``media_id``. Never raises."""
        try:
            async with self.locks.hold(media_id):
                return await self._resolve(media_id)
        except Exception:
            logger.exception("Lyrics resolution failed for %s", media_id)
            return LyricsResult.none(media_id)

    async def aclose(self) -> None:
        if self._catalog_client is not None:
            await self._catalog_client.aclose()

    async def _resolve(self, media_id: str) -> LyricsResult:
        media_dir = self.media_dir(media_id)
        meta = await self.metadata.read(media_id)
        expected = detect_expected_script(meta.title, meta.channel_title)

        cached = await self.repository.get(media_id)
        if cached is not None and is_cache_usable(cached, expected):
            logger.info("[Cache Hit] lyrics for %s (%s)", media_id, cached.provenance)
            return cached

        raw: list[LyricsCandidate] = []
        raw.extend(await self._caption_candidates(media_id, media_dir, expected))
        raw.extend(await self._catalog_candidates(meta, expected))

        segments: list[Segment] | None = None
        plain = [c for c in raw if c.provenance == "catalog" and c.mode == "plain"][:MAX_PLAIN_TO_ALIGN]
        if plain:
            segments = await self.transcription.transcribe(media_id, media_dir)
            raw.extend(self._aligned_candidates(plain, segments))

        if not raw:
            if segments is None:
                segments = await self.transcription.transcribe(media_id, media_dir)
            raw.extend(self._transcription_candidates(segments))

        result = self._finalize(media_id, raw, expected)
        await self._store(result)
        return result

    async def _caption_candidates(
        self, media_id: str, media_dir: Path, expected: ScriptType,
    ) -> list[LyricsCandidate]:
        lines = await self.captions.fetch(media_id, media_dir, expected)
        if not lines:
            return []
        return [LyricsCandidate(
            id="captions_vtt",
            label="YouTube captions",
            provenance="captions",
            mode="timed",
            lines=lines,
            sync_method="native",
        )]

    async def _catalog_candidates(self, meta: TrackMeta, expected: ScriptType) -> list[LyricsCandidate]:
        matches = await self.catalog.fetch(meta, expected)
        return catalog_candidates(matches)

    def _aligned_candidates(
        self, plain: list[LyricsCandidate], segments: list[Segment],
    ) -> list[LyricsCandidate]:
        aligned: list[LyricsCandidate] = []
        for candidate in plain:
            lines = align_plain_text(candidate.plain_text or "", segments)
            if not lines:
                continue
            # Catalog text is kept, only the timing comes from transcription
            aligned.append(LyricsCandidate(
                id=f"{candidate.id}_aligned",
                label=f"{candidate.label} (AI sync)",
                provenance="catalog_aligned",
                mode="timed",
                lines=lines,
                plain_text=candidate.plain_text,
                sync_method="ai",
            ))
        return aligned

    def _transcription_candidates(self, segments: list[Segment]) -> list[LyricsCandidate]:
        lines = segments_to_lines(segments)
        if not lines:
            return []
        return [LyricsCandidate(
            id="stt_fallback",
            label="Whisper transcription",
            provenance="transcription",
            mode="timed",
            lines=lines,
            sync_method="ai",
        )]

    def _finalize(self, media_id: str, raw: list[LyricsCandidate], expected: ScriptType) -> LyricsResult:
        if not raw:
            logger.info("No lyrics found for %s", media_id)
            return LyricsResult.none(media_id)

        top = pick_top_candidates(score_all(raw, expected))
        result = LyricsResult.from_candidates(media_id, top)
        logger.info(
            "Lyrics for %s: %d raw candidates, selected %s",
            media_id, len(raw), result.selected_candidate_id,
        )
        return result

    async def _store(self, result: LyricsResult) -> None:
        try:
            await self.repository.put(result)
        except OSError:
            logger.warning("Could not persist lyrics for %s", result.media_id)
