"""Lyrics catalog source (LRCLIB-style HTTP API).

Query pairs are derived from the video title and channel name, each pair is
looked up directly and via fuzzy search, and the hits are scored, filtered
by script and de-duplicated.
"""

import logging
import re
from typing import Any

import httpx

from singsync.config import settings
from singsync.models.lyrics import CatalogMatch, LyricsCandidate, ScriptType, TimedLine, TrackMeta
from singsync.services.parsers import parse_lrc
from singsync.services.script import is_script_compatible
from singsync.services.text import fingerprint, normalize_plain_text

logger = logging.getLogger(__name__)

MAX_SEARCH_HITS_PER_QUERY = 6
MAX_MATCHES = 6
DIRECT_HIT_BONUS = 15

_TITLE_SEPARATORS = (" - ", " – ", " — ")
_BRACKETS_RE = re.compile(r"\[[^\]]*\]|\([^)]*\)|\{[^}]*\}")
_MARKETING_RE = re.compile(
    r"\b(official|mv|music video|video|lyrics|karaoke|live|topic|vevo)\b", re.IGNORECASE
)
_SEPARATOR_CHARS_RE = re.compile(r"[|•·]")
_CHANNEL_SUFFIX_RE = re.compile(r"\b(topic|channel)\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def clean_search_name(text: str) -> str:
    """Strip bracketed annotations and marketing words from a title."""
    text = _BRACKETS_RE.sub(" ", text)
    text = _MARKETING_RE.sub(" ", text)
    text = _SEPARATOR_CHARS_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_queries(title: str, channel: str) -> list[tuple[str, str]]:
    """Ordered, case-insensitively unique ``(artist, track)`` query pairs."""
    cleaned_title = clean_search_name(title)
    cleaned_channel = _WHITESPACE_RE.sub(
        " ", _CHANNEL_SUFFIX_RE.sub("", clean_search_name(channel))
    ).strip()

    pairs: list[tuple[str, str]] = []
    for sep in _TITLE_SEPARATORS:
        if sep in cleaned_title:
            left, right = cleaned_title.split(sep, 1)
            if left.strip() and right.strip():
                pairs.append((left.strip(), right.strip()))

    if cleaned_title:
        pairs.append((cleaned_channel, cleaned_title))

    seen: set[str] = set()
    unique: list[tuple[str, str]] = []
    for artist, track in pairs:
        key = f"{artist.lower()}::{track.lower()}"
        if key not in seen:
            seen.add(key)
            unique.append((artist, track))
    return unique


def score_match(match: CatalogMatch, artist: str, track: str) -> float:
    name = match.track_name.lower()
    artist_name = match.artist_name.lower()
    target_track = track.lower()
    target_artist = artist.lower()

    score = 0
    if name == target_track:
        score += 12
    elif target_track in name or name in target_track:
        score += 8

    if target_artist and artist_name == target_artist:
        score += 10
    elif target_artist and (target_artist in artist_name or artist_name in target_artist):
        score += 6

    if match.synced_text and match.synced_text.strip():
        score += 10
    if match.plain_text and match.plain_text.strip():
        score += 3
    return score


def match_from_payload(payload: Any, artist: str, track: str) -> CatalogMatch | None:
    if not isinstance(payload, dict):
        return None

    def text_field(key: str) -> str | None:
        value = payload.get(key)
        return value if isinstance(value, str) else None

    duration = payload.get("duration")
    match = CatalogMatch(
        track_name=text_field("trackName") or "",
        artist_name=text_field("artistName") or "",
        plain_text=text_field("plainLyrics"),
        synced_text=text_field("syncedLyrics"),
        duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
    )
    match.label = f"{match.track_name or track} — {match.artist_name or artist or 'Unknown'}"
    match.match_score = score_match(match, artist, track)
    return match


def match_content(match: CatalogMatch) -> tuple[list[TimedLine], str]:
    """Parsed synced lines and normalised plain text of a match."""
    return parse_lrc(match.synced_text or ""), normalize_plain_text(match.plain_text or "")


class CatalogClient:
    """Thin async HTTP client; every failure maps to ``None``."""

    def __init__(self, http: httpx.AsyncClient | None = None) -> None:
        self._http = http

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=settings.catalog_base_url,
                timeout=settings.catalog_timeout,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        try:
            response = await self._client().get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Catalog request %s failed: %s", path, e)
            return None
        if not response.is_success:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def get_track(self, track: str, artist: str) -> Any:
        return await self._get_json("/get", {"track_name": track, "artist_name": artist})

    async def search(self, query: str) -> list[Any]:
        results = await self._get_json("/search", {"q": query})
        return results if isinstance(results, list) else []

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None


class CatalogSource:
    def __init__(self, client: CatalogClient) -> None:
        self.client = client

    async def fetch(self, meta: TrackMeta, expected: ScriptType) -> list[CatalogMatch]:
        collected: list[CatalogMatch] = []
        for artist, track in extract_queries(meta.title, meta.channel_title):
            if not track:
                continue

            direct = match_from_payload(await self.client.get_track(track, artist), artist, track)
            if direct is not None:
                direct.match_score += DIRECT_HIT_BONUS
                direct.direct_hit = True
                collected.append(direct)

            query = f"{artist} {track}".strip() or track
            hits = [
                m for m in (match_from_payload(p, artist, track) for p in await self.client.search(query))
                if m is not None
            ]
            hits.sort(key=lambda m: m.match_score, reverse=True)
            collected.extend(hits[:MAX_SEARCH_HITS_PER_QUERY])

        collected.sort(key=lambda m: m.match_score, reverse=True)
        survivors: dict[str, CatalogMatch] = {}
        for match in collected:
            synced, plain = match_content(match)
            synced_text = " ".join(line.text for line in synced)
            text = f"{synced_text} {plain}".strip()
            if not text or not is_script_compatible(text, expected):
                continue
            digest = fingerprint(synced_text if synced else plain)
            key = f"{match.track_name.lower()}::{match.artist_name.lower()}::{digest}"
            survivors.setdefault(key, match)

        matches = list(survivors.values())[:MAX_MATCHES]
        logger.info("Catalog produced %d usable matches from %d hits", len(matches), len(collected))
        return matches


def catalog_candidates(matches: list[CatalogMatch]) -> list[LyricsCandidate]:
    """Synced matches become timed candidates, plain-only ones plain candidates."""
    candidates: list[LyricsCandidate] = []
    for rank, match in enumerate(matches, start=1):
        synced, plain = match_content(match)
        if synced:
            candidates.append(LyricsCandidate(
                id=f"catalog_synced_{rank}",
                label=match.label,
                provenance="catalog",
                mode="timed",
                lines=synced,
                sync_method="native",
            ))
        elif plain:
            candidates.append(LyricsCandidate(
                id=f"catalog_plain_{rank}",
                label=match.label,
                provenance="catalog",
                mode="plain",
                lines=[],
                plain_text=plain,
                sync_method="none",
            ))
    return candidates
