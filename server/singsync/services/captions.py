"""Native caption source: fetch every subtitle track, keep the best one."""

import logging
import re
from pathlib import Path

import aiofiles

from singsync.models.lyrics import ScriptType, TimedLine
from singsync.services.downloader import MediaDownloader
from singsync.services.parsers import parse_vtt
from singsync.services.script import is_script_compatible

logger = logging.getLogger(__name__)

_LANG_RE = re.compile(r"captions\.([^.]+)(?:\.|$)", re.IGNORECASE)
_AUTO_MARKER_RE = re.compile(r"(auto|asr|orig)", re.IGNORECASE)

_LATIN_LANGS = ("en", "fr", "es", "de", "it", "pt", "nl", "sv", "no", "da", "fi", "ro", "tr")
_CYRILLIC_LANGS = ("ru", "uk", "bg", "sr", "mk", "be")

_LANG_PRIORITY: tuple[tuple[str, int], ...] = (
    ("en", 40),
    ("ko", 30),
    ("ja", 20),
    ("fr", 10),
)


def subtitle_language(filename: str) -> str:
    match = _LANG_RE.search(filename)
    return match.group(1).lower() if match else ""


def is_language_compatible(filename: str, expected: ScriptType) -> bool:
    lang = subtitle_language(filename)
    if not lang or expected in ("unknown", "mixed"):
        return True
    if expected == "korean":
        return lang.startswith(("ko", "en"))
    if expected == "japanese":
        return lang.startswith(("ja", "en"))
    if expected == "cyrillic":
        return lang.startswith(_CYRILLIC_LANGS)
    return lang.startswith(_LATIN_LANGS)


def manual_score(filename: str) -> int:
    return 0 if _AUTO_MARKER_RE.search(filename) else 100


def language_score(filename: str) -> int:
    lang = subtitle_language(filename)
    for prefix, score in _LANG_PRIORITY:
        if lang.startswith(prefix):
            return score
    return 0


def pick_best_subtitle(files: list[Path], expected: ScriptType) -> Path | None:
    """Prefer manual tracks, then by language priority, then by filename."""
    if not files:
        return None

    compatible = [f for f in files if is_language_compatible(f.name, expected)]
    pool = compatible or files
    return min(pool, key=lambda f: (-(manual_score(f.name) + language_score(f.name)), f.name))


class CaptionSource:
    def __init__(self, downloader: MediaDownloader) -> None:
        self.downloader = downloader

    async def fetch(self, media_id: str, media_dir: Path, expected: ScriptType) -> list[TimedLine]:
        files = await self.downloader.fetch_subtitles(media_id, media_dir)
        best = pick_best_subtitle(files, expected)
        if best is None:
            logger.info("No caption tracks for %s", media_id)
            return []

        try:
            async with aiofiles.open(best, encoding="utf-8", errors="replace") as f:
                content = await f.read()
        except OSError:
            logger.warning("Could not read caption file %s", best)
            return []

        lines = parse_vtt(content)
        if not lines:
            return []

        if not is_script_compatible(" ".join(line.text for line in lines), expected):
            logger.info("Captions %s rejected: script does not match %s", best.name, expected)
            return []

        logger.info("Using captions %s (%d lines)", best.name, len(lines))
        return lines
