"""Decoders for the timed-text formats lyrics arrive in.

LRC (catalog synced lyrics), WebVTT (native captions) and the segment JSON
written by the transcriber all decode to ``TimedLine`` lists sorted by time
with adjacent near-duplicate repeats removed.
"""

import json
import logging
import math
import re
from dataclasses import dataclass

from singsync.models.lyrics import TimedLine
from singsync.services.text import clean_line

logger = logging.getLogger(__name__)

LRC_DEDUP_WINDOW = 0.8
VTT_DEDUP_WINDOW = 0.8
SEGMENT_DEDUP_WINDOW = 0.6

_LRC_TAG_RE = re.compile(r"\[([^\]]+)\]")
_LRC_TIME_RE = re.compile(r"^(\d+):(\d+)(?:\.(\d+))?$")
_VTT_SKIP_PREFIXES = ("WEBVTT", "NOTE", "STYLE")


@dataclass(frozen=True)
class Segment:
    start: float
    text: str


def parse_lrc_timestamp(raw: str) -> float:
    """Parse ``mm:ss`` or ``mm:ss.xx`` (any number of fraction digits). NaN when malformed."""
    match = _LRC_TIME_RE.match(raw.strip())
    if not match:
        return math.nan
    minutes, seconds, fraction = match.groups()
    return int(minutes) * 60 + int(seconds) + (int(fraction) / 10 ** len(fraction) if fraction else 0)


def parse_vtt_timestamp(raw: str) -> float:
    """Parse ``hh:mm:ss.fff`` or ``mm:ss.fff`` (comma accepted). NaN when malformed."""
    parts = raw.strip().replace(",", ".").split(":")
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        return math.nan
    if not all(math.isfinite(n) for n in numbers):
        return math.nan

    if len(numbers) == 3:
        hours, minutes, seconds = numbers
        return hours * 3600 + minutes * 60 + seconds
    if len(numbers) == 2:
        minutes, seconds = numbers
        return minutes * 60 + seconds
    return math.nan


def dedupe_adjacent(lines: list[TimedLine], window: float) -> list[TimedLine]:
    """Drop a line repeating the previous kept line's text within ``window`` seconds."""
    kept: list[TimedLine] = []
    for line in lines:
        prev = kept[-1] if kept else None
        if prev is None or prev.text != line.text or abs(prev.time_seconds - line.time_seconds) > window:
            kept.append(line)
    return kept


def _by_time(lines: list[TimedLine]) -> list[TimedLine]:
    return sorted(lines, key=lambda line: line.time_seconds)


def parse_lrc(content: str) -> list[TimedLine]:
    out: list[TimedLine] = []
    for raw_line in content.splitlines():
        tags = _LRC_TAG_RE.findall(raw_line)
        if not tags:
            continue
        text = clean_line(_LRC_TAG_RE.sub(" ", raw_line))
        if not text:
            continue
        for tag in tags:
            seconds = parse_lrc_timestamp(tag)
            if math.isfinite(seconds):
                out.append(TimedLine(time_seconds=seconds, text=text))

    return dedupe_adjacent(_by_time(out), LRC_DEDUP_WINDOW)


def serialize_lrc(lines: list[TimedLine]) -> str:
    """Write ``[mm:ss.xx]text`` lines, rounding to hundredths."""
    rows = []
    for line in lines:
        hundredths = round(line.time_seconds * 100)
        minutes, rest = divmod(hundredths, 6000)
        seconds, fraction = divmod(rest, 100)
        rows.append(f"[{minutes:02d}:{seconds:02d}.{fraction:02d}]{line.text}")
    return "\n".join(rows)


def parse_vtt(content: str) -> list[TimedLine]:
    src = content.splitlines()
    out: list[TimedLine] = []

    i = 0
    while i < len(src):
        line = src[i].strip()
        i += 1
        if not line or line.startswith(_VTT_SKIP_PREFIXES) or "-->" not in line:
            continue

        start_raw = line.split("-->", 1)[0].strip().split(" ")[0]
        start = parse_vtt_timestamp(start_raw)
        if not math.isfinite(start):
            continue

        text_lines: list[str] = []
        while i < len(src) and src[i].strip():
            text_lines.append(src[i].strip())
            i += 1

        text = clean_line(" ".join(text_lines))
        if text:
            out.append(TimedLine(time_seconds=start, text=text))

    return _by_time(dedupe_adjacent(out, VTT_DEDUP_WINDOW))


def parse_segments(raw_json: str) -> list[Segment]:
    """Decode the transcriber's ``{"segments": [{start, text}, ...]}`` document.

    Malformed JSON yields an empty list. Entries with a non-finite or
    negative start, or with empty text, are dropped.
    """
    try:
        parsed = json.loads(raw_json)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Discarding unparsable segment document")
        return []

    raw_segments = parsed.get("segments") if isinstance(parsed, dict) else None
    if not isinstance(raw_segments, list):
        return []

    segments: list[Segment] = []
    for item in raw_segments:
        if not isinstance(item, dict):
            continue
        try:
            start = float(item.get("start"))
        except (TypeError, ValueError):
            continue
        raw_text = item.get("text")
        text = clean_line(str(raw_text) if raw_text is not None else "")
        if math.isfinite(start) and start >= 0 and text:
            segments.append(Segment(start=start, text=text))

    return sorted(segments, key=lambda s: s.start)


def segments_to_lines(segments: list[Segment]) -> list[TimedLine]:
    lines = [TimedLine(time_seconds=s.start, text=s.text) for s in segments]
    return dedupe_adjacent(lines, SEGMENT_DEDUP_WINDOW)


def parse_transcription_segments(raw_json: str) -> list[TimedLine]:
    return segments_to_lines(parse_segments(raw_json))
