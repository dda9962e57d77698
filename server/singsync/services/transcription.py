"""Speech-to-text source and the plain-lyrics timing heuristic built on it."""

import logging
import math
from pathlib import Path

import aiofiles

from singsync.config import settings
from singsync.models.lyrics import TimedLine
from singsync.services.downloader import AUDIO_FILENAME, MediaDownloader
from singsync.services.parsers import Segment, dedupe_adjacent, parse_segments
from singsync.services.process import ProcessRunner
from singsync.services.text import split_plain_text

logger = logging.getLogger(__name__)

MIN_ALIGN_LINES = 4
MIN_ALIGN_SEGMENTS = 4
ALIGN_DEDUP_WINDOW = 0.5


class TranscriptionSource:
    """Best effort: any missing tool, missing audio or failed run yields []."""

    def __init__(
        self,
        downloader: MediaDownloader,
        runner: ProcessRunner | None = None,
        executable: str | None = None,
        model: str | None = None,
    ) -> None:
        self.downloader = downloader
        self.runner = runner or ProcessRunner()
        self.executable = executable or settings.whisper_path
        self.model = model or settings.whisper_model

    async def transcribe(self, media_id: str, media_dir: Path) -> list[Segment]:
        audio_path = await self.downloader.ensure_audio(media_id, media_dir)
        if audio_path is None:
            logger.warning("No audio available for %s, skipping transcription", media_id)
            return []

        output_path = media_dir / (Path(AUDIO_FILENAME).stem + ".json")
        output_path.unlink(missing_ok=True)

        argv = [
            self.executable,
            str(audio_path),
            "--model", self.model,
            "--task", "transcribe",
            "--output_format", "json",
            "--output_dir", str(media_dir),
            "--fp16", "False",
            "--verbose", "False",
        ]
        result = await self.runner.run(argv, cwd=media_dir, timeout=settings.transcription_timeout)
        if not result.ok:
            logger.warning(
                "Transcription for %s failed (exit=%s, timed_out=%s, missing=%s)",
                media_id, result.returncode, result.timed_out, result.tool_missing,
            )
            return []

        if not output_path.exists():
            return []
        try:
            async with aiofiles.open(output_path, encoding="utf-8") as f:
                raw = await f.read()
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read transcription output %s", output_path)
            return []

        segments = parse_segments(raw)
        logger.info("Transcription for %s produced %d segments", media_id, len(segments))
        return segments


def align_plain_text(plain_text: str, segments: list[Segment]) -> list[TimedLine]:
    """Spread plain lyric lines across the transcription timeline.

    Line ``i`` of ``N`` takes the start of segment
    ``round(i / (N - 1) * (len(segments) - 1))``. This gives a plausible
    ordering, not linguistic alignment.
    """
    lines = split_plain_text(plain_text)
    if len(lines) < MIN_ALIGN_LINES or len(segments) < MIN_ALIGN_SEGMENTS:
        return []

    last = len(segments) - 1
    timed = []
    for idx, text in enumerate(lines):
        ratio = 0 if len(lines) == 1 else idx / (len(lines) - 1)
        # half-up rounding, not banker's
        seg_idx = min(last, max(0, math.floor(ratio * last + 0.5)))
        timed.append(TimedLine(time_seconds=segments[seg_idx].start, text=text))

    timed.sort(key=lambda line: line.time_seconds)
    return dedupe_adjacent(timed, ALIGN_DEDUP_WINDOW)
