"""yt-dlp wrapper for native subtitle tracks and the audio track."""

import logging
import re
from pathlib import Path

from singsync.config import settings
from singsync.services.process import ProcessRunner

logger = logging.getLogger(__name__)

AUDIO_FILENAME = "source.m4a"
CAPTION_FILE_RE = re.compile(r"^captions(\.[^.]+)*\.vtt$", re.IGNORECASE)


def media_url(media_id: str) -> str:
    return f"https://www.youtube.com/watch?v={media_id}"


def list_caption_files(media_dir: Path) -> list[Path]:
    return sorted(p for p in media_dir.iterdir() if p.is_file() and CAPTION_FILE_RE.match(p.name))


class MediaDownloader:
    """Success is judged by the expected files existing, not by exit code."""

    def __init__(self, runner: ProcessRunner | None = None, executable: str | None = None) -> None:
        self.runner = runner or ProcessRunner()
        self.executable = executable or settings.yt_dlp_path

    async def fetch_subtitles(self, media_id: str, media_dir: Path) -> list[Path]:
        """Download every manual and auto-generated subtitle track as VTT."""
        for stale in list_caption_files(media_dir):
            stale.unlink(missing_ok=True)

        argv = [
            self.executable,
            "--write-auto-subs",
            "--write-subs",
            "--sub-langs", "all,-live_chat",
            "--skip-download",
            "--sub-format", "vtt",
            "--output", str(media_dir / "captions.%(ext)s"),
            media_url(media_id),
        ]
        result = await self.runner.run(argv, cwd=media_dir, timeout=settings.subtitle_timeout)
        if not result.ok:
            logger.warning(
                "Subtitle fetch for %s failed (exit=%s, timed_out=%s, missing=%s)",
                media_id, result.returncode, result.timed_out, result.tool_missing,
            )

        return list_caption_files(media_dir)

    async def ensure_audio(self, media_id: str, media_dir: Path) -> Path | None:
        """Return the local audio copy, downloading it only when absent."""
        audio_path = media_dir / AUDIO_FILENAME
        if audio_path.exists():
            logger.info("[Cache Hit] audio for %s already downloaded", media_id)
            return audio_path

        argv = [
            self.executable,
            "-f", "bestaudio[ext=m4a]/bestaudio",
            "--extract-audio",
            "--audio-format", "m4a",
            "--audio-quality", "128K",
            "-o", str(audio_path),
            media_url(media_id),
        ]
        result = await self.runner.run(argv, cwd=media_dir, timeout=settings.audio_timeout)
        if not result.ok:
            logger.warning(
                "Audio fetch for %s failed (exit=%s, timed_out=%s, missing=%s)",
                media_id, result.returncode, result.timed_out, result.tool_missing,
            )

        return audio_path if audio_path.exists() else None
