"""Structured subprocess invocation for the external command-line tools."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from singsync.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    truncated: bool = False
    tool_missing: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.tool_missing


class ProcessRunner:
    """Runs an argument vector (never a shell string) with a hard timeout.

    On timeout the child is killed and the result is flagged ``timed_out``.
    Captured output beyond ``max_output_bytes`` per stream is cut off and
    flagged ``truncated``.
    """

    def __init__(self, max_output_bytes: int | None = None) -> None:
        self.max_output_bytes = max_output_bytes or settings.max_process_output_bytes

    async def run(self, argv: list[str], cwd: Path | None = None, timeout: float = 60) -> ProcessResult:
        logger.debug("Running %s (timeout=%.0fs)", argv[0], timeout)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.warning("Executable not found: %s", argv[0])
            return ProcessResult(returncode=None, tool_missing=True)
        except PermissionError:
            logger.warning("Executable not runnable: %s", argv[0])
            return ProcessResult(returncode=None, tool_missing=True)

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.0fs, killing", argv[0], timeout)
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
            return ProcessResult(returncode=proc.returncode, timed_out=True)

        truncated = len(stdout) > self.max_output_bytes or len(stderr) > self.max_output_bytes
        return ProcessResult(
            returncode=proc.returncode,
            stdout=stdout[: self.max_output_bytes].decode("utf-8", errors="replace"),
            stderr=stderr[: self.max_output_bytes].decode("utf-8", errors="replace"),
            truncated=truncated,
        )
