"""Media combiner: mux a still frame and an audio track into an mp4 with ffmpeg."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .artifacts import artifact_path
from .errors import InputNotFound, MuxingFailed

logger = logging.getLogger(__name__)

SIGTERM_GRACE_SECONDS = 5


@dataclass(frozen=True)
class MuxResult:
    """Immutable outcome of one ffmpeg run."""

    output_path: Path
    stderr: str
    returncode: int
    duration_seconds: float


class MediaCombiner:
    """Loop a single frame over an audio track; output length follows the audio.

    Args:
        ffmpeg_path: ffmpeg executable (name on PATH or absolute path).
        output_dir: Directory combined videos are written to.
        timeout: Max seconds ffmpeg may run before it is terminated.
    """

    def __init__(self, ffmpeg_path: str, output_dir: Path, timeout: float = 600) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.output_dir = output_dir
        self.timeout = timeout

    def build_command(self, frame_path: str, audio_path: str, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_path, "-y",
            "-loop", "1", "-framerate", "1", "-i", frame_path,
            "-i", audio_path,
            "-c:v", "libx264", "-tune", "stillimage",
            "-c:a", "aac", "-b:a", "192k",
            "-pix_fmt", "yuv420p",
            "-shortest",
            str(output_path),
        ]

    async def _run(self, cmd: list[str]) -> tuple[str, int]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise MuxingFailed(f"ffmpeg not found: {self.ffmpeg_path}") from exc

        try:
            _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("ffmpeg timed out after %.0fs, sending SIGTERM", self.timeout)
            proc.terminate()
            try:
                await asyncio.wait_for(proc.communicate(), timeout=SIGTERM_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("ffmpeg did not exit after SIGTERM, sending SIGKILL")
                proc.kill()
                await proc.communicate()
            raise MuxingFailed(f"ffmpeg timed out after {self.timeout:.0f}s") from None

        return stderr_bytes.decode("utf-8", errors="replace"), proc.returncode or 0

    async def mux(self, frame_path: str, audio_path: str) -> MuxResult:
        """Run ffmpeg and return the full outcome.

        Raises:
            InputNotFound: Frame or audio file is missing (ffmpeg is not started).
            MuxingFailed: ffmpeg is missing, timed out, or exited non-zero.
        """
        if not Path(frame_path).is_file():
            raise InputNotFound(f"Image file not found: {frame_path}")
        if not Path(audio_path).is_file():
            raise InputNotFound(f"Audio file not found: {audio_path}")

        output_path = artifact_path(self.output_dir, "video", "combined", "mp4")
        cmd = self.build_command(frame_path, audio_path, output_path)
        logger.info("Running: %s (timeout=%.0fs)", " ".join(cmd), self.timeout)
        start = time.monotonic()

        stderr, returncode = await self._run(cmd)
        if returncode != 0:
            logger.error("ffmpeg exited %d: %s", returncode, stderr[:500])
            output_path.unlink(missing_ok=True)
            raise MuxingFailed(stderr.strip() or f"ffmpeg exited with code {returncode}")

        result = MuxResult(
            output_path=output_path,
            stderr=stderr,
            returncode=returncode,
            duration_seconds=round(time.monotonic() - start, 2),
        )
        logger.info("Combined video saved to %s in %.1fs", output_path, result.duration_seconds)
        return result

    async def combine(self, frame_path: str, audio_path: str) -> Path:
        """Combine *frame_path* and *audio_path*; returns the new video's path."""
        return (await self.mux(frame_path, audio_path)).output_path
