"""Tests for the ffmpeg media combiner."""

from __future__ import annotations

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from genmedia_mcp.combiner import MediaCombiner
from genmedia_mcp.errors import InputNotFound, MuxingFailed

pytestmark = pytest.mark.unit


def _proc(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(b"", stderr))
    return proc


@pytest.fixture()
def inputs(tmp_path):
    frame = tmp_path / "frame.jpg"
    audio = tmp_path / "speech.mp3"
    frame.write_bytes(b"\xff\xd8")
    audio.write_bytes(b"ID3")
    return str(frame), str(audio)


@pytest.fixture()
def combiner(output_dir):
    return MediaCombiner("ffmpeg", output_dir, timeout=30)


class TestCommand:
    def test_arguments(self, combiner, output_dir):
        cmd = combiner.build_command("/f.jpg", "/a.mp3", output_dir / "out.mp4")
        assert cmd == [
            "ffmpeg", "-y", "-loop", "1", "-framerate", "1", "-i", "/f.jpg", "-i", "/a.mp3",
            "-c:v", "libx264", "-tune", "stillimage", "-c:a", "aac", "-b:a", "192k",
            "-pix_fmt", "yuv420p", "-shortest", str(output_dir / "out.mp4"),
        ]


class TestCombine:
    async def test_success(self, combiner, inputs, output_dir):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_proc())) as mock_exec:
            path = await combiner.combine(*inputs)

        assert path.parent == output_dir
        assert re.fullmatch(r"video_combined_\d+\.mp4", path.name)
        args = mock_exec.call_args.args
        assert args[0] == "ffmpeg"
        assert args[-1] == str(path)

    async def test_missing_audio_never_spawns(self, combiner, inputs, tmp_path):
        missing = str(tmp_path / "nope.mp3")
        with patch("asyncio.create_subprocess_exec") as mock_exec:
            with pytest.raises(InputNotFound, match=re.escape(f"Audio file not found: {missing}")):
                await combiner.combine(inputs[0], missing)
        mock_exec.assert_not_called()

    async def test_missing_frame_never_spawns(self, combiner, inputs, tmp_path):
        missing = str(tmp_path / "nope.jpg")
        with patch("asyncio.create_subprocess_exec") as mock_exec:
            with pytest.raises(InputNotFound, match="Image file not found"):
                await combiner.combine(missing, inputs[1])
        mock_exec.assert_not_called()

    async def test_nonzero_exit_carries_stderr(self, combiner, inputs, output_dir):
        stderr = b"speech.mp3: Invalid data found when processing input\n"
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_proc(1, stderr))):
            with pytest.raises(MuxingFailed, match="Invalid data found when processing input"):
                await combiner.combine(*inputs)
        assert list(output_dir.iterdir()) == []

    async def test_missing_binary(self, combiner, inputs):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ffmpeg"))):
            with pytest.raises(MuxingFailed, match="ffmpeg not found"):
                await combiner.combine(*inputs)

    async def test_timeout_terminates_then_kills(self, combiner, inputs):
        """Timeout sends SIGTERM, then SIGKILL when the grace period also expires."""
        proc = _proc()
        proc.terminate = MagicMock()
        proc.kill = MagicMock()
        call_count = 0

        async def smart_communicate():
            nonlocal call_count
            call_count += 1
            if call_count <= 2:
                raise asyncio.TimeoutError()
            return (b"", b"")

        proc.communicate = smart_communicate

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(MuxingFailed, match="timed out"):
                await combiner.combine(*inputs)

        proc.terminate.assert_called_once()
        proc.kill.assert_called_once()
        assert call_count == 3
