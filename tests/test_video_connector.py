"""Tests for the Veo connector: submit, poll, materialise, and failure conversion."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from genmedia_mcp.connectors.video import VideoConnector, first_video
from genmedia_mcp.errors import ArtifactNotFound
from genmedia_mcp.models.generation import (
    GenerationOptions,
    ImageToVideoRequest,
    TextToVideoRequest,
    VideoToVideoRequest,
)
from tests.conftest import make_operation, make_video

REMOTE_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"


@pytest.fixture()
def http():
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda req: httpx.Response(200, content=b"mp4-bytes")))


def _connector(client, output_dir, http=None, *, tier="fast", api_key="test-key") -> VideoConnector:
    return VideoConnector(
        client,
        tier=tier,
        model="veo-3.1-fast-generate-preview" if tier == "fast" else "veo-3.1-generate-preview",
        output_dir=output_dir,
        api_key=api_key,
        poll_interval=3 if tier == "fast" else 5,
        http=http,
    )


@pytest.fixture(autouse=True)
def _no_sleep():
    with patch("genmedia_mcp.jobs.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


class TestFirstVideo:
    def test_skips_items_without_media(self):
        op = make_operation(done=True, videos=[make_video(), make_video(uri="https://x/v")])
        assert first_video(op).uri == "https://x/v"

    def test_none_found(self):
        with pytest.raises(ArtifactNotFound, match="artifact not found in output"):
            first_video(make_operation(done=True, videos=[]))


class TestTextToVideo:
    async def test_end_to_end_fast(self, mock_genai, output_dir, http, _no_sleep):
        mock_genai.aio.models.generate_videos.return_value = make_operation("operations/job-42")
        mock_genai.aio.operations.get.side_effect = [
            make_operation("operations/job-42"),
            make_operation("operations/job-42", done=True, videos=[make_video(uri=REMOTE_URI)]),
        ]
        request = TextToVideoRequest(prompt="a calm lake at dawn", options=GenerationOptions(aspect_ratio="16:9"))

        result = await _connector(mock_genai, output_dir, http).generate(request)

        assert result.success is True
        assert re.fullmatch(rf"{re.escape(str(output_dir))}/veo31_fast_\d+\.mp4", result.local_path)
        assert result.remote_locator == REMOTE_URI
        assert result.trace_id == "operations/job-42"
        assert mock_genai.aio.operations.get.await_count == 2
        _no_sleep.assert_awaited_with(3)
        with open(result.local_path, "rb") as f:
            assert f.read() == b"mp4-bytes"

    async def test_config_carries_options(self, mock_genai, output_dir, http):
        mock_genai.aio.models.generate_videos.return_value = make_operation(
            done=True, videos=[make_video(uri=REMOTE_URI)],
        )
        request = TextToVideoRequest(
            prompt="storm",
            negative_prompt="people",
            options=GenerationOptions(aspect_ratio="9:16", duration_seconds=8, enhance_prompt=True),
        )

        await _connector(mock_genai, output_dir, http, tier="hq").generate(request)

        kwargs = mock_genai.aio.models.generate_videos.await_args.kwargs
        assert kwargs["model"] == "veo-3.1-generate-preview"
        config = kwargs["config"]
        assert config.aspect_ratio == "9:16"
        assert config.duration_seconds == 8
        assert config.enhance_prompt is True
        assert config.negative_prompt == "people"
        assert config.number_of_videos == 1

    async def test_inline_video_bytes(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_videos.return_value = make_operation(
            done=True, videos=[make_video(data=b"inline-mp4")],
        )
        result = await _connector(mock_genai, output_dir, tier="hq").generate(TextToVideoRequest(prompt="x"))
        assert result.success is True
        assert re.search(r"veo31_hq_\d+\.mp4$", result.local_path)
        assert result.remote_locator is None

    async def test_failed_job_writes_nothing(self, mock_genai, output_dir, http):
        mock_genai.aio.models.generate_videos.return_value = make_operation("operations/bad")
        mock_genai.aio.operations.get.return_value = make_operation(
            "operations/bad", done=True, error={"message": "prompt blocked"},
        )

        result = await _connector(mock_genai, output_dir, http).generate(TextToVideoRequest(prompt="x"))

        assert result.success is False
        assert result.category == "REMOTE_JOB_FAILED"
        assert "prompt blocked" in result.error
        assert result.trace_id == "operations/bad"
        assert list(output_dir.iterdir()) == []

    async def test_no_media_item(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_videos.return_value = make_operation(done=True, videos=[])
        result = await _connector(mock_genai, output_dir).generate(TextToVideoRequest(prompt="x"))
        assert result.error == "artifact not found in output"
        assert result.category == "ARTIFACT_NOT_FOUND"

    async def test_missing_credential_before_submit(self, mock_genai, output_dir):
        result = await _connector(mock_genai, output_dir, api_key="").generate(TextToVideoRequest(prompt="x"))
        assert result.category == "MISSING_CREDENTIAL"
        mock_genai.aio.models.generate_videos.assert_not_awaited()

    async def test_unexpected_exception_becomes_failure(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_videos.side_effect = RuntimeError("socket exploded")
        result = await _connector(mock_genai, output_dir).generate(TextToVideoRequest(prompt="x"))
        assert result.success is False
        assert result.error == "socket exploded"
        assert result.category == "UNKNOWN"


class TestImageToVideo:
    async def test_missing_image_never_submits(self, mock_genai, output_dir, tmp_path):
        missing = str(tmp_path / "nope.png")
        result = await _connector(mock_genai, output_dir).generate(ImageToVideoRequest(prompt="x", source=missing))

        assert result.success is False
        assert result.category == "INPUT_NOT_FOUND"
        assert result.error == f"Image file not found: {missing}"
        mock_genai.aio.models.generate_videos.assert_not_awaited()

    async def test_local_image_inlined(self, mock_genai, output_dir, tmp_path, http):
        frame = tmp_path / "frame.png"
        frame.write_bytes(b"\x89PNG")
        mock_genai.aio.models.generate_videos.return_value = make_operation(
            done=True, videos=[make_video(uri=REMOTE_URI)],
        )

        result = await _connector(mock_genai, output_dir, http).generate(
            ImageToVideoRequest(prompt="zoom", source=str(frame)),
        )

        image = mock_genai.aio.models.generate_videos.await_args.kwargs["image"]
        assert image.image_bytes == b"\x89PNG"
        assert image.mime_type == "image/png"
        assert re.search(r"veo31_fast_i2v_\d+\.mp4$", result.local_path)

    async def test_unsupported_extension(self, mock_genai, output_dir, tmp_path):
        frame = tmp_path / "frame.gif"
        frame.write_bytes(b"GIF89a")
        result = await _connector(mock_genai, output_dir).generate(ImageToVideoRequest(prompt="x", source=str(frame)))
        assert result.category == "INVALID_ARGUMENT"


class TestVideoExtension:
    async def test_remote_locator_passed_through(self, mock_genai, output_dir, http):
        mock_genai.aio.models.generate_videos.return_value = make_operation(
            done=True, videos=[make_video(uri=REMOTE_URI)],
        )

        result = await _connector(mock_genai, output_dir, http, tier="hq").generate(
            VideoToVideoRequest(prompt="continue", source=REMOTE_URI),
        )

        video = mock_genai.aio.models.generate_videos.await_args.kwargs["video"]
        assert video.uri == REMOTE_URI
        assert re.search(r"veo31_hq_extend_\d+\.mp4$", result.local_path)
