"""Veo connector — text-to-video, image-to-video and video extension as long-running jobs."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx
from google import genai
from google.genai import types

from ..artifacts import artifact_path, download_video, write_artifact
from ..errors import ArtifactNotFound, MissingCredential
from ..jobs import GenerationJob, JobPoller
from ..models.generation import (
    GenerationResult,
    ImageToVideoRequest,
    TextToVideoRequest,
    VideoRequest,
    VideoToVideoRequest,
)
from ..types import VideoTier
from ._source import image_payload, video_payload

logger = logging.getLogger(__name__)

VARIANT_PREFIX = "veo31"

_NAME_SUFFIXES: dict[tuple[str, str], str] = {
    ("fast", "text_to_video"): "fast",
    ("fast", "image_to_video"): "fast_i2v",
    ("fast", "video_to_video"): "fast_extend",
    ("hq", "text_to_video"): "hq",
    ("hq", "image_to_video"): "hq_i2v",
    ("hq", "video_to_video"): "hq_extend",
}


def first_video(operation: Any) -> types.Video:
    """Return the first media-bearing video in a finished operation's output.

    Raises:
        ArtifactNotFound: No generated video carries a URI or inline bytes.
    """
    response = getattr(operation, "response", None) or getattr(operation, "result", None)
    for generated in getattr(response, "generated_videos", None) or []:
        video = getattr(generated, "video", None)
        if video is not None and (video.uri or video.video_bytes):
            return video
    raise ArtifactNotFound("artifact not found in output")


class VideoConnector:
    """One Veo model tier (fast or hq) exposed as ``generate(request)``.

    Every call ends in a GenerationResult; nothing is retried. Success
    results carry the local file, the remote locator (for chaining an
    extension without re-uploading) and the operation name as trace id.
    """

    def __init__(
        self,
        client: genai.Client | None,
        *,
        tier: VideoTier,
        model: str,
        output_dir: Path,
        api_key: str,
        poll_interval: float,
        max_wait: float | None = None,
        download_timeout: float = 300,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client
        self.tier = tier
        self.model = model
        self.output_dir = output_dir
        self._api_key = api_key
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.download_timeout = download_timeout
        self._http = http

    def _config(self, request: VideoRequest) -> types.GenerateVideosConfig:
        opts = request.options
        config = types.GenerateVideosConfig(
            number_of_videos=1,
            aspect_ratio=opts.aspect_ratio,
            person_generation=opts.person_policy,
        )
        if opts.duration_seconds is not None:
            config.duration_seconds = opts.duration_seconds
        if opts.enhance_prompt is not None:
            config.enhance_prompt = opts.enhance_prompt
        if request.negative_prompt:
            config.negative_prompt = request.negative_prompt
        return config

    def _payload(self, request: VideoRequest) -> dict[str, Any]:
        """Capability-specific submit kwargs; validates local sources first."""
        payload: dict[str, Any] = {"prompt": request.prompt, "config": self._config(request)}
        if isinstance(request, ImageToVideoRequest):
            payload["image"] = image_payload(request.source)
        elif isinstance(request, VideoToVideoRequest):
            payload["video"] = video_payload(request.source)
        elif not isinstance(request, TextToVideoRequest):
            raise TypeError(f"Unsupported request kind for video: {request.kind}")
        return payload

    async def _refresh(self, operation: Any) -> Any:
        return await self._client.aio.operations.get(operation)

    async def generate(self, request: VideoRequest, *, cancel: asyncio.Event | None = None) -> GenerationResult:
        """Submit *request*, wait for the job, and save the first video.

        Args:
            request: Text-, image- or video-to-video request.
            cancel: Optional event that abandons the wait (remote job keeps running).

        Returns:
            GenerationResult with ``local_path``/``remote_locator``/``trace_id``,
            or a failure result describing the first error.
        """
        trace_id: str | None = None
        try:
            payload = self._payload(request)
            if not self._api_key or self._client is None:
                raise MissingCredential("No Gemini API key — set GEMINI_API_KEY or GOOGLE_API_KEY")

            logger.info("Starting %s %s (%s): %s", self.tier, request.kind, self.model, request.prompt[:80])
            operation = await self._client.aio.models.generate_videos(model=self.model, **payload)
            job = GenerationJob.from_operation(operation)
            trace_id = job.name or None
            logger.info("Operation ID: %s — polling every %.0fs", job.name, self.poll_interval)

            poller = JobPoller(self._refresh, interval=self.poll_interval, max_wait=self.max_wait, cancel=cancel)
            job = await poller.wait(job)
            video = first_video(job.handle)

            dest = artifact_path(self.output_dir, VARIANT_PREFIX, _NAME_SUFFIXES[(self.tier, request.kind)], "mp4")
            if video.uri:
                await download_video(
                    video.uri, dest, api_key=self._api_key, client=self._http, timeout=self.download_timeout,
                )
            else:
                write_artifact(video.video_bytes, dest)
            logger.info("Video generated: %s (locator %s)", dest, video.uri)
            return GenerationResult.ok(str(dest), remote_locator=video.uri, trace_id=job.name or trace_id)
        except Exception as exc:
            logger.error("%s %s failed: %s", self.tier, request.kind, exc)
            return GenerationResult.fail(exc, trace_id=trace_id)
