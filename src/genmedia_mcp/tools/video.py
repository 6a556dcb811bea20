"""Veo video tools — 6 tools on a FastMCP sub-server (fast and hq tiers)."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error, tool_failure
from ..models.generation import (
    GenerationOptions,
    ImageToVideoRequest,
    TextToVideoRequest,
    VideoRequest,
    VideoToVideoRequest,
)
from ..studio import current_studio
from ..types import AspectRatio, DurationSeconds, ImagePath, PersonPolicy, PromptParam, VideoLocator, VideoTier

video_server = FastMCP("video")

_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=False,
    destructiveHint=False,
    idempotentHint=False,
    openWorldHint=True,
)


async def _generate(tier: VideoTier, request: VideoRequest, *, include_locator: bool = True) -> dict:
    """Run *request* on the *tier* connector and shape the tool response."""
    result = await current_studio().videos[tier].generate(request)
    if not result.success:
        return tool_failure(result)
    response = {"success": True, "video_path": result.local_path}
    if include_locator:
        response["video_locator"] = result.remote_locator
    response["trace_id"] = result.trace_id
    return response


@video_server.tool(annotations=_ANNOTATIONS)
async def text_to_video_fast(
    prompt: PromptParam,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
) -> dict:
    """Generate a video from a text prompt with the fast Veo model.

    Args:
        prompt: What the video should show.
        aspect_ratio: "16:9" or "9:16".
        person_policy: Whether people may appear.

    Returns:
        Dict with video_path, video_locator (reusable for extensions) and trace_id.
    """
    try:
        options = GenerationOptions(aspect_ratio=aspect_ratio, person_policy=person_policy)
        return await _generate("fast", TextToVideoRequest(prompt=prompt, options=options))
    except Exception as exc:
        return make_tool_error(exc)


@video_server.tool(annotations=_ANNOTATIONS)
async def image_to_video_fast(
    image_path: ImagePath,
    prompt: PromptParam,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
) -> dict:
    """Animate a local image with the fast Veo model.

    Args:
        image_path: First frame (jpg, jpeg, png, webp).
        prompt: How the scene should move.
        aspect_ratio: "16:9" or "9:16".
        person_policy: Whether people may appear.

    Returns:
        Dict with video_path, video_locator and trace_id.
    """
    try:
        options = GenerationOptions(aspect_ratio=aspect_ratio, person_policy=person_policy)
        return await _generate("fast", ImageToVideoRequest(prompt=prompt, source=image_path, options=options))
    except Exception as exc:
        return make_tool_error(exc)


@video_server.tool(annotations=_ANNOTATIONS)
async def video_extension_fast(
    video_locator: VideoLocator,
    prompt: PromptParam,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
) -> dict:
    """Continue a previously generated video with the fast Veo model.

    Args:
        video_locator: video_locator returned by an earlier generation.
        prompt: What happens next.
        aspect_ratio: "16:9" or "9:16".
        person_policy: Whether people may appear.

    Returns:
        Dict with video_path, video_locator and trace_id.
    """
    try:
        options = GenerationOptions(aspect_ratio=aspect_ratio, person_policy=person_policy)
        return await _generate("fast", VideoToVideoRequest(prompt=prompt, source=video_locator, options=options))
    except Exception as exc:
        return make_tool_error(exc)


@video_server.tool(annotations=_ANNOTATIONS)
async def text_to_video_hq(
    prompt: PromptParam,
    negative_prompt: Annotated[str | None, Field(description="What the video should avoid")] = None,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
    duration_seconds: DurationSeconds = 8,
    enhance_prompt: Annotated[bool, Field(description="Let Veo rewrite the prompt for quality")] = True,
) -> dict:
    """Generate a high-quality video from a text prompt.

    Args:
        prompt: What the video should show.
        negative_prompt: Content to steer away from.
        aspect_ratio: "16:9" or "9:16".
        person_policy: Whether people may appear.
        duration_seconds: Clip length, 5-8 seconds.
        enhance_prompt: Enable server-side prompt enhancement.

    Returns:
        Dict with video_path, video_locator and trace_id.
    """
    try:
        options = GenerationOptions(
            aspect_ratio=aspect_ratio,
            person_policy=person_policy,
            duration_seconds=duration_seconds,
            enhance_prompt=enhance_prompt,
        )
        request = TextToVideoRequest(prompt=prompt, negative_prompt=negative_prompt, options=options)
        return await _generate("hq", request)
    except Exception as exc:
        return make_tool_error(exc)


@video_server.tool(annotations=_ANNOTATIONS)
async def image_to_video_hq(
    image_path: ImagePath,
    prompt: PromptParam,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
    duration_seconds: DurationSeconds = 6,
) -> dict:
    """Animate a local image with the high-quality Veo model.

    Returns:
        Dict with video_path, video_locator and trace_id.
    """
    try:
        options = GenerationOptions(
            aspect_ratio=aspect_ratio, person_policy=person_policy, duration_seconds=duration_seconds,
        )
        return await _generate("hq", ImageToVideoRequest(prompt=prompt, source=image_path, options=options))
    except Exception as exc:
        return make_tool_error(exc)


@video_server.tool(annotations=_ANNOTATIONS)
async def video_extension_hq(
    video_locator: VideoLocator,
    prompt: PromptParam,
    aspect_ratio: AspectRatio = "16:9",
    person_policy: PersonPolicy = "allow_adult",
) -> dict:
    """Continue a previously generated video with the high-quality Veo model.

    Returns:
        Dict with video_path and trace_id.
    """
    try:
        options = GenerationOptions(aspect_ratio=aspect_ratio, person_policy=person_policy)
        request = VideoToVideoRequest(prompt=prompt, source=video_locator, options=options)
        return await _generate("hq", request, include_locator=False)
    except Exception as exc:
        return make_tool_error(exc)
