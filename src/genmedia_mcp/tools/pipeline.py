"""Composite pipeline and publishing tools — 2 tools on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error, tool_failure
from ..models.pipeline import VoiceoverRequest
from ..studio import current_studio

pipeline_server = FastMCP("pipeline")


@pipeline_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def video_with_voiceover(
    image_prompt: Annotated[str, Field(min_length=1, description="Prompt for the still frame")],
    tts_script: Annotated[str, Field(min_length=1, description="Narration read over the frame")],
    post_on_x: Annotated[bool, Field(description="Publish the finished video to X")] = False,
    voice_id: Annotated[str | None, Field(description="ElevenLabs voice ID override")] = None,
) -> dict:
    """Generate an image, narrate it, mux both into a video, optionally post it.

    Stages stop at the first failure; the returned run lists every stage
    that was attempted with its outcome.

    Returns:
        PipelineRun dict with stages, status, error and success.
    """
    try:
        request = VoiceoverRequest(
            image_prompt=image_prompt, tts_script=tts_script, post_on_x=post_on_x, voice_id=voice_id,
        )
        run = await current_studio().pipeline.run(request)
        muxed = run.outcome("muxing")
        return {
            **run.model_dump(mode="json"),
            "success": run.success,
            "video_path": muxed.local_path if muxed and muxed.success else None,
        }
    except Exception as exc:
        return make_tool_error(exc)


@pipeline_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def publish_post(
    text: Annotated[str, Field(min_length=1, description="Post text")],
    media_path: Annotated[str | None, Field(description="Local image or video to attach")] = None,
) -> dict:
    """Post to X through the Twitter tool server.

    Returns:
        Dict with the host's status text and the post URL when one was reported.
    """
    try:
        result = await current_studio().publisher.post(text, media_path=media_path)
        if not result.success:
            return tool_failure(result)
        return {"success": True, "status": result.message, "post_url": result.remote_locator}
    except Exception as exc:
        return make_tool_error(exc)
