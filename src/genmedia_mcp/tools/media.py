"""Audio and muxing tools — 2 tools on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error, tool_failure
from ..studio import current_studio

media_server = FastMCP("media")


@media_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def combine_frame_and_audio(
    frame_path: Annotated[str, Field(min_length=1, description="Still image to loop as the video track")],
    audio_path: Annotated[str, Field(min_length=1, description="Audio track; sets the output length")],
) -> dict:
    """Combine a still frame and an audio file into an mp4 with ffmpeg.

    Returns:
        Dict with video_path of the combined file.
    """
    try:
        path = await current_studio().combiner.combine(frame_path, audio_path)
        return {"success": True, "video_path": str(path)}
    except Exception as exc:
        return make_tool_error(exc)


@media_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def text_to_speech(
    text: Annotated[str, Field(min_length=1, description="Narration text")],
    voice_id: Annotated[str | None, Field(description="ElevenLabs voice ID (server default if omitted)")] = None,
) -> dict:
    """Synthesise speech through the ElevenLabs tool server.

    Args:
        text: What to say.
        voice_id: Voice override.

    Returns:
        Dict with audio_path and the extraction strategy that located it.
    """
    try:
        result = await current_studio().speech.synthesize(text, voice_id=voice_id)
        if not result.success:
            return tool_failure(result)
        return {"success": True, "audio_path": result.local_path, "strategy": result.message}
    except Exception as exc:
        return make_tool_error(exc)
