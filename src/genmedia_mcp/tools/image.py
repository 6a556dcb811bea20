"""Imagen tool — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..errors import make_tool_error, tool_failure
from ..models.generation import GenerationOptions, TextToImageRequest
from ..studio import current_studio
from ..types import AspectRatio, PromptParam

image_server = FastMCP("image")


@image_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def generate_image(prompt: PromptParam, aspect_ratio: AspectRatio = "16:9") -> dict:
    """Generate a 2K JPEG image from a text prompt with Imagen.

    Args:
        prompt: What the image should show.
        aspect_ratio: "16:9" or "9:16".

    Returns:
        Dict with image_path and the prompt used.
    """
    try:
        request = TextToImageRequest(prompt=prompt, options=GenerationOptions(aspect_ratio=aspect_ratio))
        result = await current_studio().image.generate(request)
        if not result.success:
            return tool_failure(result)
        return {"success": True, "image_path": result.local_path, "prompt": prompt}
    except Exception as exc:
        return make_tool_error(exc)
