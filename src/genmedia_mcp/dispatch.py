"""In-process tool dispatch by name, for hosts that do not speak MCP."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import validate_call

from .errors import UnknownTool, make_tool_error
from .tools.image import generate_image
from .tools.media import combine_frame_and_audio, text_to_speech
from .tools.pipeline import publish_post, video_with_voiceover
from .tools.video import (
    image_to_video_fast,
    image_to_video_hq,
    text_to_video_fast,
    text_to_video_hq,
    video_extension_fast,
    video_extension_hq,
)

logger = logging.getLogger(__name__)


def _register(*tools: Any) -> dict[str, Callable[..., Awaitable[dict]]]:
    """Map tool names to argument-validating callables.

    ``@server.tool`` returns a FastMCP ``FunctionTool``; the plain coroutine
    function lives on its ``fn`` attribute.
    """
    registry: dict[str, Callable[..., Awaitable[dict]]] = {}
    for tool in tools:
        fn = getattr(tool, "fn", tool)
        registry[fn.__name__] = validate_call(fn)
    return registry


TOOLS = _register(
    generate_image,
    combine_frame_and_audio,
    text_to_video_fast,
    image_to_video_fast,
    video_extension_fast,
    text_to_video_hq,
    image_to_video_hq,
    video_extension_hq,
    text_to_speech,
    publish_post,
    video_with_voiceover,
)


async def call_tool(name: str, arguments: dict[str, Any] | None) -> dict:
    """Invoke tool *name* with *arguments*; every failure is returned as a ToolError dict."""
    try:
        if not arguments:
            raise ValueError("No arguments provided")
        tool = TOOLS.get(name)
        if tool is None:
            raise UnknownTool(f"Unknown tool: {name}")
        logger.info("Dispatching %s", name)
        return await tool(**arguments)
    except Exception as exc:
        return make_tool_error(exc)
