"""Social posting through the X/Twitter tool server."""

from __future__ import annotations

import logging
import re

from .errors import ExtractionFailed
from .host import ToolHost
from .models.generation import GenerationResult
from .prompts.host import post_instruction

logger = logging.getLogger(__name__)

_POST_URL = re.compile(r"https?://(?:www\.)?(?:x|twitter)\.com/\S+/status/\d+")


class Publisher:
    """Post text (optionally with a media attachment) via the tool host."""

    def __init__(self, host: ToolHost) -> None:
        self._host = host

    async def post(self, text: str, media_path: str | None = None) -> GenerationResult:
        """Publish a post.

        Success results carry the attached media as ``local_path``, the
        first post URL found as ``remote_locator`` and the host's reply as
        ``message``.
        """
        try:
            record = await self._host.invoke(post_instruction(text, media_path))
            if not record.calls:
                raise ExtractionFailed("No tool calls were made", raw_text=record.text)
            record.raise_for_errors()
            haystack = " ".join([record.text, *(str(c.output) for c in record.calls)])
            match = _POST_URL.search(haystack)
            status = record.text or "Posted to X successfully"
            logger.info("Posted to X: %s", status[:200])
            return GenerationResult.ok(
                media_path,
                remote_locator=match.group(0) if match else None,
                message=status,
            )
        except Exception as exc:
            logger.error("Publishing failed: %s", exc)
            return GenerationResult.fail(exc)
