"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .config import get_config
from .studio import Studio, use_studio
from .tools.image import image_server
from .tools.media import media_server
from .tools.pipeline import pipeline_server
from .tools.video import video_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — opens the Studio and its tool host, closes them on exit."""
    async with Studio.from_config(get_config()) as studio:
        with use_studio(studio):
            logger.info("Studio ready (output dir %s)", studio.config.resolved_output_dir)
            yield {"studio": studio}
    logger.info("Lifespan shutdown complete")


app = FastMCP(
    "genmedia",
    instructions=(
        "Generative media studio — Imagen stills, Veo video (fast and high-quality "
        "tiers, image animation, extension), ElevenLabs narration, ffmpeg muxing "
        "and posting to X."
    ),
    lifespan=_lifespan,
)

app.mount(image_server)
app.mount(video_server)
app.mount(media_server)
app.mount(pipeline_server)


def main() -> None:
    """Entry-point for ``genmedia-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
