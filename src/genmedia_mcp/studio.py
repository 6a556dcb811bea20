"""Composition root: builds every collaborator from config and owns their lifecycle.

A :class:`Studio` is opened once by the server lifespan and yielded as its
lifespan context. Tool functions reach it through :func:`current_studio`,
which reads that context for the active request rather than a module-level
client.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import httpx
from fastmcp.server.dependencies import get_context
from google import genai

from .combiner import MediaCombiner
from .config import ServerConfig
from .connectors import ImageConnector, VideoConnector
from .extraction import default_chain
from .host import ToolHost, mcp_servers_from_config
from .pipeline import VoiceoverPipeline
from .publish import Publisher
from .speech import SpeechSynthesizer
from .types import VideoTier

logger = logging.getLogger(__name__)

_ACTIVE_STUDIO: ContextVar[Studio | None] = ContextVar("genmedia_studio", default=None)


class Studio:
    """Every connector, the tool host and the pipeline, wired for one config."""

    def __init__(self, cfg: ServerConfig, *, genai_client: genai.Client | None, http: httpx.AsyncClient) -> None:
        self.config = cfg
        self._genai = genai_client
        self._http = http
        output_dir = cfg.resolved_output_dir

        self.host = ToolHost(
            mcp_servers_from_config(cfg),
            genai_client=genai_client,
            model=cfg.host_model,
            max_turns=cfg.host_max_turns,
        )
        self.videos: dict[VideoTier, VideoConnector] = {
            tier: VideoConnector(
                genai_client,
                tier=tier,
                model=model,
                output_dir=output_dir,
                api_key=cfg.gemini_api_key,
                poll_interval=interval,
                max_wait=cfg.max_job_wait,
                download_timeout=cfg.download_timeout,
                http=http,
            )
            for tier, model, interval in (
                ("fast", cfg.veo_fast_model, cfg.fast_poll_interval),
                ("hq", cfg.veo_model, cfg.hq_poll_interval),
            )
        }
        self.image = ImageConnector(
            genai_client, model=cfg.image_model, output_dir=output_dir, api_key=cfg.gemini_api_key, http=http,
        )
        self.combiner = MediaCombiner(cfg.ffmpeg_path, output_dir, timeout=cfg.mux_timeout)
        self.speech = SpeechSynthesizer(
            self.host,
            default_chain(cfg.resolved_speech_dir),
            voice_id=cfg.elevenlabs_voice_id,
            model_id=cfg.elevenlabs_model_id,
        )
        self.publisher = Publisher(self.host)
        self.pipeline = VoiceoverPipeline(self.image, self.speech, self.combiner, self.publisher)

    @classmethod
    def from_config(cls, cfg: ServerConfig) -> Studio:
        """Build a Studio; the Gemini client is only created when a key is configured."""
        client = genai.Client(api_key=cfg.gemini_api_key) if cfg.gemini_api_key else None
        if client is None:
            logger.warning("No Gemini API key configured; generation tools will fail with MISSING_CREDENTIAL")
        http = httpx.AsyncClient(timeout=cfg.download_timeout)
        return cls(cfg, genai_client=client, http=http)

    async def open(self) -> None:
        await self.host.open()

    async def close(self) -> None:
        """Close the tool host, then the HTTP and Gemini clients."""
        try:
            await self.host.close()
        finally:
            await self._http.aclose()
            if self._genai is not None:
                await self._genai.aio.aclose()
                self._genai.close()
        logger.info("Studio closed")

    async def __aenter__(self) -> Studio:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _lifespan_studio() -> Studio | None:
    """Studio yielded by the server lifespan for the MCP request being handled."""
    try:
        request = get_context().request_context
    except (RuntimeError, ValueError):
        return None
    state = getattr(request, "lifespan_context", None)
    return state.get("studio") if isinstance(state, dict) else None


def current_studio() -> Studio:
    """Return the Studio opened for the running server.

    Inside an MCP request the Studio comes from the lifespan context of that
    request, which every transport provides. Outside one (in-process
    dispatch, tests) the Studio bound by :func:`use_studio` is used.

    Raises:
        RuntimeError: No Studio is active in this execution scope.
    """
    studio = _lifespan_studio() or _ACTIVE_STUDIO.get()
    if studio is None:
        raise RuntimeError("Studio is not open; start the server or wrap calls in use_studio()")
    return studio


@contextmanager
def use_studio(studio: Studio) -> Iterator[Studio]:
    """Make *studio* the active Studio for the enclosed scope."""
    token = _ACTIVE_STUDIO.set(studio)
    try:
        yield studio
    finally:
        _ACTIVE_STUDIO.reset(token)
