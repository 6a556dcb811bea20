"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_VOICE_ID = "SOYHLrjzK2X1ezoPC6cr"
DEFAULT_TTS_MODEL = "eleven_multilingual_v2"

_API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GOOGLE_GENAI_API_KEY")


def _first_env(*names: str) -> str:
    """Return the first non-blank value among *names*."""
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    Empty-string credentials mean the matching capability is unavailable;
    the failure surfaces per request (``MissingCredential``), never at startup.
    """

    gemini_api_key: str = Field(default="")
    output_dir: str = Field(default="")
    image_model: str = Field(default="imagen-4.0-ultra-generate-001")
    veo_model: str = Field(default="veo-3.1-generate-preview")
    veo_fast_model: str = Field(default="veo-3.1-fast-generate-preview")
    host_model: str = Field(default="gemini-flash-latest")
    host_max_turns: int = Field(default=4)
    fast_poll_interval: float = Field(default=3.0)
    hq_poll_interval: float = Field(default=5.0)
    max_job_wait_seconds: float = Field(default=900.0)
    download_timeout: float = Field(default=300.0)
    ffmpeg_path: str = Field(default="ffmpeg")
    mux_timeout: float = Field(default=600.0)
    elevenlabs_api_key: str = Field(default="")
    elevenlabs_output_mode: str = Field(default="files")
    elevenlabs_base_path: str = Field(default="")
    elevenlabs_voice_id: str = Field(default=DEFAULT_VOICE_ID)
    elevenlabs_model_id: str = Field(default=DEFAULT_TTS_MODEL)
    twitter_mcp_path: str = Field(default="")
    twitter_api_key: str = Field(default="")
    twitter_api_secret: str = Field(default="")
    twitter_access_token: str = Field(default="")
    twitter_access_secret: str = Field(default="")

    @field_validator("fast_poll_interval", "hq_poll_interval", "download_timeout", "mux_timeout")
    @classmethod
    def validate_positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Intervals and timeouts must be > 0")
        return value

    @field_validator("max_job_wait_seconds")
    @classmethod
    def validate_max_job_wait(cls, value: float) -> float:
        if value < 0:
            raise ValueError("max_job_wait_seconds must be >= 0 (0 disables the limit)")
        return value

    @field_validator("host_max_turns")
    @classmethod
    def validate_host_max_turns(cls, value: int) -> int:
        if value < 1:
            raise ValueError("host_max_turns must be >= 1")
        return value

    @property
    def resolved_output_dir(self) -> Path:
        """Directory all artifacts are written to (``./output`` by default)."""
        if self.output_dir:
            return Path(self.output_dir).expanduser()
        return Path.cwd() / "output"

    @property
    def resolved_speech_dir(self) -> Path:
        """Directory the ElevenLabs tool server writes audio files into."""
        if self.elevenlabs_base_path:
            return Path(self.elevenlabs_base_path).expanduser()
        return self.resolved_output_dir

    @property
    def max_job_wait(self) -> float | None:
        """Poll budget in seconds, or None for the unbounded baseline."""
        return self.max_job_wait_seconds or None

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=_first_env(*_API_KEY_VARS),
            output_dir=os.getenv("GENMEDIA_OUTPUT_DIR", ""),
            image_model=os.getenv("GENMEDIA_IMAGE_MODEL", "imagen-4.0-ultra-generate-001"),
            veo_model=os.getenv("GENMEDIA_VEO_MODEL", "veo-3.1-generate-preview"),
            veo_fast_model=os.getenv("GENMEDIA_VEO_FAST_MODEL", "veo-3.1-fast-generate-preview"),
            host_model=os.getenv("GENMEDIA_HOST_MODEL", "gemini-flash-latest"),
            host_max_turns=int(os.getenv("GENMEDIA_HOST_MAX_TURNS", "4")),
            fast_poll_interval=_env_float("GENMEDIA_FAST_POLL_INTERVAL", "3"),
            hq_poll_interval=_env_float("GENMEDIA_HQ_POLL_INTERVAL", "5"),
            max_job_wait_seconds=_env_float("GENMEDIA_MAX_JOB_WAIT", "900"),
            download_timeout=_env_float("GENMEDIA_DOWNLOAD_TIMEOUT", "300"),
            ffmpeg_path=os.getenv("GENMEDIA_FFMPEG_PATH", "ffmpeg"),
            mux_timeout=_env_float("GENMEDIA_MUX_TIMEOUT", "600"),
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY", ""),
            elevenlabs_output_mode=os.getenv("ELEVENLABS_MCP_OUTPUT_MODE", "files"),
            elevenlabs_base_path=os.getenv("ELEVENLABS_MCP_BASE_PATH", ""),
            elevenlabs_voice_id=os.getenv("ELEVENLABS_VOICE_ID", DEFAULT_VOICE_ID),
            elevenlabs_model_id=os.getenv("ELEVENLABS_MODEL_ID", DEFAULT_TTS_MODEL),
            twitter_mcp_path=os.getenv("TWITTER_MCP_PATH", ""),
            twitter_api_key=os.getenv("TWITTER_API_KEY", ""),
            twitter_api_secret=os.getenv("TWITTER_API_SECRET", ""),
            twitter_access_token=os.getenv("TWITTER_ACCESS_TOKEN", ""),
            twitter_access_secret=os.getenv("TWITTER_ACCESS_SECRET", ""),
        )


# Initialised once on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/genmedia-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logging.getLogger(__name__).info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config; ``None`` overrides are ignored."""
    global _config
    data = get_config().model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
