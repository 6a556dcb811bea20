"""Shared type aliases for requests and tool parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

# ── Literal enums ────────────────────────────────────────────────────────────

AspectRatio = Literal["16:9", "9:16"]
PersonPolicy = Literal["dont_allow", "allow_adult", "allow_all"]
VideoTier = Literal["fast", "hq"]
ArtifactKind = Literal["audio", "video", "image"]

# ── Annotated aliases ────────────────────────────────────────────────────────

PromptParam = Annotated[str, Field(min_length=1, description="Description of the media to generate")]
DurationSeconds = Annotated[int, Field(ge=5, le=8, description="Video duration (5-8 seconds)")]
ImagePath = Annotated[str, Field(
    min_length=1,
    description="Path to a local image file (jpg, jpeg, png, webp)",
)]
VideoLocator = Annotated[str, Field(
    min_length=1,
    description="Remote locator of a previously generated video (video_locator of an earlier call)",
)]
