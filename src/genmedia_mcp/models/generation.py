"""Generation request variants and the universal result contract.

Requests form a closed union tagged by ``kind``; they are frozen so a
submitted request cannot change while its job is in flight. Every connector
returns a :class:`GenerationResult` whether it succeeded or not.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import ErrorCategory, categorize_error
from ..types import AspectRatio, DurationSeconds, PersonPolicy


class GenerationOptions(BaseModel):
    """Recognised options bag shared by every capability."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aspect_ratio: AspectRatio = "16:9"
    person_policy: PersonPolicy = "allow_adult"
    duration_seconds: DurationSeconds | None = None
    enhance_prompt: bool | None = None


class _RequestBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    prompt: str = Field(min_length=1)
    negative_prompt: str | None = None
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class TextToVideoRequest(_RequestBase):
    kind: Literal["text_to_video"] = "text_to_video"


class ImageToVideoRequest(_RequestBase):
    """Animate a first frame; ``source`` is a local image path or ``gs://`` URI."""

    kind: Literal["image_to_video"] = "image_to_video"
    source: str = Field(min_length=1)


class VideoToVideoRequest(_RequestBase):
    """Extend a video; ``source`` is a remote locator or local video path."""

    kind: Literal["video_to_video"] = "video_to_video"
    source: str = Field(min_length=1)


class TextToImageRequest(_RequestBase):
    kind: Literal["text_to_image"] = "text_to_image"


GenerationRequest = Annotated[
    Union[TextToVideoRequest, ImageToVideoRequest, VideoToVideoRequest, TextToImageRequest],
    Field(discriminator="kind"),
]
VideoRequest = Union[TextToVideoRequest, ImageToVideoRequest, VideoToVideoRequest]


class GenerationResult(BaseModel):
    """Terminal outcome of one generation step.

    Exactly one payload is populated: the success payload (``local_path``,
    ``remote_locator``, ``message``) or the failure payload (``error``).
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    local_path: str | None = None
    remote_locator: str | None = None
    trace_id: str | None = None
    message: str | None = None
    error: str | None = None
    category: str | None = None

    @model_validator(mode="after")
    def _one_payload(self) -> GenerationResult:
        has_success = bool(self.local_path or self.remote_locator or self.message)
        has_failure = bool(self.error)
        if has_success == has_failure:
            raise ValueError("GenerationResult needs exactly one of a success or failure payload")
        if self.success != has_success:
            raise ValueError("success flag disagrees with the populated payload")
        return self

    @classmethod
    def ok(
        cls,
        local_path: str | None = None,
        *,
        remote_locator: str | None = None,
        trace_id: str | None = None,
        message: str | None = None,
    ) -> GenerationResult:
        return cls(
            success=True,
            local_path=local_path,
            remote_locator=remote_locator,
            trace_id=trace_id,
            message=message,
        )

    @classmethod
    def fail(cls, error: BaseException | str, *, trace_id: str | None = None) -> GenerationResult:
        """Build a failure result from an exception or a plain message."""
        if isinstance(error, BaseException):
            category, _ = categorize_error(error)
            text = str(error) or type(error).__name__
        else:
            category, text = ErrorCategory.UNKNOWN, error
        return cls(success=False, error=text, category=category.value, trace_id=trace_id)
