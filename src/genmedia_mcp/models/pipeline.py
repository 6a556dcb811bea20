"""Composite pipeline request and run-record models."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .generation import GenerationResult

StageName = Literal["image", "audio", "muxing", "publish"]


class RunStatus(str, Enum):
    """Linear pipeline states; ``complete`` and ``failed`` are terminal."""

    IMAGE_PENDING = "image_pending"
    AUDIO_PENDING = "audio_pending"
    MUXING_PENDING = "muxing_pending"
    PUBLISH_PENDING = "publish_pending"
    COMPLETE = "complete"
    FAILED = "failed"


_PENDING_STAGE: dict[RunStatus, StageName] = {
    RunStatus.IMAGE_PENDING: "image",
    RunStatus.AUDIO_PENDING: "audio",
    RunStatus.MUXING_PENDING: "muxing",
    RunStatus.PUBLISH_PENDING: "publish",
}


class VoiceoverRequest(BaseModel):
    """Image + narration composite request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    image_prompt: str = Field(min_length=1)
    tts_script: str = Field(min_length=1)
    post_on_x: bool = False
    voice_id: str | None = None


class StageOutcome(BaseModel):
    """Recorded result of one attempted stage."""

    model_config = ConfigDict(frozen=True)

    stage: StageName
    result: GenerationResult


class PipelineRun(BaseModel):
    """Ordered stage outcomes plus one aggregate status.

    Created per composite request and advanced only through :meth:`record`.
    Once ``complete`` or ``failed`` the run is final and rejects changes.
    """

    stages: list[StageOutcome] = Field(default_factory=list)
    status: RunStatus = RunStatus.IMAGE_PENDING
    error: str | None = None
    publish: bool = False

    @property
    def finalized(self) -> bool:
        return self.status in (RunStatus.COMPLETE, RunStatus.FAILED)

    @property
    def pending_stage(self) -> StageName | None:
        return _PENDING_STAGE.get(self.status)

    @property
    def success(self) -> bool:
        return self.status is RunStatus.COMPLETE

    def outcome(self, stage: StageName) -> GenerationResult | None:
        for recorded in self.stages:
            if recorded.stage == stage:
                return recorded.result
        return None

    def _next_status(self, stage: StageName) -> RunStatus:
        if stage == "image":
            return RunStatus.AUDIO_PENDING
        if stage == "audio":
            return RunStatus.MUXING_PENDING
        if stage == "muxing" and self.publish:
            return RunStatus.PUBLISH_PENDING
        return RunStatus.COMPLETE

    def record(self, stage: StageName, result: GenerationResult) -> None:
        """Append *stage*'s outcome and advance; the first failure finalises the run.

        Raises:
            RuntimeError: The run is already final.
            ValueError: *stage* is not the stage the run is waiting on.
        """
        if self.finalized:
            raise RuntimeError(f"Pipeline run is already {self.status.value}")
        if stage != self.pending_stage:
            raise ValueError(f"Expected outcome for {self.pending_stage!r}, got {stage!r}")
        self.stages.append(StageOutcome(stage=stage, result=result))
        if result.success:
            self.status = self._next_status(stage)
        else:
            self.status = RunStatus.FAILED
            self.error = f"{stage} stage failed: {result.error}"
