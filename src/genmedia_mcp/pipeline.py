"""Voiceover pipeline: image → narration → mux → optional post.

Stages run strictly in order inside the calling task. Each outcome is
recorded on the :class:`PipelineRun` before the next stage starts, and the
first failure ends the run, so a failed run still reports the artifacts of
every stage that succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from .combiner import MediaCombiner
from .connectors.image import ImageConnector
from .models.generation import GenerationResult, TextToImageRequest
from .models.pipeline import PipelineRun, StageName, VoiceoverRequest
from .prompts.host import VOICEOVER_POST_TEXT
from .publish import Publisher
from .speech import SpeechSynthesizer

logger = logging.getLogger(__name__)

Stage = Callable[[VoiceoverRequest, PipelineRun], Awaitable[GenerationResult]]


class VoiceoverPipeline:
    """Sequence the image, audio, muxing and publish stages of one request."""

    def __init__(
        self,
        image: ImageConnector,
        speech: SpeechSynthesizer,
        combiner: MediaCombiner,
        publisher: Publisher,
    ) -> None:
        self._image = image
        self._speech = speech
        self._combiner = combiner
        self._publisher = publisher
        self._stages: dict[StageName, Stage] = {
            "image": self._generate_image,
            "audio": self._synthesize_audio,
            "muxing": self._combine,
            "publish": self._publish,
        }

    async def _generate_image(self, request: VoiceoverRequest, run: PipelineRun) -> GenerationResult:
        return await self._image.generate(TextToImageRequest(prompt=request.image_prompt))

    async def _synthesize_audio(self, request: VoiceoverRequest, run: PipelineRun) -> GenerationResult:
        return await self._speech.synthesize(request.tts_script, voice_id=request.voice_id)

    async def _combine(self, request: VoiceoverRequest, run: PipelineRun) -> GenerationResult:
        path = await self._combiner.combine(run.outcome("image").local_path, run.outcome("audio").local_path)
        return GenerationResult.ok(str(path))

    async def _publish(self, request: VoiceoverRequest, run: PipelineRun) -> GenerationResult:
        text = VOICEOVER_POST_TEXT.format(summary=request.image_prompt[:100])
        return await self._publisher.post(text, media_path=run.outcome("muxing").local_path)

    async def run(self, request: VoiceoverRequest) -> PipelineRun:
        """Execute every requested stage; never raises for a stage failure."""
        run = PipelineRun(publish=request.post_on_x)
        while not run.finalized:
            stage = run.pending_stage
            logger.info("Pipeline stage %s started", stage)
            try:
                result = await self._stages[stage](request, run)
            except Exception as exc:
                logger.error("Pipeline stage %s raised: %s", stage, exc)
                result = GenerationResult.fail(exc)
            run.record(stage, result)
            logger.info("Pipeline stage %s %s", stage, "succeeded" if result.success else "failed")

        if run.error:
            logger.warning("Pipeline aborted: %s", run.error)
        else:
            logger.info("Pipeline complete: %d stage(s)", len(run.stages))
        return run
