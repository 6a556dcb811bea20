"""Speech synthesis through the ElevenLabs tool server."""

from __future__ import annotations

import logging

from .errors import ExtractionFailed
from .extraction import ExtractionChain
from .host import ToolHost
from .models.generation import GenerationResult
from .prompts.host import speech_instruction

logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """Ask the tool host to synthesise *text* and recover the saved audio file.

    Args:
        host: Opened tool-invocation host.
        extractor: Chain used to find the audio path in the host's response.
        voice_id: Default ElevenLabs voice.
        model_id: ElevenLabs model.
    """

    def __init__(self, host: ToolHost, extractor: ExtractionChain, *, voice_id: str, model_id: str) -> None:
        self._host = host
        self._extractor = extractor
        self.voice_id = voice_id
        self.model_id = model_id

    async def synthesize(self, text: str, voice_id: str | None = None) -> GenerationResult:
        try:
            record = await self._host.invoke(speech_instruction(text, voice_id or self.voice_id, self.model_id))
            record.raise_for_errors()
            artifact = self._extractor.extract(record, "audio")
            if not artifact.found:
                raise ExtractionFailed(f"{artifact.reason}: {artifact.raw_text[:500]}", raw_text=artifact.raw_text)
            return GenerationResult.ok(artifact.path, message=f"extracted via {artifact.strategy}")
        except Exception as exc:
            logger.error("Speech synthesis failed: %s", exc)
            return GenerationResult.fail(exc)
