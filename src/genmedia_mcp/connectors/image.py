"""Imagen connector — text-to-image.

Imagen answers synchronously, so there is no job to poll; the first image
is expressed as a locator (inline ``data:`` URI, or the ``gs://`` URI when
the service returns one) and materialised like any other artifact.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx
from google import genai
from google.genai import types

from ..artifacts import artifact_path, is_inline, materialize, to_data_uri, write_artifact
from ..errors import ArtifactNotFound, MissingCredential
from ..models.generation import GenerationResult, TextToImageRequest

logger = logging.getLogger(__name__)

VARIANT_PREFIX = "imagen4"
NAME_SUFFIX = "t2i"
OUTPUT_MIME_TYPE = "image/jpeg"


def first_image_locator(response: Any) -> str:
    """Locator for the first generated image in an Imagen response.

    Raises:
        ArtifactNotFound: The response holds no image payload.
    """
    for generated in getattr(response, "generated_images", None) or []:
        image = getattr(generated, "image", None)
        if image is None:
            continue
        if image.image_bytes:
            return to_data_uri(image.image_bytes, image.mime_type or OUTPUT_MIME_TYPE)
        if image.gcs_uri:
            return image.gcs_uri
    raise ArtifactNotFound("artifact not found in output")


class ImageConnector:
    """Imagen text-to-image exposed as ``generate(request)``."""

    def __init__(
        self,
        client: genai.Client | None,
        *,
        model: str,
        output_dir: Path,
        api_key: str,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client
        self.model = model
        self.output_dir = output_dir
        self._api_key = api_key
        self._http = http

    async def generate(self, request: TextToImageRequest) -> GenerationResult:
        try:
            if not self._api_key or self._client is None:
                raise MissingCredential("No Gemini API key — set GEMINI_API_KEY or GOOGLE_API_KEY")

            logger.info("Generating image (%s): %s", self.model, request.prompt[:80])
            config = types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type=OUTPUT_MIME_TYPE,
                aspect_ratio=request.options.aspect_ratio,
                person_generation=request.options.person_policy.upper(),
                image_size="2K",
            )
            if request.negative_prompt:
                config.negative_prompt = request.negative_prompt
            response = await self._client.aio.models.generate_images(
                model=self.model, prompt=request.prompt, config=config,
            )
            locator = first_image_locator(response)
            data = await materialize(locator, client=self._http)

            dest = write_artifact(data, artifact_path(self.output_dir, VARIANT_PREFIX, NAME_SUFFIX, "jpg"))
            remote = None if is_inline(locator) else locator
            return GenerationResult.ok(str(dest), remote_locator=remote)
        except Exception as exc:
            logger.error("Image generation failed: %s", exc)
            return GenerationResult.fail(exc)
