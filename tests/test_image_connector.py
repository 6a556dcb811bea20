"""Tests for the Imagen connector."""

from __future__ import annotations

import re
from types import SimpleNamespace

import httpx

from genmedia_mcp.connectors.image import ImageConnector, first_image_locator
from genmedia_mcp.models.generation import GenerationOptions, TextToImageRequest


def _response(*images):
    return SimpleNamespace(generated_images=[SimpleNamespace(image=img) for img in images])


def _image(data: bytes | None = None, gcs_uri: str | None = None, mime_type: str | None = "image/jpeg"):
    return SimpleNamespace(image_bytes=data, gcs_uri=gcs_uri, mime_type=mime_type)


def _connector(client, output_dir, *, api_key="test-key", http=None) -> ImageConnector:
    return ImageConnector(
        client, model="imagen-4.0-ultra-generate-001", output_dir=output_dir, api_key=api_key, http=http,
    )


class TestFirstImageLocator:
    def test_inline_bytes_become_data_uri(self):
        assert first_image_locator(_response(_image(b"jpg"))).startswith("data:image/jpeg;base64,")

    def test_gcs_uri(self):
        assert first_image_locator(_response(_image(gcs_uri="gs://b/i.jpg"))) == "gs://b/i.jpg"


class TestGenerate:
    async def test_saves_jpeg(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_images.return_value = _response(_image(b"\xff\xd8\xff"))

        result = await _connector(mock_genai, output_dir).generate(
            TextToImageRequest(prompt="a lighthouse", options=GenerationOptions(aspect_ratio="9:16")),
        )

        assert result.success is True
        assert re.search(r"imagen4_t2i_\d+\.jpg$", result.local_path)
        assert result.remote_locator is None
        with open(result.local_path, "rb") as f:
            assert f.read() == b"\xff\xd8\xff"
        config = mock_genai.aio.models.generate_images.await_args.kwargs["config"]
        assert config.aspect_ratio == "9:16"
        assert config.output_mime_type == "image/jpeg"
        assert config.number_of_images == 1

    async def test_remote_image_fetched(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_images.return_value = _response(
            _image(gcs_uri="https://storage.example/i.jpg"),
        )
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda req: httpx.Response(200, content=b"img")))

        result = await _connector(mock_genai, output_dir, http=http).generate(TextToImageRequest(prompt="x"))

        assert result.remote_locator == "https://storage.example/i.jpg"
        with open(result.local_path, "rb") as f:
            assert f.read() == b"img"

    async def test_no_image(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_images.return_value = _response()
        result = await _connector(mock_genai, output_dir).generate(TextToImageRequest(prompt="x"))
        assert result.success is False
        assert result.category == "ARTIFACT_NOT_FOUND"
        assert list(output_dir.iterdir()) == []

    async def test_missing_credential(self, mock_genai, output_dir):
        result = await _connector(mock_genai, output_dir, api_key="").generate(TextToImageRequest(prompt="x"))
        assert result.category == "MISSING_CREDENTIAL"
        mock_genai.aio.models.generate_images.assert_not_awaited()

    async def test_quota_error(self, mock_genai, output_dir):
        mock_genai.aio.models.generate_images.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")
        result = await _connector(mock_genai, output_dir).generate(TextToImageRequest(prompt="x"))
        assert result.category == "API_QUOTA_EXCEEDED"
