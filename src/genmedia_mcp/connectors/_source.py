"""Source payload builders — local files are inlined, remote locators pass through."""

from __future__ import annotations

from pathlib import Path

from google.genai import types

from ..artifacts import guess_mime_type
from ..errors import InputNotFound

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def _is_remote(source: str) -> bool:
    return "://" in source


def check_local_image(source: str) -> Path | None:
    """Validate a local first-frame image before any network call.

    Returns:
        The resolved path, or None when *source* is a remote ``gs://`` URI.

    Raises:
        InputNotFound: The file does not exist.
        ValueError: The extension is not a supported image type.
    """
    if _is_remote(source):
        if not source.startswith("gs://"):
            raise ValueError(f"Remote image sources must be gs:// URIs, got: {source}")
        return None
    path = Path(source).expanduser()
    if not path.is_file():
        raise InputNotFound(f"Image file not found: {source}")
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        allowed = ", ".join(sorted(IMAGE_EXTENSIONS))
        raise ValueError(f"Unsupported image extension '{path.suffix}'. Supported: {allowed}")
    return path


def image_payload(source: str) -> types.Image:
    """Build the first-frame payload: inline bytes for local files, URI otherwise."""
    path = check_local_image(source)
    if path is None:
        return types.Image(gcs_uri=source, mime_type=guess_mime_type(source))
    return types.Image(image_bytes=path.read_bytes(), mime_type=guess_mime_type(path))


def video_payload(source: str) -> types.Video:
    """Build the source video payload; remote locators are passed through unchanged."""
    if _is_remote(source):
        return types.Video(uri=source)
    path = Path(source).expanduser()
    if not path.is_file():
        raise InputNotFound(f"Video file not found: {source}")
    return types.Video(video_bytes=path.read_bytes(), mime_type=guess_mime_type(path))
