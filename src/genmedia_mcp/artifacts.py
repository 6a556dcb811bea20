"""Artifact materialisation — decode inline payloads, download remote ones, name outputs."""

from __future__ import annotations

import base64
import logging
import threading
import time
from pathlib import Path
from urllib.parse import unquote_to_bytes

import httpx

from .errors import DownloadFailed, MissingCredential

logger = logging.getLogger(__name__)

MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
}

_stamp_lock = threading.Lock()
_last_stamp = 0


def guess_mime_type(path: str | Path) -> str:
    """MIME type from the file extension, ``application/octet-stream`` if unknown."""
    return MIME_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def _next_stamp() -> int:
    """Epoch milliseconds, strictly increasing across calls in this process."""
    global _last_stamp
    with _stamp_lock:
        stamp = max(int(time.time() * 1000), _last_stamp + 1)
        _last_stamp = stamp
        return stamp


def artifact_path(output_dir: Path, variant: str, suffix: str, ext: str) -> Path:
    """Return ``{output_dir}/{variant}_{suffix}_{epoch-millis}.{ext}``, creating the directory."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / f"{variant}_{suffix}_{_next_stamp()}.{ext.lstrip('.')}"


def is_inline(locator: str) -> bool:
    return locator.startswith("data:")


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(locator: str) -> tuple[str, bytes]:
    """Split a ``data:`` URI into ``(mime_type, payload)``.

    Raises:
        DownloadFailed: If the URI is malformed or carries no payload.
    """
    header, sep, payload = locator.partition(",")
    if not sep or not header.startswith("data:"):
        raise DownloadFailed("Malformed inline artifact (expected data:<mime>;base64,<payload>)")
    meta = header[len("data:"):].split(";")
    mime = meta[0] or "application/octet-stream"
    try:
        data = base64.b64decode(payload, validate=True) if "base64" in meta[1:] else unquote_to_bytes(payload)
    except ValueError as exc:
        raise DownloadFailed(f"Inline artifact is not valid base64: {exc}") from exc
    if not data:
        raise DownloadFailed("Inline artifact has an empty payload")
    return mime, data


async def materialize(locator: str, *, client: httpx.AsyncClient | None = None, timeout: float = 60) -> bytes:
    """Return the bytes behind *locator* (``data:`` URI or ``http(s)`` URL).

    Args:
        locator: Inline payload or remote reference.
        client: Optional shared HTTP client; a short-lived one is used otherwise.
        timeout: Request timeout when no client is given.

    Raises:
        DownloadFailed: Fetch failed, returned no body, or the scheme is unsupported.
    """
    if is_inline(locator):
        return decode_data_uri(locator)[1]
    if not locator.startswith(("http://", "https://")):
        raise DownloadFailed(f"Unsupported artifact locator: {locator[:80]}")

    async def _fetch(http: httpx.AsyncClient) -> bytes:
        try:
            resp = await http.get(locator, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise DownloadFailed(f"Failed to download artifact: {exc}") from exc
        if resp.is_error:
            raise DownloadFailed(f"Failed to download artifact: {resp.status_code} {resp.reason_phrase}")
        if not resp.content:
            raise DownloadFailed("Failed to download artifact: empty response body")
        return resp.content

    if client is not None:
        return await _fetch(client)
    async with httpx.AsyncClient(timeout=timeout) as http:
        return await _fetch(http)


def write_artifact(data: bytes, dest: Path) -> Path:
    """Write *data* to *dest* and log the saved size."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)
    logger.info("Saved artifact %s (%d bytes)", dest, len(data))
    return dest


async def download_video(
    uri: str,
    dest: Path,
    *,
    api_key: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = 300,
) -> Path:
    """Stream a generated video to *dest*, authenticating with the ``key`` query parameter.

    The body is written chunk by chunk, never buffered whole. A partial file
    is removed on failure.

    Raises:
        MissingCredential: No API key is available for the download.
        DownloadFailed: Error status, transport failure, or an empty body.
    """
    if not api_key:
        raise MissingCredential(
            "Missing API key for video download. Set GEMINI_API_KEY or GOOGLE_API_KEY environment variable."
        )

    async def _stream(http: httpx.AsyncClient) -> int:
        written = 0
        async with http.stream("GET", uri, params={"key": api_key}, follow_redirects=True) as resp:
            if resp.is_error:
                raise DownloadFailed(f"Failed to download video: {resp.status_code} {resp.reason_phrase}")
            with dest.open("wb") as f:
                async for chunk in resp.aiter_bytes():
                    written += len(chunk)
                    f.write(chunk)
        return written

    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        if client is not None:
            written = await _stream(client)
        else:
            async with httpx.AsyncClient(timeout=timeout) as http:
                written = await _stream(http)
    except httpx.HTTPError as exc:
        dest.unlink(missing_ok=True)
        raise DownloadFailed(f"Failed to download video: {exc}") from exc
    except DownloadFailed:
        dest.unlink(missing_ok=True)
        raise

    if written == 0:
        dest.unlink(missing_ok=True)
        raise DownloadFailed("Failed to download video: response had no body")
    logger.info("Downloaded video to %s (%d bytes)", dest, written)
    return dest
