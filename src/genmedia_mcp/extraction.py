"""Recover artifact file paths from tool-invocation responses.

The tool host's response shape is not contractually guaranteed, so the path
of a generated file (e.g. the ElevenLabs mp3) is recovered by an ordered
chain of strategies; the first one that yields a path wins. Strategies tied
to the specific invocation come first. The directory-recency fallback only
applies when the host recorded no tool call at all and is unsafe when
several runs share one output directory.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .host import ToolInvocationRecord
from .types import ArtifactKind

logger = logging.getLogger(__name__)

EXTENSIONS: dict[str, tuple[str, ...]] = {
    "audio": ("mp3", "wav"),
    "video": ("mp4", "mov"),
    "image": ("jpg", "jpeg", "png", "webp"),
}

EXTRACTION_FAILED = "could not extract artifact from tool output"

Strategy = Callable[[ToolInvocationRecord, tuple[str, ...]], "str | None"]


@dataclass(frozen=True)
class ExtractedArtifact:
    """Outcome of :meth:`ExtractionChain.extract`.

    ``strategy`` names the strategy that produced ``path``; when nothing
    matched, ``path`` is None and ``reason``/``raw_text`` explain why.
    """

    path: str | None
    strategy: str | None = None
    reason: str = ""
    raw_text: str = ""

    @property
    def found(self) -> bool:
        return self.path is not None


def output_text(output: Any) -> str:
    """Tool output as text; structured outputs are JSON-encoded."""
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str)


def find_path(text: str, extensions: Iterable[str]) -> str | None:
    """First path in *text* ending in one of *extensions*.

    A labelled path (``saved to: …``, ``path: …``, ``file: …``) is preferred
    over any bare absolute path.
    """
    ext = "|".join(re.escape(e) for e in extensions)
    labelled = re.search(rf"(?:saved to|path|file):\s*([^\s\"']+\.(?:{ext}))\b", text, re.IGNORECASE)
    if labelled:
        return labelled.group(1)
    bare = re.search(rf"/[^\s\"']+\.(?:{ext})\b", text, re.IGNORECASE)
    return bare.group(0) if bare else None


def call_output(record: ToolInvocationRecord, extensions: tuple[str, ...]) -> str | None:
    """Path named in the first recorded tool call's output."""
    if not record.calls:
        return None
    return find_path(output_text(record.calls[0].output), extensions)


def response_text(record: ToolInvocationRecord, extensions: tuple[str, ...]) -> str | None:
    """Existing file named in the host's reply text (only when no call was recorded)."""
    if record.calls:
        return None
    path = find_path(record.text, extensions)
    return path if path and Path(path).is_file() else None


class RecentFile:
    """Newest matching file in *directory* (only when no call was recorded)."""

    name = "recent_file"

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def __call__(self, record: ToolInvocationRecord, extensions: tuple[str, ...]) -> str | None:
        if record.calls or not self.directory.is_dir():
            return None
        suffixes = {f".{e.lower()}" for e in extensions}
        candidates = [p for p in self.directory.iterdir() if p.is_file() and p.suffix.lower() in suffixes]
        if not candidates:
            return None
        newest = max(candidates, key=lambda p: p.stat().st_mtime)
        logger.warning("Falling back to newest file in %s: %s", self.directory, newest.name)
        return str(newest)


class ExtractionChain:
    """Ordered strategies; :meth:`extract` returns the first path found."""

    def __init__(self, strategies: Iterable[Strategy]) -> None:
        self.strategies: tuple[Strategy, ...] = tuple(strategies)

    def preempt(self, strategy: Strategy) -> ExtractionChain:
        """New chain trying *strategy* before all existing ones."""
        return ExtractionChain((strategy, *self.strategies))

    def extract(self, record: ToolInvocationRecord, expected_kind: ArtifactKind) -> ExtractedArtifact:
        extensions = EXTENSIONS[expected_kind]
        for strategy in self.strategies:
            path = strategy(record, extensions)
            if path:
                name = getattr(strategy, "name", None) or getattr(strategy, "__name__", type(strategy).__name__)
                logger.info("Extracted %s artifact via %s: %s", expected_kind, name, path)
                return ExtractedArtifact(path=path, strategy=name)

        raw = output_text(record.calls[0].output) if record.calls else record.text
        return ExtractedArtifact(path=None, reason=EXTRACTION_FAILED, raw_text=raw)


def default_chain(fallback_dir: Path) -> ExtractionChain:
    """call output → response text → newest file in *fallback_dir*."""
    return ExtractionChain([call_output, response_text, RecentFile(fallback_dir)])
