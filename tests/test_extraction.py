"""Tests for the artifact extraction chain."""

from __future__ import annotations

import os

from genmedia_mcp.extraction import (
    EXTRACTION_FAILED,
    ExtractionChain,
    RecentFile,
    call_output,
    default_chain,
    find_path,
)
from tests.conftest import record


def _touch(path, mtime: float):
    path.write_bytes(b"audio")
    os.utime(path, (mtime, mtime))
    return path


class TestFindPath:
    def test_labelled_path_preferred(self):
        text = "Converted /tmp/other.mp3 earlier. File saved to: /out/speech_1.mp3"
        assert find_path(text, ("mp3",)) == "/out/speech_1.mp3"

    def test_bare_absolute_path(self):
        assert find_path("Audio is at /home/u/out/a.wav now", ("mp3", "wav")) == "/home/u/out/a.wav"

    def test_extension_must_match(self):
        assert find_path("File saved to: /out/a.mp4", ("mp3",)) is None


class TestDefaultChain:
    def test_call_output_wins_over_newer_file(self, tmp_path):
        _touch(tmp_path / "unrelated.mp3", mtime=4_000_000_000)
        rec = record("", "Success. File saved as: /voices/tts_1700000000.mp3. Voice used: Rachel")

        artifact = default_chain(tmp_path).extract(rec, "audio")

        assert artifact.path == "/voices/tts_1700000000.mp3"
        assert artifact.strategy == "call_output"

    def test_structured_output_is_searched(self, tmp_path):
        rec = record("", {"status": "ok", "file": "/voices/a.mp3"})
        assert default_chain(tmp_path).extract(rec, "audio").path == "/voices/a.mp3"

    def test_recent_file_when_no_calls(self, tmp_path):
        _touch(tmp_path / "old.mp3", mtime=1_000_000_000)
        newest = _touch(tmp_path / "new.mp3", mtime=2_000_000_000)
        _touch(tmp_path / "newer_video.mp4", mtime=3_000_000_000)

        artifact = default_chain(tmp_path).extract(record("I generated the audio."), "audio")

        assert artifact.path == str(newest)
        assert artifact.strategy == "recent_file"

    def test_response_text_needs_existing_file(self, tmp_path):
        real = _touch(tmp_path / "speech.mp3", mtime=1_000_000_000)
        _touch(tmp_path / "later.mp3", mtime=2_000_000_000)

        artifact = default_chain(tmp_path).extract(record(f"Saved to: {real}"), "audio")

        assert artifact.path == str(real)
        assert artifact.strategy == "response_text"

    def test_response_text_ignores_missing_file(self, tmp_path):
        artifact = default_chain(tmp_path / "empty").extract(record("Saved to: /nowhere/x.mp3"), "audio")
        assert artifact.found is False

    def test_recent_file_not_used_when_calls_exist(self, tmp_path):
        _touch(tmp_path / "stale.mp3", mtime=1_000_000_000)
        artifact = default_chain(tmp_path).extract(record("", "Error: quota exceeded"), "audio")

        assert artifact.found is False
        assert artifact.reason == EXTRACTION_FAILED
        assert artifact.raw_text == "Error: quota exceeded"


class TestChainComposition:
    def test_preempt_puts_strategy_first(self, tmp_path):
        def structured(rec, extensions):
            return "/contract/result.mp3"

        chain = default_chain(tmp_path).preempt(structured)
        artifact = chain.extract(record("", "saved to: /voices/a.mp3"), "audio")

        assert artifact.path == "/contract/result.mp3"
        assert artifact.strategy == "structured"
        assert len(chain.strategies) == 4

    def test_preempt_leaves_original_untouched(self, tmp_path):
        base = default_chain(tmp_path)
        base.preempt(call_output)
        assert len(base.strategies) == 3

    def test_empty_chain_fails(self):
        artifact = ExtractionChain([]).extract(record("nothing here"), "audio")
        assert artifact.path is None
        assert artifact.raw_text == "nothing here"

    def test_recent_file_missing_directory(self, tmp_path):
        assert RecentFile(tmp_path / "absent")(record(), ("mp3",)) is None
