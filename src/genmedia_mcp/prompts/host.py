"""Instruction templates for the tool-invocation host.

Parameters are embedded as JSON so quotes and newlines in user text cannot
break the instruction.
"""

from __future__ import annotations

import json

TEXT_TO_SPEECH = """\
Call the ElevenLabs text_to_speech tool with these exact parameters:
{params}
Call the tool now with these exact parameters. Do not modify or validate them."""

POST = """\
Use the Twitter tool to post a tweet with this text: {text}"""

POST_WITH_MEDIA = """\
Use the Twitter tool to post a tweet with this text: {text} and attach the {media_kind} file at path: {path}"""

VOICEOVER_POST_TEXT = "Check out this AI-generated video! 🎬✨ Image: {summary}..."


def speech_instruction(text: str, voice_id: str, model_id: str) -> str:
    params = json.dumps({"text": text, "voice_id": voice_id, "model_id": model_id}, indent=2, ensure_ascii=False)
    return TEXT_TO_SPEECH.format(params=params)


def post_instruction(text: str, media_path: str | None = None) -> str:
    quoted = json.dumps(text, ensure_ascii=False)
    if not media_path:
        return POST.format(text=quoted)
    media_kind = "video" if media_path.lower().endswith((".mp4", ".mov")) else "image"
    return POST_WITH_MEDIA.format(text=quoted, media_kind=media_kind, path=media_path)
