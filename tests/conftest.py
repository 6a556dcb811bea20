"""Shared test fixtures for genmedia-mcp."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from genmedia_mcp.host import ToolCall, ToolInvocationRecord


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped."""
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable.

    FastMCP 2.x wraps @server.tool in FunctionTool (not callable); 3.x
    preserves the function. Unwrapping at module level lets tests
    ``await tool_func(...)`` regardless of FastMCP version.
    """
    import importlib
    import pkgutil

    import genmedia_mcp.tools as tools_pkg

    modules = [
        importlib.import_module(info.name)
        for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + ".")
    ]
    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit the real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/genmedia-mcp/.env."""
    monkeypatch.setattr("genmedia_mcp.dotenv.DEFAULT_ENV_PATH", tmp_path / "nonexistent.env")


@pytest.fixture()
def clean_config():
    """Reset the config singleton between tests."""
    import genmedia_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def output_dir(tmp_path) -> Path:
    path = tmp_path / "output"
    path.mkdir()
    return path


def make_operation(name: str = "operations/op-1", *, done: bool = False, error: Any = None, videos: list | None = None):
    """Build a google-genai style long-running operation stand-in."""
    response = SimpleNamespace(generated_videos=videos) if videos is not None else None
    return SimpleNamespace(name=name, done=done, error=error, response=response, result=None)


def make_video(uri: str | None = None, data: bytes | None = None):
    return SimpleNamespace(video=SimpleNamespace(uri=uri, video_bytes=data))


@pytest.fixture()
def mock_genai():
    """MagicMock genai.Client with async model and operation endpoints."""
    client = MagicMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.models.generate_images = AsyncMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.operations.get = AsyncMock()
    return client


@pytest.fixture()
def mock_host():
    """Tool host whose ``invoke`` returns a configurable ToolInvocationRecord."""
    host = MagicMock()
    host.invoke = AsyncMock(return_value=ToolInvocationRecord(text="", calls=()))
    return host


def record(text: str = "", *outputs: Any, tool: str = "text_to_speech", is_error: bool = False) -> ToolInvocationRecord:
    calls = tuple(ToolCall(name=tool, output=o, is_error=is_error) for o in outputs)
    return ToolInvocationRecord(text=text, calls=calls)
