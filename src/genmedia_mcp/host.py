"""Tool-invocation host: natural-language instructions executed against MCP tool servers.

Speech synthesis and social posting are only reachable through third-party
MCP servers (ElevenLabs, X/Twitter). The host connects to them with a
``fastmcp.Client``, offers their tools to Gemini as function declarations,
executes whatever calls the model makes, and returns the model's final text
together with a record of every call and its output.

The host is an explicit object with an open/close lifecycle; the
:class:`~genmedia_mcp.studio.Studio` owns the single instance.
"""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any

from fastmcp import Client
from google import genai
from google.genai import types

from .config import ServerConfig
from .errors import MissingCredential, ToolCallFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    """One tool the host actually invoked, with its raw output."""

    name: str
    output: Any
    is_error: bool = False


@dataclass(frozen=True)
class ToolInvocationRecord:
    """Final response text plus the calls made while producing it."""

    text: str
    calls: tuple[ToolCall, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> bool:
        """True when tools were called and every one of them reported an error."""
        return bool(self.calls) and all(call.is_error for call in self.calls)

    def raise_for_errors(self) -> None:
        """Raise :class:`ToolCallFailed` when every recorded call failed."""
        if self.failed:
            last = self.calls[-1]
            raise ToolCallFailed(f"Tool {last.name} failed: {last.output}")


def mcp_servers_from_config(cfg: ServerConfig) -> dict[str, dict]:
    """Build the ``mcpServers`` map for every tool server with credentials configured."""
    servers: dict[str, dict] = {}
    if cfg.elevenlabs_api_key:
        servers["elevenlabs"] = {
            "command": "uvx",
            "args": ["elevenlabs-mcp"],
            "env": {
                "ELEVENLABS_API_KEY": cfg.elevenlabs_api_key,
                "ELEVENLABS_MCP_OUTPUT_MODE": cfg.elevenlabs_output_mode,
                "ELEVENLABS_MCP_BASE_PATH": str(cfg.resolved_speech_dir),
            },
        }
    if cfg.twitter_mcp_path:
        servers["twitter"] = {
            "command": "node",
            "args": [cfg.twitter_mcp_path],
            "env": {
                "TWITTER_API_KEY": cfg.twitter_api_key,
                "TWITTER_API_SECRET": cfg.twitter_api_secret,
                "TWITTER_ACCESS_TOKEN": cfg.twitter_access_token,
                "TWITTER_ACCESS_SECRET": cfg.twitter_access_secret,
            },
        }
    return servers


def _call_output(result: Any) -> Any:
    """Reduce an MCP CallToolResult to structured content or joined text."""
    structured = getattr(result, "structured_content", None)
    if structured:
        return structured
    texts = [block.text for block in getattr(result, "content", None) or [] if getattr(block, "text", None)]
    return "\n".join(texts)


class ToolHost:
    """Gemini function-calling loop over the tools of connected MCP servers.

    Args:
        servers: ``mcpServers`` map (see :func:`mcp_servers_from_config`).
        genai_client: Client used for the instruction-following model.
        model: Gemini model that decides which tools to call.
        max_turns: Upper bound on model round-trips per instruction.
    """

    def __init__(
        self,
        servers: dict[str, dict],
        *,
        genai_client: genai.Client | None,
        model: str,
        max_turns: int = 4,
    ) -> None:
        self._servers = servers
        self._genai = genai_client
        self.model = model
        self.max_turns = max_turns
        self._client: Client | None = None
        self._stack: AsyncExitStack | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        """Connect to the configured tool servers (no-op when none are configured)."""
        if self._client is not None or not self._servers:
            return
        stack = AsyncExitStack()
        self._client = await stack.enter_async_context(Client({"mcpServers": self._servers}))
        self._stack = stack
        logger.info("Tool host connected: %s", ", ".join(self._servers))

    async def close(self) -> None:
        if self._stack is None:
            return
        stack, self._stack, self._client = self._stack, None, None
        await stack.aclose()
        logger.info("Tool host closed")

    async def __aenter__(self) -> ToolHost:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _declarations(self) -> list[types.FunctionDeclaration]:
        tools = await self._client.list_tools()
        return [
            types.FunctionDeclaration(
                name=tool.name,
                description=tool.description or "",
                parameters_json_schema=tool.inputSchema,
            )
            for tool in tools
        ]

    async def _invoke_tool(self, name: str, arguments: dict) -> ToolCall:
        result = await self._client.call_tool(name, arguments, raise_on_error=False)
        call = ToolCall(name=name, output=_call_output(result), is_error=bool(getattr(result, "is_error", False)))
        if call.is_error:
            logger.warning("Tool %s reported an error: %s", name, call.output)
        return call

    async def invoke(self, instruction: str) -> ToolInvocationRecord:
        """Run *instruction* with the connected tools available to the model.

        Raises:
            MissingCredential: No Gemini key or no tool servers configured.
        """
        if self._genai is None:
            raise MissingCredential("No Gemini API key — set GEMINI_API_KEY or GOOGLE_API_KEY")
        if not self._servers:
            raise MissingCredential("No tool servers configured — set ELEVENLABS_API_KEY or TWITTER_MCP_PATH")
        await self.open()

        config = types.GenerateContentConfig(
            tools=[types.Tool(function_declarations=await self._declarations())],
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        contents: list[types.Content] = [
            types.Content(role="user", parts=[types.Part.from_text(text=instruction)]),
        ]
        calls: list[ToolCall] = []
        text = ""

        for _ in range(self.max_turns):
            response = await self._genai.aio.models.generate_content(
                model=self.model, contents=contents, config=config,
            )
            function_calls = response.function_calls or []
            parts = response.candidates[0].content.parts if response.candidates else []
            text = "\n".join(p.text for p in parts or [] if p.text and not getattr(p, "thought", False))
            if not function_calls:
                break

            contents.append(response.candidates[0].content)
            replies: list[types.Part] = []
            for fc in function_calls:
                call = await self._invoke_tool(fc.name, dict(fc.args or {}))
                calls.append(call)
                if call.is_error:
                    payload = {"error": call.output}
                elif isinstance(call.output, dict):
                    payload = call.output
                else:
                    payload = {"result": call.output}
                replies.append(types.Part.from_function_response(name=fc.name, response=payload))
            contents.append(types.Content(role="user", parts=replies))
        else:
            logger.warning("Tool host stopped after %d turns with calls still pending", self.max_turns)

        logger.debug("Tool host response: %s | calls: %s", text, json.dumps([c.name for c in calls]))
        return ToolInvocationRecord(text=text, calls=tuple(calls))
