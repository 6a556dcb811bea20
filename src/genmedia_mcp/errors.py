"""Structured error handling — failure taxonomy, classification, and tool error model."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel

if TYPE_CHECKING:
    from .models.generation import GenerationResult


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    INPUT_NOT_FOUND = "INPUT_NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    REMOTE_JOB_FAILED = "REMOTE_JOB_FAILED"
    JOB_TIMED_OUT = "JOB_TIMED_OUT"
    JOB_CANCELLED = "JOB_CANCELLED"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    TOOL_CALL_FAILED = "TOOL_CALL_FAILED"
    MUXING_FAILED = "MUXING_FAILED"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class GenerationError(Exception):
    """Base class for every failure the orchestration core reports."""

    category = ErrorCategory.UNKNOWN


class MissingCredential(GenerationError):
    """A required API key or tool server is not configured."""

    category = ErrorCategory.MISSING_CREDENTIAL


class InputNotFound(GenerationError, FileNotFoundError):
    """A local input file does not exist."""

    category = ErrorCategory.INPUT_NOT_FOUND


class RemoteJobFailed(GenerationError):
    """The remote generation service reported the job as failed."""

    category = ErrorCategory.REMOTE_JOB_FAILED


class JobTimedOut(GenerationError):
    """The job did not reach a terminal status within the poll budget."""

    category = ErrorCategory.JOB_TIMED_OUT


class JobCancelled(GenerationError):
    """Polling was abandoned through the cancellation channel.

    Only the local wait stops; the remote job keeps running.
    """

    category = ErrorCategory.JOB_CANCELLED


class ArtifactNotFound(GenerationError):
    """The job succeeded but its output holds no media item."""

    category = ErrorCategory.ARTIFACT_NOT_FOUND


class DownloadFailed(GenerationError):
    """An artifact locator could not be fetched or decoded."""

    category = ErrorCategory.DOWNLOAD_FAILED


class ExtractionFailed(GenerationError):
    """No extraction strategy recovered an artifact from a tool response."""

    category = ErrorCategory.EXTRACTION_FAILED

    def __init__(self, message: str, raw_text: str = "") -> None:
        self.raw_text = raw_text
        super().__init__(message)


class ToolCallFailed(GenerationError):
    """Every call the tool host made was reported as an error by its server."""

    category = ErrorCategory.TOOL_CALL_FAILED


class MuxingFailed(GenerationError):
    """The muxing tool exited unsuccessfully; the message is its stderr."""

    category = ErrorCategory.MUXING_FAILED


class UnknownTool(GenerationError):
    """A tool name outside the exposed surface was requested."""

    category = ErrorCategory.UNKNOWN_TOOL


_HINTS: dict[ErrorCategory, str] = {
    ErrorCategory.MISSING_CREDENTIAL: "Set GEMINI_API_KEY (or ELEVENLABS_/TWITTER_ variables) in ~/.config/genmedia-mcp/.env",
    ErrorCategory.INPUT_NOT_FOUND: "File not found — check the path",
    ErrorCategory.INVALID_ARGUMENT: "Bad request — check input format",
    ErrorCategory.REMOTE_JOB_FAILED: "The generation service rejected the job — adjust the prompt or options and resubmit",
    ErrorCategory.JOB_TIMED_OUT: "Job still running remotely — raise GENMEDIA_MAX_JOB_WAIT or resubmit later",
    ErrorCategory.JOB_CANCELLED: "Polling was cancelled locally; the remote job was not cancelled",
    ErrorCategory.ARTIFACT_NOT_FOUND: "Job finished without media — often a safety filter; rephrase the prompt",
    ErrorCategory.DOWNLOAD_FAILED: "Artifact download failed — the locator may have expired",
    ErrorCategory.EXTRACTION_FAILED: "The tool host response held no usable file path — inspect the raw text",
    ErrorCategory.TOOL_CALL_FAILED: "The tool server rejected the call — check its credentials and the request text",
    ErrorCategory.MUXING_FAILED: "ffmpeg failed — check GENMEDIA_FFMPEG_PATH and the input media",
    ErrorCategory.UNKNOWN_TOOL: "Unknown tool — list available tools",
    ErrorCategory.API_QUOTA_EXCEEDED: "Rate limit hit — wait and resubmit",
    ErrorCategory.API_PERMISSION_DENIED: "API key lacks access to this model",
    ErrorCategory.NETWORK_ERROR: "Request timed out or connection failed — try again or check connectivity",
}

_RETRYABLE = {
    ErrorCategory.API_QUOTA_EXCEEDED,
    ErrorCategory.NETWORK_ERROR,
    ErrorCategory.JOB_TIMED_OUT,
}


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    success: bool = False
    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: BaseException) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, GenerationError):
        return error.category, _HINTS.get(error.category, str(error))
    if isinstance(error, FileNotFoundError):
        return ErrorCategory.INPUT_NOT_FOUND, _HINTS[ErrorCategory.INPUT_NOT_FOUND]
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, asyncio.TimeoutError)):
        return ErrorCategory.NETWORK_ERROR, _HINTS[ErrorCategory.NETWORK_ERROR]

    s = str(error).lower()
    if "429" in s or "quota" in s or "resource_exhausted" in s:
        return ErrorCategory.API_QUOTA_EXCEEDED, _HINTS[ErrorCategory.API_QUOTA_EXCEEDED]
    if "403" in s or "permission" in s:
        return ErrorCategory.API_PERMISSION_DENIED, _HINTS[ErrorCategory.API_PERMISSION_DENIED]
    if "400" in s or isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.INVALID_ARGUMENT, _HINTS[ErrorCategory.INVALID_ARGUMENT]
    if "timeout" in s or "timed out" in s:
        return ErrorCategory.NETWORK_ERROR, _HINTS[ErrorCategory.NETWORK_ERROR]
    return ErrorCategory.UNKNOWN, str(error)


def _tool_error(message: str, category: ErrorCategory, hint: str) -> dict:
    return ToolError(
        error=message,
        category=category.value,
        hint=hint,
        retryable=category in _RETRYABLE,
    ).model_dump(mode="json")


def make_tool_error(error: BaseException) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    return _tool_error(str(error) or type(error).__name__, cat, hint)


def tool_failure(result: GenerationResult) -> dict:
    """Create a ToolError dict from a failed GenerationResult."""
    cat = ErrorCategory(result.category or ErrorCategory.UNKNOWN.value)
    return _tool_error(result.error or "Unknown error", cat, _HINTS.get(cat, result.error or ""))
