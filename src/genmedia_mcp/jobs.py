"""Long-running generation job tracking and the wait-until-done poll loop."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import JobCancelled, JobTimedOut, RemoteJobFailed

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Remote job lifecycle states."""

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


def _error_message(error: Any) -> str:
    """Flatten a remote operation error (dict or object) into text."""
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or error)
    return str(getattr(error, "message", None) or error)


@dataclass(frozen=True)
class GenerationJob:
    """Snapshot of a remote long-running operation.

    ``handle`` is the raw operation object returned by the service; it is
    passed back verbatim when refreshing status.
    """

    name: str
    status: JobStatus
    handle: Any = None
    error: str = ""

    @property
    def terminal(self) -> bool:
        return self.status is not JobStatus.PENDING

    @classmethod
    def from_operation(cls, operation: Any) -> GenerationJob:
        """Derive status from a google-genai style operation (``done``/``error``)."""
        name = getattr(operation, "name", None) or ""
        if not getattr(operation, "done", False):
            return cls(name=name, status=JobStatus.PENDING, handle=operation)
        error = getattr(operation, "error", None)
        if error:
            return cls(name=name, status=JobStatus.FAILED, handle=operation, error=_error_message(error))
        return cls(name=name, status=JobStatus.DONE, handle=operation)


class JobPoller:
    """Wait for a GenerationJob to reach ``done`` or ``failed``.

    Each iteration suspends for ``interval`` seconds, then re-queries the
    remote status through ``refresh``. The wait is bounded by ``max_wait``
    (None = unbounded), with the last pause shortened to end at that bound,
    and abandoned when ``cancel`` is set. Neither bound cancels the remote
    job itself.

    Args:
        refresh: Coroutine taking the current operation handle and returning
            the refreshed operation.
        interval: Seconds between status queries.
        max_wait: Overall poll budget in seconds.
        cancel: Event that aborts the wait when set.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        refresh: Callable[[Any], Awaitable[Any]],
        *,
        interval: float,
        max_wait: float | None = None,
        cancel: asyncio.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh = refresh
        self._clock = clock
        self.interval = interval
        self.max_wait = max_wait
        self._cancel = cancel

    async def _pause(self, seconds: float) -> None:
        if self._cancel is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _check_cancelled(self, job: GenerationJob) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise JobCancelled(f"Stopped waiting for job {job.name}; it may still complete remotely")

    async def wait(self, job: GenerationJob) -> GenerationJob:
        """Poll until *job* is terminal.

        Returns:
            The job in ``done`` status.

        Raises:
            RemoteJobFailed: The service reported the job as failed.
            JobTimedOut: ``max_wait`` elapsed first.
            JobCancelled: The cancellation event was set.
        """
        start = self._clock()
        polls = 0
        while not job.terminal:
            self._check_cancelled(job)
            elapsed = self._clock() - start
            if self.max_wait is not None and elapsed >= self.max_wait:
                raise JobTimedOut(f"Job {job.name} not finished after {self.max_wait:.0f}s")
            pause = self.interval if self.max_wait is None else min(self.interval, self.max_wait - elapsed)
            await self._pause(pause)
            self._check_cancelled(job)
            job = GenerationJob.from_operation(await self._refresh(job.handle))
            polls += 1
            logger.info(
                "Job %s status: %s (poll %d, %.1fs elapsed)",
                job.name, job.status.value, polls, self._clock() - start,
            )

        if job.status is JobStatus.FAILED:
            raise RemoteJobFailed(f"Generation job {job.name} failed: {job.error}")
        return job
