"""Submit-then-poll protocol for assistant backends that run work asynchronously."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from boardroom.errors import EmptyResponseError, RunFailedError, RunTimeoutError
from boardroom.providers.base import ThreadBackend

logger = logging.getLogger(__name__)

COMPLETED = "completed"
# Statuses after which a run will never complete.
FAILED_STATUSES = frozenset({"failed", "cancelled", "expired", "incomplete"})

DEFAULT_INTERVAL_SEC = 1.0
DEFAULT_MAX_ATTEMPTS = 30


class RunPoller:
    """Drive one run from submission to a fetched result.

    Waits between polls go through ``sleep`` (``asyncio.sleep`` by default), so
    cancelling the surrounding task interrupts the wait immediately.
    """

    def __init__(
        self,
        backend: ThreadBackend,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._backend = backend
        self._interval_sec = interval_sec
        self._max_attempts = max_attempts
        self._sleep = sleep

    @property
    def backend(self) -> ThreadBackend:
        return self._backend

    async def submit(self, thread_id: str, role: str, instructions: str) -> str:
        run_id = await self._backend.submit_run(thread_id, role, instructions)
        logger.debug("Submitted run %s for %s on thread %s", run_id, role, thread_id)
        return run_id

    async def poll(self, thread_id: str, run_id: str) -> str:
        return await self._backend.poll_run(thread_id, run_id)

    async def fetch_result(self, thread_id: str) -> str:
        text = await self._backend.fetch_latest_message(thread_id)
        if text is None or not text.strip():
            raise EmptyResponseError(f"No assistant message on thread {thread_id}")
        return text

    async def wait(self, thread_id: str, run_id: str) -> str:
        """Poll until the run is terminal. Returns the final status ("completed").

        Raises:
            RunFailedError: run ended in a failed terminal status.
            RunTimeoutError: still running after ``max_attempts`` polls.
        """
        status = ""
        for attempt in range(1, self._max_attempts + 1):
            status = await self.poll(thread_id, run_id)
            if status == COMPLETED:
                logger.debug("Run %s completed after %d poll(s)", run_id, attempt)
                return status
            if status in FAILED_STATUSES:
                raise RunFailedError(run_id, status)
            if attempt < self._max_attempts:
                await self._sleep(self._interval_sec)
        raise RunTimeoutError(run_id, self._max_attempts, status)

    async def run(self, thread_id: str, role: str, instructions: str) -> str:
        """Submit a run, wait for it, and return the assistant's reply text."""
        run_id = await self.submit(thread_id, role, instructions)
        await self.wait(thread_id, run_id)
        return await self.fetch_result(thread_id)
