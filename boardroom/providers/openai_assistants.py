"""OpenAI Assistants thread backend: one assistant per executive role."""

import asyncio
import logging
import os
from collections.abc import Awaitable
from typing import TypeVar

from openai import APIStatusError, AsyncOpenAI

from config.config_loader import AssistantsConfig
from boardroom.providers.base import ProviderError, ProviderTimeoutError, ThreadBackend

logger = logging.getLogger(__name__)

_NAME = "openai-assistants"

T = TypeVar("T")


class OpenAIAssistantsBackend(ThreadBackend):
    """Runs each role's assistant on a shared thread via the beta threads API.

    Every API call is bounded by ``config.timeout_sec`` and raises
    ``ProviderTimeoutError`` past it, so a hung poll counts against the run.
    """

    def __init__(self, config: AssistantsConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(_NAME, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return _NAME

    async def _call(self, request: Awaitable[T], action: str) -> T:
        try:
            return await asyncio.wait_for(request, timeout=self._config.timeout_sec)
        except TimeoutError as exc:
            raise ProviderTimeoutError(_NAME, f"{action} timed out after {self._config.timeout_sec}s") from exc
        except APIStatusError as exc:
            raise ProviderError(
                _NAME, f"{action} failed, API returned {exc.status_code}: {exc.message}", exc.status_code,
            ) from exc
        except Exception as exc:
            raise ProviderError(_NAME, f"{action} failed: {exc}") from exc

    async def create_thread(self) -> str:
        thread = await self._call(self._client.beta.threads.create(), "Creating thread")
        logger.debug("Created thread %s", thread.id)
        return thread.id

    async def add_message(self, thread_id: str, text: str) -> None:
        await self._call(
            self._client.beta.threads.messages.create(thread_id, role="user", content=text),
            f"Adding message to thread {thread_id}",
        )

    async def submit_run(self, thread_id: str, role: str, instructions: str) -> str:
        assistant_id = self._config.ids.get(role)
        if not assistant_id:
            raise ProviderError(_NAME, f"No assistant configured for role {role}")
        run = await self._call(
            self._client.beta.threads.runs.create(
                thread_id=thread_id,
                assistant_id=assistant_id,
                instructions=instructions,
            ),
            f"Starting {role} run",
        )
        return run.id

    async def poll_run(self, thread_id: str, run_id: str) -> str:
        run = await self._call(
            self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id),
            f"Checking run {run_id}",
        )
        return run.status

    async def fetch_latest_message(self, thread_id: str) -> str | None:
        messages = await self._call(
            self._client.beta.threads.messages.list(thread_id=thread_id, order="desc", limit=1),
            f"Reading thread {thread_id}",
        )
        latest = messages.data[0] if messages.data else None
        if latest is None or latest.role != "assistant" or not latest.content:
            return None
        block = latest.content[0]
        if block.type != "text":
            return None
        return block.text.value
