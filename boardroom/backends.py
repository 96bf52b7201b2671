"""Turn backends: how one role's prompt becomes that role's turn text.

Two provider families are supported and never mixed within a discussion:

- ``CompletionTurnBackend``: a synchronous completion call run through the
  ``ModelFallbackClient`` chain, output parsed as a JSON turn.
- ``AssistantTurnBackend``: per-role assistants on a shared thread, driven by
  the ``RunPoller`` submit/poll protocol.

A backend is shared configuration; ``open(topic)`` returns the per-discussion
session that carries any discussion-scoped state (e.g. the thread id).
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from boardroom.errors import MalformedOutputError
from boardroom.extraction import parse_turn
from boardroom.fallback import ModelFallbackClient
from boardroom.models import Role, Turn
from boardroom.poller import RunPoller
from boardroom.providers.base import AIProvider

logger = logging.getLogger(__name__)

DEFAULT_OPENING = (
    'We\'re having a boardroom discussion about: "{topic}".\n'
    "Each executive will provide their perspective in turn."
)


@dataclass
class TurnOutput:
    text: str
    backend: str


class TurnSession(ABC):
    @abstractmethod
    async def generate_turn(self, role: Role, prompt: str) -> TurnOutput:
        ...

    async def record_turn(self, turn: Turn) -> None:
        """Make an appended turn visible to the backend's own context, if it keeps one."""
        return None


class TurnBackend(ABC):
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def open(self, topic: str) -> TurnSession:
        ...


class _CompletionSession(TurnSession):
    def __init__(self, client: ModelFallbackClient, candidates: Sequence[AIProvider]) -> None:
        self._client = client
        self._candidates = candidates

    async def generate_turn(self, role: Role, prompt: str) -> TurnOutput:
        result = await self._client.generate(prompt, self._candidates, parse=parse_turn)
        return TurnOutput(text=result.value, backend=result.candidate)


class CompletionTurnBackend(TurnBackend):
    """Fallback chain over completion candidates; the prompt carries all context."""

    def __init__(self, client: ModelFallbackClient, candidates: Sequence[AIProvider]) -> None:
        self._client = client
        self._candidates = tuple(candidates)

    @property
    def candidates(self) -> tuple[AIProvider, ...]:
        return self._candidates

    def name(self) -> str:
        return "chain"

    async def open(self, topic: str) -> TurnSession:
        return _CompletionSession(self._client, self._candidates)


def _assistant_text(raw: str) -> str:
    """Assistants may answer in the requested JSON or in plain prose; accept both."""
    try:
        return parse_turn(raw)
    except MalformedOutputError:
        return raw.strip()


class _AssistantSession(TurnSession):
    def __init__(self, poller: RunPoller, thread_id: str) -> None:
        self._poller = poller
        self._thread_id = thread_id

    @property
    def thread_id(self) -> str:
        return self._thread_id

    async def generate_turn(self, role: Role, prompt: str) -> TurnOutput:
        raw = await self._poller.run(self._thread_id, role.value, prompt)
        return TurnOutput(text=_assistant_text(raw), backend=self._poller.backend.name())

    async def record_turn(self, turn: Turn) -> None:
        await self._poller.backend.add_message(self._thread_id, f"The {turn.role.value} said: {turn.text}")


class AssistantTurnBackend(TurnBackend):
    """Per-role assistants on one thread per discussion."""

    def __init__(self, poller: RunPoller, opening_template: str = DEFAULT_OPENING) -> None:
        self._poller = poller
        self._opening_template = opening_template or DEFAULT_OPENING

    def name(self) -> str:
        return "assistants"

    async def open(self, topic: str) -> TurnSession:
        backend = self._poller.backend
        thread_id = await backend.create_thread()
        await backend.add_message(thread_id, self._opening_template.format(topic=topic).strip())
        logger.info("Opened assistant thread %s", thread_id)
        return _AssistantSession(self._poller, thread_id)
