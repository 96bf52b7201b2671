"""Discussion events and their ordered fan-out to real-time subscribers.

The sequencer only needs ``publish(discussion_id, event)`` and the guarantee
that events for one discussion reach each subscriber in publish order. The
transport (SSE, websockets, a hosted channel service) sits behind
``RealtimeBroadcaster``; ``InMemoryBroadcaster`` fans out to asyncio queues.
"""

import asyncio
import logging
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol

from boardroom.models import DiscussionError, Role, Turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnStarted:
    kind: ClassVar[str] = "turn_started"
    role: Role
    sequence_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "role": self.role.value, "sequence_index": self.sequence_index}


@dataclass(frozen=True)
class TurnCompleted:
    kind: ClassVar[str] = "turn_completed"
    turn: Turn

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "turn": self.turn.to_dict()}


@dataclass(frozen=True)
class DiscussionCompleted:
    kind: ClassVar[str] = "discussion_completed"
    turn_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "turn_count": self.turn_count}


@dataclass(frozen=True)
class DiscussionFailed:
    kind: ClassVar[str] = "discussion_failed"
    role: Role | None
    error: DiscussionError

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "role": self.role.value if self.role else None,
            "error": self.error.to_dict(),
        }


DiscussionEvent = TurnStarted | TurnCompleted | DiscussionCompleted | DiscussionFailed

TERMINAL_EVENTS = (DiscussionCompleted, DiscussionFailed)


class RealtimeBroadcaster(Protocol):
    async def publish(self, discussion_id: str, event: DiscussionEvent) -> None:
        ...


class NullBroadcaster:
    """Drops every event."""

    async def publish(self, discussion_id: str, event: DiscussionEvent) -> None:
        return None


class CallbackBroadcaster:
    """Forward events to a plain callable, e.g. a console printer."""

    def __init__(self, callback: Callable[[str, DiscussionEvent], None]) -> None:
        self._callback = callback

    async def publish(self, discussion_id: str, event: DiscussionEvent) -> None:
        self._callback(discussion_id, event)


class InMemoryBroadcaster:
    """Per-discussion fan-out to asyncio queues.

    Every subscriber gets its own queue; ``publish`` puts the event on each one
    synchronously, so per-subscriber order equals publish order. A subscriber
    whose queue is full misses the event (logged) without affecting the others.

    History is kept per discussion so late readers can catch up. Once a
    discussion publishes its terminal event its history is retained only for
    the ``retain_finished`` most recently finished discussions; ``close``
    drops a discussion immediately.
    """

    def __init__(self, max_queue_size: int = 0, keep_history: bool = True, retain_finished: int = 100) -> None:
        self._max_queue_size = max_queue_size
        self._keep_history = keep_history
        self._retain_finished = retain_finished
        self._subscribers: dict[str, list[asyncio.Queue]] = defaultdict(list)
        self._history: dict[str, list[DiscussionEvent]] = defaultdict(list)
        self._finished: deque[str] = deque()

    def subscribe(self, discussion_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers[discussion_id].append(queue)
        return queue

    def unsubscribe(self, discussion_id: str, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(discussion_id, [])
        if queue in queues:
            queues.remove(queue)
        if not queues:
            self._subscribers.pop(discussion_id, None)

    def subscriber_count(self, discussion_id: str) -> int:
        return len(self._subscribers.get(discussion_id, []))

    def history(self, discussion_id: str) -> list[DiscussionEvent]:
        return list(self._history.get(discussion_id, []))

    def tracked_discussions(self) -> list[str]:
        return list(self._history)

    def close(self, discussion_id: str) -> None:
        """Forget a discussion's history. Live subscribers keep their queues."""
        self._history.pop(discussion_id, None)
        if discussion_id in self._finished:
            self._finished.remove(discussion_id)

    def _mark_finished(self, discussion_id: str) -> None:
        if discussion_id in self._finished:
            self._finished.remove(discussion_id)
        self._finished.append(discussion_id)
        while len(self._finished) > self._retain_finished:
            expired = self._finished.popleft()
            self._history.pop(expired, None)
            logger.debug("Dropped history of finished discussion %s", expired)

    async def publish(self, discussion_id: str, event: DiscussionEvent) -> None:
        if self._keep_history:
            self._history[discussion_id].append(event)
            if isinstance(event, TERMINAL_EVENTS):
                self._mark_finished(discussion_id)
        for queue in list(self._subscribers.get(discussion_id, [])):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Subscriber queue full for discussion %s, dropping %s", discussion_id, event.kind)

    async def stream(self, discussion_id: str):
        """Yield a discussion's events, history first, until a terminal event arrives."""
        # Subscribing and snapshotting happen with no await in between, so no
        # event is both replayed and queued.
        queue = self.subscribe(discussion_id)
        backlog = self.history(discussion_id)
        try:
            for event in backlog:
                yield event
                if isinstance(event, TERMINAL_EVENTS):
                    return
            while True:
                event = await queue.get()
                yield event
                if isinstance(event, TERMINAL_EVENTS):
                    return
        finally:
            self.unsubscribe(discussion_id, queue)
