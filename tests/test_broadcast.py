"""Tests for boardroom/broadcast.py."""

import asyncio
import logging

from boardroom.broadcast import (
    CallbackBroadcaster,
    DiscussionCompleted,
    DiscussionFailed,
    InMemoryBroadcaster,
    TurnCompleted,
    TurnStarted,
)
from boardroom.models import DiscussionError, Role, Turn


def _turn(role: Role = Role.CEO, index: int = 0) -> Turn:
    return Turn(role=role, text="Hello board.", sequence_index=index)


async def test_each_subscriber_gets_events_in_publish_order():
    broadcaster = InMemoryBroadcaster()
    first = broadcaster.subscribe("d1")
    second = broadcaster.subscribe("d1")

    events = [TurnStarted(Role.CEO, 0), TurnCompleted(_turn()), DiscussionCompleted(1)]
    for event in events:
        await broadcaster.publish("d1", event)

    for queue in (first, second):
        assert [queue.get_nowait() for _ in range(queue.qsize())] == events


async def test_discussions_are_isolated():
    broadcaster = InMemoryBroadcaster()
    d1 = broadcaster.subscribe("d1")
    d2 = broadcaster.subscribe("d2")

    await broadcaster.publish("d1", TurnStarted(Role.CFO, 0))

    assert d1.qsize() == 1
    assert d2.qsize() == 0


async def test_full_subscriber_is_skipped(caplog):
    broadcaster = InMemoryBroadcaster(max_queue_size=1)
    slow = broadcaster.subscribe("d1")

    with caplog.at_level(logging.WARNING):
        await broadcaster.publish("d1", TurnStarted(Role.CEO, 0))
        await broadcaster.publish("d1", TurnCompleted(_turn()))

    assert slow.qsize() == 1
    assert any("queue full" in m for m in caplog.messages)
    assert len(broadcaster.history("d1")) == 2


async def test_stream_stops_after_terminal_event():
    broadcaster = InMemoryBroadcaster()
    received = []

    async def consume():
        async for event in broadcaster.stream("d1"):
            received.append(event)

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)
    error = DiscussionError(role=Role.CFO, reason="backend_failure", message="CFO failed")
    await broadcaster.publish("d1", TurnStarted(Role.CFO, 0))
    await broadcaster.publish("d1", DiscussionFailed(Role.CFO, error))
    await asyncio.wait_for(consumer, timeout=1)

    assert [e.kind for e in received] == ["turn_started", "discussion_failed"]
    assert broadcaster.subscriber_count("d1") == 0


async def test_callback_broadcaster_forwards():
    seen = []
    broadcaster = CallbackBroadcaster(lambda discussion_id, event: seen.append((discussion_id, event.kind)))

    await broadcaster.publish("d1", DiscussionCompleted(2))

    assert seen == [("d1", "discussion_completed")]


def test_event_to_dict():
    payload = TurnCompleted(_turn(Role.HR, 3)).to_dict()
    assert payload["kind"] == "turn_completed"
    assert payload["turn"]["role"] == "HR"
    assert payload["turn"]["sequence_index"] == 3


async def test_late_stream_replays_history():
    broadcaster = InMemoryBroadcaster()
    await broadcaster.publish("d1", TurnStarted(Role.CEO, 0))
    await broadcaster.publish("d1", TurnCompleted(_turn()))

    received = []

    async def consume():
        async for event in broadcaster.stream("d1"):
            received.append(event.kind)

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)
    await broadcaster.publish("d1", DiscussionCompleted(1))
    await asyncio.wait_for(consumer, timeout=1)

    assert received == ["turn_started", "turn_completed", "discussion_completed"]


async def test_stream_of_finished_discussion_returns_immediately():
    broadcaster = InMemoryBroadcaster()
    await broadcaster.publish("d1", TurnStarted(Role.CEO, 0))
    await broadcaster.publish("d1", DiscussionCompleted(0))

    received = [e.kind async for e in broadcaster.stream("d1")]

    assert received == ["turn_started", "discussion_completed"]
    assert broadcaster.subscriber_count("d1") == 0


async def test_finished_history_is_bounded():
    broadcaster = InMemoryBroadcaster(retain_finished=2)

    for i in range(5):
        await broadcaster.publish(f"d{i}", TurnStarted(Role.CEO, 0))
        await broadcaster.publish(f"d{i}", DiscussionCompleted(1))
    await broadcaster.publish("running", TurnStarted(Role.CFO, 0))

    assert sorted(broadcaster.tracked_discussions()) == ["d3", "d4", "running"]
    assert broadcaster.history("d0") == []


async def test_close_drops_history():
    broadcaster = InMemoryBroadcaster()
    await broadcaster.publish("d1", DiscussionCompleted(0))

    broadcaster.close("d1")

    assert broadcaster.tracked_discussions() == []
