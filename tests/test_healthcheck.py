"""Unit tests for boardroom/healthcheck.py, no real API calls."""

import asyncio
from unittest.mock import AsyncMock

from boardroom.healthcheck import check_chain
from boardroom.providers.base import ProviderError
from tests.conftest import MockProvider


async def test_all_candidates_pass():
    chain = [MockProvider("flash"), MockProvider("claude")]

    health = await check_chain(chain)

    assert [r.candidate for r in health.results] == ["flash", "claude"]
    assert [r.position for r in health.results] == [0, 1]
    assert all(r.ok and r.error == "" for r in health.results)
    assert health.first_choice == "flash"


async def test_failed_leader_moves_first_choice_down_the_chain():
    chain = [MockProvider("gpt-4o"), MockProvider("flash"), MockProvider("claude")]
    chain[0].generate = AsyncMock(side_effect=ProviderError("gpt-4o", "API returned 403: Forbidden", 403))

    health = await check_chain(chain)

    assert health.results[0].ok is False
    assert "403" in health.results[0].error
    assert health.healthy == ["flash", "claude"]
    assert health.first_choice == "flash"
    assert [c.name() for c in health.working(chain)] == ["flash", "claude"]


async def test_empty_chain():
    health = await check_chain([])

    assert health.results == []
    assert health.first_choice is None


async def test_timeout_counts_as_failure(monkeypatch):
    slow = MockProvider("slow")

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    slow.generate = AsyncMock(side_effect=hang)
    monkeypatch.setattr("boardroom.healthcheck._TIMEOUT_SEC", 0.05)

    health = await check_chain([slow, MockProvider("backup")])

    assert health.results[0].ok is False
    assert health.results[0].error == "TimeoutError"
    assert health.first_choice == "backup"
