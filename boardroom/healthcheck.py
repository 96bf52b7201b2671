"""Fallback chain health check: which candidates answer, and which one leads."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from boardroom.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


@dataclass
class CandidateHealth:
    candidate: str
    position: int          # index in the fallback chain
    ok: bool
    error: str = ""
    latency_sec: float | None = None


@dataclass
class ChainHealth:
    results: list[CandidateHealth] = field(default_factory=list)

    @property
    def healthy(self) -> list[str]:
        """Candidates that answered, in chain order."""
        return [r.candidate for r in self.results if r.ok]

    @property
    def first_choice(self) -> str | None:
        """The candidate a discussion would reach first."""
        healthy = self.healthy
        return healthy[0] if healthy else None

    def working(self, candidates: Sequence[AIProvider]) -> list[AIProvider]:
        """Filter ``candidates`` down to the healthy ones, keeping chain order."""
        ok = set(self.healthy)
        return [c for c in candidates if c.name() in ok]


async def _ping(position: int, candidate: AIProvider) -> CandidateHealth:
    name = candidate.name()
    timeout = min(candidate.timeout_sec(), _TIMEOUT_SEC)
    start = time.monotonic()
    try:
        await asyncio.wait_for(candidate.generate(_PING_PROMPT), timeout=timeout)
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", name, exc)
        return CandidateHealth(name, position, ok=False, error=str(exc) or type(exc).__name__)
    return CandidateHealth(name, position, ok=True, latency_sec=time.monotonic() - start)


async def check_chain(candidates: Sequence[AIProvider]) -> ChainHealth:
    """Ping every candidate of a fallback chain.

    Pings run concurrently; discussions still walk the chain one candidate at
    a time. Results come back in chain order.
    """
    results = await asyncio.gather(*(_ping(i, c) for i, c in enumerate(candidates)))
    health = ChainHealth(results=list(results))
    if health.first_choice:
        logger.info("Chain health: %d/%d ok, first choice %s", len(health.healthy), len(results), health.first_choice)
    else:
        logger.warning("Chain health: no candidate answered")
    return health
