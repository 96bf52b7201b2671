"""Ordered fallback across backend candidates.

Candidates are listed most capable first. Each is tried once, in order, under
its own timeout; the first one whose output parses wins and the rest are never
called. When every candidate fails, the per-candidate causes are raised
together so the caller can see which candidate failed and why.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from boardroom.errors import AllBackendsExhaustedError, CandidateFailure, MalformedOutputError
from boardroom.extraction import extract_json
from boardroom.models import ModelResponse
from boardroom.providers.base import AIProvider, ProviderError, ProviderTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FallbackResult(Generic[T]):
    value: T
    candidate: str
    response: ModelResponse
    failures: list[CandidateFailure] = field(default_factory=list)


class ModelFallbackClient:
    """Try candidates in order until one yields parseable output."""

    def __init__(self, timeout_sec: float | None = None) -> None:
        # Overrides every candidate's own timeout when set.
        self._timeout_sec = timeout_sec

    async def _invoke(self, candidate: AIProvider, prompt: str) -> ModelResponse:
        timeout = self._timeout_sec if self._timeout_sec is not None else candidate.timeout_sec()
        return await asyncio.wait_for(candidate.generate(prompt), timeout=timeout)

    async def generate(
        self,
        prompt: str,
        candidates: Sequence[AIProvider],
        parse: Callable[[str], T] = extract_json,
    ) -> FallbackResult[T]:
        """Run ``prompt`` through the chain and return the first parsed result.

        Raises:
            AllBackendsExhaustedError: every candidate failed (one entry per
                candidate, in order) or the chain is empty.
        """
        failures: list[CandidateFailure] = []

        for candidate in candidates:
            name = candidate.name()
            try:
                response = await self._invoke(candidate, prompt)
                value = parse(response.content)
            except (TimeoutError, ProviderTimeoutError) as exc:
                failure = CandidateFailure(name, "timeout", str(exc) or "timed out")
            except ProviderError as exc:
                failure = CandidateFailure(name, "provider_error", str(exc))
            except MalformedOutputError as exc:
                failure = CandidateFailure(name, "malformed_output", str(exc))
                logger.debug("Candidate %s raw output: %r", name, exc.raw[:500])
            except Exception as exc:
                failure = CandidateFailure(name, "unexpected", f"{type(exc).__name__}: {exc}")
            else:
                if failures:
                    logger.info("Candidate %s succeeded after %d failure(s)", name, len(failures))
                return FallbackResult(value=value, candidate=name, response=response, failures=failures)

            logger.warning("Candidate %s failed: %s", name, failure)
            failures.append(failure)

        raise AllBackendsExhaustedError(failures)
