"""One-shot generators around a discussion: meeting, post-meeting Q&A, summary, slides.

Each call is a single prompt run through the fallback chain and parsed into
its own shape. When every candidate fails, ``AllBackendsExhaustedError``
propagates; no placeholder content is returned.
"""

import logging
from collections.abc import Sequence

from config.config_loader import PromptsConfig
from boardroom.errors import DiscussionValidationError
from boardroom.extraction import parse_meeting, parse_post_meeting, parse_slides, parse_summary
from boardroom.fallback import ModelFallbackClient
from boardroom.models import (
    CollaborativeSummary,
    MeetingResult,
    PostMeetingResult,
    Role,
    Slide,
    TranscriptEntry,
)
from boardroom.providers.base import AIProvider

logger = logging.getLogger(__name__)

MAX_SLIDES = 10
SUMMARY_DISCUSSION_LIMIT = 10
SLIDE_TITLES_PER_ROLE = 5


def _require_template(template: str, what: str) -> str:
    if not template:
        raise DiscussionValidationError(f"No '{what}' prompt configured")
    return template


def _roles(roles: Sequence[str | Role]) -> list[Role]:
    if not roles:
        raise DiscussionValidationError("Missing roles: at least one role is required")
    return [Role.parse(r) for r in roles]


async def simulate_meeting(
    topic: str,
    roles: Sequence[str | Role],
    client: ModelFallbackClient,
    candidates: Sequence[AIProvider],
    prompts: PromptsConfig,
) -> MeetingResult:
    """Simulate a whole strategy meeting in one generation."""
    if not topic or not topic.strip():
        raise DiscussionValidationError("Missing topic")
    parsed_roles = _roles(roles)
    prompt = _require_template(prompts.meeting, "meeting").format(
        topic=topic.strip(),
        roles=", ".join(r.value for r in parsed_roles),
    )
    result = await client.generate(prompt, candidates, parse=parse_meeting)
    result.value.model_used = result.candidate
    logger.info("Meeting simulated via %s: %d transcript entries", result.candidate, len(result.value.transcript))
    return result.value


async def post_meeting_discussion(
    meeting_summary: str,
    slides_meta: Sequence[tuple[str | Role, Sequence[str]]],
    roles: Sequence[str | Role],
    client: ModelFallbackClient,
    candidates: Sequence[AIProvider],
    prompts: PromptsConfig,
) -> PostMeetingResult:
    """Boardroom Q&A about the slides each role presents after the meeting.

    Args:
        slides_meta: ``(role, slide titles)`` pairs; at most five titles per role are used.
    """
    if not meeting_summary or not meeting_summary.strip():
        raise DiscussionValidationError("Missing meeting summary")
    if not slides_meta:
        raise DiscussionValidationError("Missing slides metadata")
    parsed_roles = _roles(roles)

    slide_lines = "\n".join(
        f"{Role.parse(role).value}: {' | '.join(list(titles)[:SLIDE_TITLES_PER_ROLE])}"
        for role, titles in slides_meta
    )
    prompt = _require_template(prompts.post_meeting, "post_meeting").format(
        roles=", ".join(r.value for r in parsed_roles),
        meeting_summary=meeting_summary.strip(),
        slides=slide_lines,
    )
    result = await client.generate(prompt, candidates, parse=parse_post_meeting)
    result.value.model_used = result.candidate
    return result.value


async def collaborative_summary(
    meeting_summary: str,
    discussion: Sequence[TranscriptEntry],
    client: ModelFallbackClient,
    candidates: Sequence[AIProvider],
    prompts: PromptsConfig,
    action_items: Sequence[str] = (),
) -> CollaborativeSummary:
    """Owner-facing summary of a meeting plus the boardroom discussion that followed."""
    if not meeting_summary or not meeting_summary.strip():
        raise DiscussionValidationError("Missing meeting summary")
    if not discussion:
        raise DiscussionValidationError("Missing discussion")

    recent = list(discussion)[:SUMMARY_DISCUSSION_LIMIT]
    prompt = _require_template(prompts.summary, "summary").format(
        meeting_summary=meeting_summary.strip(),
        discussion="\n".join(f"{e.role}: {e.message}" for e in recent),
        action_items="\n".join(action_items),
    )
    result = await client.generate(prompt, candidates, parse=parse_summary)
    result.value.model_used = result.candidate
    return result.value


async def generate_slides(
    topic: str,
    num_slides: int,
    client: ModelFallbackClient,
    candidates: Sequence[AIProvider],
    prompts: PromptsConfig,
) -> list[Slide]:
    """Generate slide descriptors; ``num_slides`` is clamped to 1..10."""
    if not topic or not topic.strip():
        raise DiscussionValidationError("Missing topic")
    count = min(max(1, int(num_slides)), MAX_SLIDES)
    prompt = _require_template(prompts.slides, "slides").format(count=count, topic=topic.strip())
    result = await client.generate(prompt, candidates, parse=parse_slides)
    logger.info("Generated %d slide(s) via %s", len(result.value), result.candidate)
    return result.value
