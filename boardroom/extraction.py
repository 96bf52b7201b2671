"""Turn free-form model output into structured data.

Models are asked for JSON but often wrap it in markdown fences or add prose
around it. ``extract_json`` honours the first ```json fenced block when one is
present, strips any stray fences, and parses strictly. It never substitutes
default content: anything unparseable raises ``MalformedOutputError`` with the
raw text attached, and the caller decides whether to try another candidate.

The shape parsers on top of it tolerate missing container fields (a missing
list becomes ``[]``) but not a top-level value of the wrong type.
"""

import json
import re
import uuid
from datetime import datetime, timezone
from typing import Any

from boardroom.errors import MalformedOutputError
from boardroom.models import (
    CollaborativeSummary,
    MeetingResult,
    PostMeetingResult,
    Slide,
    TranscriptEntry,
)

_JSON_FENCE = re.compile(r"```json([\s\S]*?)```", re.IGNORECASE)
_TURN_KEYS = ("message", "text", "content")


def clean_json_text(raw: str) -> str:
    """Return the JSON candidate text: first ```json block interior, fences removed."""
    match = _JSON_FENCE.search(raw)
    text = match.group(1) if match else raw
    return text.replace("```", "").strip()


def extract_json(raw: str) -> Any:
    """Parse model output as JSON.

    Raises:
        MalformedOutputError: empty input or no parseable JSON.
    """
    if not raw or not raw.strip():
        raise MalformedOutputError("Empty model output", raw=raw or "")
    text = clean_json_text(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"Failed to parse JSON: {exc.msg} at pos {exc.pos}", raw=raw) from exc


def _require_object(value: Any, raw: str, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedOutputError(f"Expected a JSON object for {what}, got {type(value).__name__}", raw=raw)
    return value


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _entries(value: Any) -> list[TranscriptEntry]:
    if not isinstance(value, list):
        return []
    return [
        TranscriptEntry(role=str(e.get("role", "")), message=str(e.get("message", "")))
        for e in value
        if isinstance(e, dict)
    ]


def parse_turn(raw: str) -> str:
    """Extract a single discussion turn's message text.

    A turn without any text is unusable, so a missing or blank message is
    malformed output rather than an empty turn.
    """
    data = _require_object(extract_json(raw), raw, "discussion turn")
    for key in _TURN_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise MalformedOutputError("Discussion turn has no message text", raw=raw)


def parse_meeting(raw: str) -> MeetingResult:
    data = _require_object(extract_json(raw), raw, "meeting")
    topics = data.get("perRoleTopics")
    return MeetingResult(
        transcript=_entries(data.get("transcript")),
        per_role_topics={str(k): str(v) for k, v in topics.items()} if isinstance(topics, dict) else {},
        meeting_summary=str(data.get("meetingSummary") or ""),
        key_points=_str_list(data.get("keyPoints")),
    )


def parse_post_meeting(raw: str) -> PostMeetingResult:
    data = _require_object(extract_json(raw), raw, "post-meeting discussion")
    return PostMeetingResult(
        discussion=_entries(data.get("discussion")),
        meeting_highlights=_str_list(data.get("meetingHighlights")),
        action_items=_str_list(data.get("actionItems")),
    )


def parse_summary(raw: str) -> CollaborativeSummary:
    data = _require_object(extract_json(raw), raw, "collaborative summary")
    return CollaborativeSummary(
        executive_summary=str(data.get("executiveSummary") or ""),
        key_decisions=_str_list(data.get("keyDecisions")),
        risks=_str_list(data.get("risks")),
        next_steps=_str_list(data.get("nextSteps")),
        owner_updates=_str_list(data.get("ownerUpdates")),
    )


def parse_slides(raw: str) -> list[Slide]:
    """Parse slide descriptors from either a bare array or ``{"slides": [...]}``."""
    data = extract_json(raw)
    if isinstance(data, dict):
        data = data.get("slides", [])
    if not isinstance(data, list):
        raise MalformedOutputError(f"Expected a JSON array of slides, got {type(data).__name__}", raw=raw)

    now = datetime.now(timezone.utc).isoformat()
    slides: list[Slide] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        chart_data = item.get("chartData")
        slides.append(
            Slide(
                id=str(item.get("id") or uuid.uuid4()),
                title=str(item.get("title") or ""),
                content=str(item.get("content") or ""),
                bullets=_str_list(item.get("bullets")),
                notes=str(item.get("notes") or ""),
                role=str(item.get("role") or ""),
                slide_type=str(item.get("slideType") or ""),
                chart_type=str(item.get("chartType") or ""),
                chart_data=[d for d in chart_data if isinstance(d, dict)] if isinstance(chart_data, list) else [],
                created_at=str(item.get("createdAt") or now),
            )
        )
    return slides
