"""Plain dataclasses for the boardroom discussion pipeline. No I/O."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from boardroom.errors import DiscussionValidationError


class Role(StrEnum):
    CEO = "CEO"
    CFO = "CFO"
    CTO = "CTO"
    HR = "HR"

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Accept a Role or a case-insensitive role name."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise DiscussionValidationError(f"Unknown role {value!r} (expected one of: {allowed})") from None


class DiscussionStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ModelResponse:
    provider: str          # candidate name from settings.yaml
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str
    sequence_index: int
    created_at: datetime = field(default_factory=utc_now)
    backend: str | None = None   # candidate (or assistant) that produced the text

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "text": self.text,
            "sequence_index": self.sequence_index,
            "created_at": self.created_at.isoformat(),
            "backend": self.backend,
        }


@dataclass
class DiscussionError:
    """Why a discussion stopped: failing role, reason code and the cause chain."""

    role: Role | None
    reason: str            # "backend_failure" or "cancelled"
    message: str
    causes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value if self.role else None,
            "reason": self.reason,
            "message": self.message,
            "causes": list(self.causes),
        }


@dataclass
class DiscussionState:
    discussion_id: str
    topic: str
    roles: list[Role]
    turns: list[Turn] = field(default_factory=list)
    status: DiscussionStatus = DiscussionStatus.PENDING
    error: DiscussionError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "discussion_id": self.discussion_id,
            "topic": self.topic,
            "roles": [r.value for r in self.roles],
            "status": self.status.value,
            "turns": [t.to_dict() for t in self.turns],
            "error": self.error.to_dict() if self.error else None,
        }

    def error_payload(self) -> dict[str, Any] | None:
        """Caller-facing error body: ``{"error": ..., "details": ...}``."""
        if self.error is None:
            return None
        role = self.error.role.value if self.error.role else "discussion"
        return {
            "error": f"Failed to generate boardroom discussion ({role})",
            "details": self.error.to_dict(),
        }


@dataclass
class DiscussionRequest:
    topic: str
    roles: list[Role]
    discussion_id: str | None = None


@dataclass
class TranscriptEntry:
    role: str
    message: str


@dataclass
class MeetingResult:
    transcript: list[TranscriptEntry]
    per_role_topics: dict[str, str]
    meeting_summary: str
    key_points: list[str]
    model_used: str = ""


@dataclass
class PostMeetingResult:
    discussion: list[TranscriptEntry]
    meeting_highlights: list[str]
    action_items: list[str]
    model_used: str = ""


@dataclass
class CollaborativeSummary:
    executive_summary: str
    key_decisions: list[str]
    risks: list[str]
    next_steps: list[str]
    owner_updates: list[str]
    model_used: str = ""


@dataclass
class Slide:
    id: str
    title: str
    content: str
    bullets: list[str] = field(default_factory=list)
    notes: str = ""
    role: str = ""
    slide_type: str = ""
    chart_type: str = ""
    chart_data: list[dict[str, Any]] = field(default_factory=list)
    created_at: str = ""
