"""Agenda files: a markdown topic with optional YAML frontmatter."""

from dataclasses import dataclass, field
from pathlib import Path

import frontmatter


@dataclass
class Agenda:
    topic: str
    roles: list[str] = field(default_factory=list)
    backend: str | None = None
    source: str = ""


def _as_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value]


def parse_agenda(file_path: Path) -> Agenda:
    """Parse an agenda file.

    Frontmatter keys (all optional): ``roles`` (list or comma-separated string)
    and ``backend`` ("chain" or "assistants"). The body is the topic.
    """
    post = frontmatter.load(str(file_path))
    meta = dict(post.metadata)
    backend = meta.get("backend")
    return Agenda(
        topic=post.content.strip(),
        roles=_as_list(meta.get("roles")),
        backend=str(backend) if backend else None,
        source=str(file_path),
    )
