"""Shared discussion context: the topic plus every turn produced so far."""

import logging
from collections.abc import Mapping, Sequence

from config.config_loader import PromptsConfig
from boardroom.errors import OutOfOrderAppendError
from boardroom.models import Role, Turn

logger = logging.getLogger(__name__)

DEFAULT_TURN_TEMPLATE = (
    'We\'re having a boardroom discussion about: "{topic}".\n'
    "Each executive will provide their perspective in turn.\n\n"
    "You are the {role} of the company. {persona}\n"
    'Provide your perspective on "{topic}" in a concise way (2-3 sentences).\n'
    "Consider what has been said before in the discussion.\n\n"
    "Discussion so far:\n{transcript}\n\n"
    'Return JSON only: {{"role": "{role}", "message": "your perspective"}}'
)

NO_TURNS_YET = "(no one has spoken yet)"


def render_transcript(turns: Sequence[Turn]) -> str:
    if not turns:
        return NO_TURNS_YET
    return "\n".join(f"{t.role.value} said: {t.text}" for t in turns)


def build_prompt(
    role: Role,
    topic: str,
    prior_turns: Sequence[Turn],
    personas: Mapping[str, str] | None = None,
    template: str = DEFAULT_TURN_TEMPLATE,
) -> str:
    """Build the prompt for ``role``. Pure: same inputs, same string."""
    persona = (personas or {}).get(role.value, "")
    return template.format(
        topic=topic,
        role=role.value,
        persona=persona,
        transcript=render_transcript(prior_turns),
    ).strip()


class DiscussionAccumulator:
    """Owns the growing context for one discussion and enforces turn order."""

    def __init__(self, topic: str, roles: Sequence[Role], prompts: PromptsConfig | None = None) -> None:
        self._topic = topic
        self._roles = tuple(roles)
        self._turns: list[Turn] = []
        self._personas = dict(prompts.personas) if prompts else {}
        self._template = prompts.turn if prompts and prompts.turn else DEFAULT_TURN_TEMPLATE

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def next_index(self) -> int:
        return len(self._turns)

    @property
    def next_role(self) -> Role | None:
        if self.is_complete:
            return None
        return self._roles[len(self._turns)]

    @property
    def is_complete(self) -> bool:
        return len(self._turns) >= len(self._roles)

    def build_prompt(self, role: Role, topic: str, prior_turns: Sequence[Turn]) -> str:
        return build_prompt(role, topic, prior_turns, self._personas, self._template)

    def next_prompt(self) -> str:
        """Prompt for the next expected role, seeing only the turns already appended."""
        role = self.next_role
        if role is None:
            raise OutOfOrderAppendError("All roles have already spoken")
        prompt = self.build_prompt(role, self._topic, self.turns)
        logger.debug("Prompt for %s (#%d):\n%s", role.value, self.next_index, prompt)
        return prompt

    def append(self, turn: Turn) -> None:
        expected = self.next_role
        if expected is None:
            raise OutOfOrderAppendError(f"Unexpected turn from {turn.role.value}: all roles have already spoken")
        if turn.role != expected:
            raise OutOfOrderAppendError(
                f"Turn #{self.next_index} must come from {expected.value}, got {turn.role.value}"
            )
        if turn.sequence_index != self.next_index:
            raise OutOfOrderAppendError(
                f"Turn for {turn.role.value} has sequence index {turn.sequence_index}, expected {self.next_index}"
            )
        self._turns.append(turn)

    def transcript(self) -> str:
        return render_transcript(self._turns)
