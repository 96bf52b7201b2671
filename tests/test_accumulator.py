"""Tests for boardroom/accumulator.py."""

import pytest

from boardroom.accumulator import NO_TURNS_YET, DiscussionAccumulator, build_prompt, render_transcript
from boardroom.errors import OutOfOrderAppendError
from boardroom.models import Role, Turn


def test_build_prompt_is_pure(sample_turns):
    first = build_prompt(Role.CTO, "Q4 budget", sample_turns)
    second = build_prompt(Role.CTO, "Q4 budget", sample_turns)
    assert first == second


def test_build_prompt_embeds_topic_role_and_prior_turns_in_order(sample_turns):
    prompt = build_prompt(Role.CTO, "Q4 budget", sample_turns)
    assert '"Q4 budget"' in prompt
    assert "You are the CTO of the company." in prompt
    ceo_at = prompt.index("CEO said: We must grow.")
    cfo_at = prompt.index("CFO said: Within budget.")
    assert ceo_at < cfo_at


def test_build_prompt_first_speaker_sees_no_turns():
    prompt = build_prompt(Role.CEO, "Q4 budget", [])
    assert NO_TURNS_YET in prompt
    assert "said:" not in prompt


def test_build_prompt_uses_persona_and_template(sample_prompts_config):
    prompt = build_prompt(
        Role.CFO, "Hiring", [], sample_prompts_config.personas, sample_prompts_config.turn
    )
    assert prompt.startswith("Topic: Hiring")
    assert "Watch the cash." in prompt


def test_render_transcript(sample_turns):
    assert render_transcript(sample_turns) == "CEO said: We must grow.\nCFO said: Within budget."


def test_next_prompt_only_sees_appended_turns(sample_prompts_config):
    acc = DiscussionAccumulator("Q4 budget", [Role.CEO, Role.CFO], sample_prompts_config)
    assert "said:" not in acc.next_prompt()

    acc.append(Turn(role=Role.CEO, text="Grow.", sequence_index=0))
    prompt = acc.next_prompt()
    assert "CEO said: Grow." in prompt
    assert "You are the CFO." in prompt


def test_append_rejects_wrong_role():
    acc = DiscussionAccumulator("t", [Role.CEO, Role.CFO])
    with pytest.raises(OutOfOrderAppendError, match="must come from CEO"):
        acc.append(Turn(role=Role.CFO, text="x", sequence_index=0))


def test_append_rejects_wrong_sequence_index():
    acc = DiscussionAccumulator("t", [Role.CEO, Role.CFO])
    with pytest.raises(OutOfOrderAppendError, match="sequence index"):
        acc.append(Turn(role=Role.CEO, text="x", sequence_index=3))


def test_append_rejects_extra_turn():
    acc = DiscussionAccumulator("t", [Role.CEO])
    acc.append(Turn(role=Role.CEO, text="x", sequence_index=0))
    assert acc.is_complete
    assert acc.next_role is None
    with pytest.raises(OutOfOrderAppendError):
        acc.append(Turn(role=Role.CEO, text="again", sequence_index=1))
    with pytest.raises(OutOfOrderAppendError):
        acc.next_prompt()


def test_repeated_roles_are_allowed():
    acc = DiscussionAccumulator("t", [Role.CEO, Role.CEO])
    acc.append(Turn(role=Role.CEO, text="one", sequence_index=0))
    acc.append(Turn(role=Role.CEO, text="two", sequence_index=1))
    assert [t.text for t in acc.turns] == ["one", "two"]


def test_turns_snapshot_is_not_live():
    acc = DiscussionAccumulator("t", [Role.CEO, Role.CFO])
    snapshot = acc.turns
    acc.append(Turn(role=Role.CEO, text="x", sequence_index=0))
    assert snapshot == ()
    assert len(acc.turns) == 1
