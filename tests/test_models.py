"""Tests for boardroom/models.py dataclasses."""

import pytest

from boardroom.errors import DiscussionValidationError
from boardroom.models import DiscussionError, DiscussionState, DiscussionStatus, Role, Turn


def test_role_parse_is_case_insensitive():
    assert Role.parse("cfo") == Role.CFO
    assert Role.parse(" hr ") == Role.HR
    assert Role.parse(Role.CTO) is Role.CTO


def test_role_parse_rejects_unknown():
    with pytest.raises(DiscussionValidationError, match="COO"):
        Role.parse("COO")


def test_turn_is_immutable():
    turn = Turn(role=Role.CEO, text="Grow.", sequence_index=0)
    with pytest.raises(AttributeError):
        turn.text = "Shrink."  # type: ignore[misc]


def test_turn_to_dict():
    turn = Turn(role=Role.CEO, text="Grow.", sequence_index=0, backend="primary")
    data = turn.to_dict()
    assert data["role"] == "CEO"
    assert data["backend"] == "primary"
    assert data["created_at"].endswith("+00:00")


def test_state_defaults():
    state = DiscussionState(discussion_id="d1", topic="Q4", roles=[Role.CEO])
    assert state.status == DiscussionStatus.PENDING
    assert state.turns == []
    assert state.error is None
    assert state.error_payload() is None


def test_state_error_payload():
    state = DiscussionState(discussion_id="d1", topic="Q4", roles=[Role.CEO, Role.CFO])
    state.status = DiscussionStatus.FAILED
    state.error = DiscussionError(role=Role.CFO, reason="backend_failure", message="CFO failed", causes=["a", "b"])

    payload = state.error_payload()

    assert payload["error"] == "Failed to generate boardroom discussion (CFO)"
    assert payload["details"]["causes"] == ["a", "b"]
    assert state.to_dict()["status"] == "failed"
