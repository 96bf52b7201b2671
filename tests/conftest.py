"""Shared pytest fixtures."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PromptsConfig
from boardroom.models import ModelResponse, Role, Turn
from boardroom.providers.base import AIProvider, ThreadBackend


def turn_json(message: str, role: str = "CEO") -> str:
    return json.dumps({"role": role, "message": message})


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        opening='Discussion about: "{topic}".',
        turn="Topic: {topic}\nYou are the {role}. {persona}\nSo far:\n{transcript}",
        meeting="Meeting on {topic} with {roles}",
        post_meeting="Roles {roles}\nSummary {meeting_summary}\nSlides:\n{slides}",
        summary="Summary {meeting_summary}\nDiscussion:\n{discussion}\nItems:\n{action_items}",
        slides="Make {count} slides about {topic}",
        personas={"CEO": "Be visionary.", "CFO": "Watch the cash."},
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        roles=["CEO", "CFO"],
        backend="chain",
        output_dir=tmp_path / "output",
        fallback_chain=["primary", "secondary"],
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    def _model(name: str) -> ModelConfig:
        return ModelConfig(
            name=name, sdk="openai", model=f"{name}-model", api_key_env="OPENAI_API_KEY",
            timeout_sec=60, max_tokens=1024,
        )

    return AppConfig(
        defaults=sample_defaults_config,
        models={"primary": _model("primary"), "secondary": _model("secondary")},
        prompts=sample_prompts_config,
        available_providers={"primary", "secondary"},
    )


@pytest.fixture
def sample_turns() -> list[Turn]:
    return [
        Turn(role=Role.CEO, text="We must grow.", sequence_index=0, backend="primary"),
        Turn(role=Role.CFO, text="Within budget.", sequence_index=1, backend="primary"),
    ]


def _response(name: str, content: str) -> ModelResponse:
    return ModelResponse(provider=name, model="mock-model", content=content, latency_sec=0.1, token_count=10)


class MockProvider(AIProvider):
    """Test double candidate."""

    def __init__(self, provider_name: str = "mock", response_content: str | None = None) -> None:
        self._name = provider_name
        self._response_content = response_content if response_content is not None else turn_json("Mock response")
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=_response(provider_name, self._response_content)
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    def timeout_sec(self) -> float:
        return 5.0

    async def generate(self, prompt: str) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return _response(self._name, self._response_content)

    def respond_with(self, *contents: str) -> None:
        """Return each content in turn on successive calls."""
        self.generate = AsyncMock(side_effect=[_response(self._name, c) for c in contents])


class FakeThreadBackend(ThreadBackend):
    """Scripted assistant backend.

    ``statuses`` is consumed one entry per poll; once exhausted the last entry
    repeats. ``replies`` is consumed one entry per completed run.
    """

    def __init__(self, statuses: list[str] | None = None, replies: list[str | None] | None = None) -> None:
        self.statuses = list(statuses or ["completed"])
        self.replies = list(replies or ["Assistant reply"])
        self.messages: list[tuple[str, str]] = []
        self.runs: list[tuple[str, str, str]] = []
        self.poll_calls = 0
        self.fetch_calls = 0

    def name(self) -> str:
        return "fake-assistants"

    async def create_thread(self) -> str:
        return "thread_1"

    async def add_message(self, thread_id: str, text: str) -> None:
        self.messages.append((thread_id, text))

    async def submit_run(self, thread_id: str, role: str, instructions: str) -> str:
        self.runs.append((thread_id, role, instructions))
        return f"run_{len(self.runs)}"

    async def poll_run(self, thread_id: str, run_id: str) -> str:
        self.poll_calls += 1
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    async def fetch_latest_message(self, thread_id: str) -> str | None:
        self.fetch_calls += 1
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def two_mock_providers() -> list[MockProvider]:
    return [MockProvider("primary", turn_json("From primary")), MockProvider("secondary", turn_json("From secondary"))]
