"""Load settings.yaml into typed dataclasses. Checks API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class PollingConfig:
    interval_sec: float = 1.0
    max_attempts: int = 30


@dataclass
class AssistantsConfig:
    api_key_env: str = "OPENAI_API_KEY"
    ids: dict[str, str] = field(default_factory=dict)
    timeout_sec: float = 30.0
    polling: PollingConfig = field(default_factory=PollingConfig)


@dataclass
class PromptsConfig:
    opening: str
    turn: str
    meeting: str = ""
    post_meeting: str = ""
    summary: str = ""
    slides: str = ""
    personas: dict[str, str] = field(default_factory=dict)


@dataclass
class DefaultsConfig:
    roles: list[str]
    backend: str
    output_dir: Path
    fallback_chain: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    assistants: AssistantsConfig = field(default_factory=AssistantsConfig)
    available_providers: set[str] = field(default_factory=set)

    def chain(self, names: list[str] | None = None) -> list[ModelConfig]:
        """Return model configs for the fallback chain, in order, keeping only those with keys."""
        names = names if names is not None else self.defaults.fallback_chain
        return [self.models[n] for n in names if n in self.models and n in self.available_providers]


def _load_assistants(raw: dict | None) -> AssistantsConfig:
    if not raw:
        return AssistantsConfig()
    polling_raw = raw.get("polling", {}) or {}
    return AssistantsConfig(
        api_key_env=str(raw.get("api_key_env", "OPENAI_API_KEY")),
        ids={str(k).upper(): str(v) for k, v in (raw.get("ids") or {}).items()},
        timeout_sec=float(raw.get("timeout_sec", 30.0)),
        polling=PollingConfig(
            interval_sec=float(polling_raw.get("interval_sec", 1.0)),
            max_attempts=int(polling_raw.get("max_attempts", 30)),
        ),
    )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check
    available_providers and the resulting fallback chain.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        roles=[str(r).upper() for r in defaults_raw["roles"]],
        backend=str(defaults_raw.get("backend", "chain")),
        output_dir=Path(defaults_raw["output_dir"]),
        fallback_chain=list(defaults_raw.get("fallback_chain", [])),
    )

    prompts_raw = raw["prompts"]
    personas_raw = raw.get("personas", {}) or {}
    prompts = PromptsConfig(
        opening=prompts_raw["opening"],
        turn=prompts_raw["turn"],
        meeting=prompts_raw.get("meeting", ""),
        post_meeting=prompts_raw.get("post_meeting", ""),
        summary=prompts_raw.get("summary", ""),
        slides=prompts_raw.get("slides", ""),
        personas={str(k).upper(): str(v) for k, v in personas_raw.items()},
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for model_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=model_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[model_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(model_name)
            logger.info("Candidate available: %s", model_name)
        else:
            logger.info(
                "Candidate skipped (no API key): %s (set %s in .env)",
                model_name,
                model_raw["api_key_env"],
            )

    unknown = [n for n in defaults.fallback_chain if n not in models]
    if unknown:
        logger.warning("Fallback chain references unknown models: %s", ", ".join(unknown))

    return AppConfig(
        defaults=defaults,
        models=models,
        prompts=prompts,
        assistants=_load_assistants(raw.get("assistants")),
        available_providers=available_providers,
    )
