"""Backend contracts: synchronous completion candidates and thread-based assistants."""

from abc import ABC, abstractmethod

from boardroom.models import ModelResponse

DEFAULT_TIMEOUT_SEC = 60.0


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str, status: int | None = None) -> None:
        self.provider_name = provider_name
        self.status = status
        super().__init__(f"[{provider_name}] {message}")


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its timeout."""


class AIProvider(ABC):
    """One backend candidate in a fallback chain: submit a prompt, get text back."""

    @abstractmethod
    def name(self) -> str:
        """Return the candidate name (e.g. 'gemini-2.5-flash', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    def timeout_sec(self) -> float:
        """Upper bound for one call to this candidate."""
        return DEFAULT_TIMEOUT_SEC

    @abstractmethod
    async def generate(self, prompt: str) -> ModelResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: The full prompt text to send.

        Returns:
            ModelResponse dataclass with raw content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...


class ThreadBackend(ABC):
    """Assistant-style provider that runs work asynchronously on a thread."""

    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def create_thread(self) -> str:
        ...

    @abstractmethod
    async def add_message(self, thread_id: str, text: str) -> None:
        ...

    @abstractmethod
    async def submit_run(self, thread_id: str, role: str, instructions: str) -> str:
        """Start a run for ``role``'s assistant and return the run id."""
        ...

    @abstractmethod
    async def poll_run(self, thread_id: str, run_id: str) -> str:
        """Return the run's current status string."""
        ...

    @abstractmethod
    async def fetch_latest_message(self, thread_id: str) -> str | None:
        """Return the newest assistant message text, or None if there is none."""
        ...
