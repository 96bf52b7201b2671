"""Error taxonomy for the discussion core."""

from dataclasses import dataclass


class BoardroomError(Exception):
    """Base class for all discussion-core errors."""


class DiscussionValidationError(BoardroomError, ValueError):
    """Raised when an inbound request is rejected before any backend call."""


class MalformedOutputError(BoardroomError):
    """Generated text could not be parsed into the expected shape."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)


@dataclass
class CandidateFailure:
    candidate: str
    kind: str      # "timeout", "provider_error", "malformed_output", "unexpected"
    message: str

    def __str__(self) -> str:
        return f"{self.candidate} [{self.kind}]: {self.message}"


class AllBackendsExhaustedError(BoardroomError):
    """Every fallback candidate failed. Keeps the per-candidate causes in order."""

    def __init__(self, failures: list[CandidateFailure]) -> None:
        self.failures = list(failures)
        if not self.failures:
            message = "No backend candidates configured"
        else:
            causes = "; ".join(str(f) for f in self.failures)
            message = f"All {len(self.failures)} backend candidates failed: {causes}"
        super().__init__(message)


class RunError(BoardroomError):
    """Base for submit/poll protocol failures."""


class RunTimeoutError(RunError):
    def __init__(self, run_id: str, attempts: int, last_status: str) -> None:
        self.run_id = run_id
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(f"Run {run_id} did not finish after {attempts} polls (last status: {last_status})")


class RunFailedError(RunError):
    def __init__(self, run_id: str, status: str) -> None:
        self.run_id = run_id
        self.status = status
        super().__init__(f"Run {run_id} ended with status: {status}")


class EmptyResponseError(RunError):
    """A completed run produced no usable content."""


class OutOfOrderAppendError(BoardroomError):
    """A turn was appended out of sequence. Programming error, not user-facing."""


class CancelledError(BoardroomError):
    """The caller cancelled the discussion between turns."""
