"""Role sequencing: one discussion, one turn per role, strictly in order."""

import asyncio
import logging
import uuid
from collections.abc import Callable, Sequence

from config.config_loader import PromptsConfig
from boardroom.accumulator import DiscussionAccumulator
from boardroom.backends import TurnBackend, TurnSession
from boardroom.broadcast import (
    DiscussionCompleted,
    DiscussionEvent,
    DiscussionFailed,
    NullBroadcaster,
    RealtimeBroadcaster,
    TurnCompleted,
    TurnStarted,
)
from boardroom.errors import (
    AllBackendsExhaustedError,
    BoardroomError,
    CancelledError,
    DiscussionValidationError,
    OutOfOrderAppendError,
)
from boardroom.models import (
    DiscussionError,
    DiscussionRequest,
    DiscussionState,
    DiscussionStatus,
    Role,
    Turn,
)
from boardroom.providers.base import ProviderError

logger = logging.getLogger(__name__)

# Failures of a role's generation that end the discussion.
_TURN_FAILURES = (BoardroomError, ProviderError)


def validate_request(topic: str, roles: Sequence[str | Role]) -> DiscussionRequest:
    """Check an inbound request before anything is sent to a backend.

    Raises:
        DiscussionValidationError: empty topic, empty role list, or unknown role.
    """
    if not isinstance(topic, str) or not topic.strip():
        raise DiscussionValidationError("Missing topic")
    if not roles:
        raise DiscussionValidationError("Missing roles: at least one role is required")
    return DiscussionRequest(topic=topic.strip(), roles=[Role.parse(r) for r in roles])


def _error_from(role: Role | None, exc: BaseException) -> DiscussionError:
    if isinstance(exc, AllBackendsExhaustedError):
        causes = [str(f) for f in exc.failures]
    else:
        causes = [f"{type(exc).__name__}: {exc}"]
        cause = exc.__cause__
        while cause is not None:
            causes.append(f"{type(cause).__name__}: {cause}")
            cause = cause.__cause__
    who = role.value if role else "discussion setup"
    return DiscussionError(role=role, reason="backend_failure", message=f"{who} failed: {exc}", causes=causes)


class RoleSequencer:
    """Run a discussion: iterate roles, generate, append, broadcast.

    No prompt for role i+1 is built before role i's turn has been appended.
    A role that fails after its backend's own fallback ends the discussion;
    later roles are never run on an incomplete context.
    """

    def __init__(
        self,
        backend: TurnBackend,
        broadcaster: RealtimeBroadcaster | None = None,
        prompts: PromptsConfig | None = None,
        on_turn: Callable[[DiscussionState, Turn], None] | None = None,
    ) -> None:
        self._backend = backend
        self._broadcaster = broadcaster or NullBroadcaster()
        self._prompts = prompts
        self._on_turn = on_turn

    async def _publish(self, discussion_id: str, event: DiscussionEvent) -> None:
        try:
            await self._broadcaster.publish(discussion_id, event)
        except Exception as exc:
            logger.warning("Broadcast of %s for %s failed: %s", event.kind, discussion_id, exc)

    def _notify(self, state: DiscussionState, turn: Turn) -> None:
        if self._on_turn is None:
            return
        try:
            self._on_turn(state, turn)
        except Exception as exc:
            logger.warning("on_turn hook failed for %s: %s", state.discussion_id, exc)

    async def _fail(self, state: DiscussionState, error: DiscussionError) -> DiscussionState:
        state.status = DiscussionStatus.FAILED
        state.error = error
        logger.error("Discussion %s failed: %s", state.discussion_id, error.message)
        await self._publish(state.discussion_id, DiscussionFailed(role=error.role, error=error))
        return state

    async def run(
        self,
        topic: str,
        roles: Sequence[str | Role],
        discussion_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DiscussionState:
        """Run the full discussion and return its final state.

        Cancelling the task running this coroutine marks the discussion failed
        with reason ``cancelled``, publishes ``DiscussionFailed`` and then
        re-raises ``asyncio.CancelledError``.

        Raises:
            DiscussionValidationError: invalid request (nothing was run).
            OutOfOrderAppendError: internal sequencing bug.
        """
        request = validate_request(topic, roles)
        state = DiscussionState(
            discussion_id=discussion_id or uuid.uuid4().hex,
            topic=request.topic,
            roles=list(request.roles),
        )
        state.status = DiscussionStatus.IN_PROGRESS
        logger.info(
            "Discussion %s started: %d roles via %s backend",
            state.discussion_id, len(request.roles), self._backend.name(),
        )

        try:
            return await self._run_turns(state, request, cancel_event)
        except asyncio.CancelledError:
            # The role in flight is the first one without a recorded turn.
            pending = len(state.turns)
            role = request.roles[pending] if pending < len(request.roles) else None
            who = role.value if role else "the discussion"
            cancelled = CancelledError(f"Discussion cancelled while waiting on {who}")
            await self._fail(state, DiscussionError(role=role, reason="cancelled", message=str(cancelled)))
            raise

    async def _run_turns(
        self,
        state: DiscussionState,
        request: DiscussionRequest,
        cancel_event: asyncio.Event | None,
    ) -> DiscussionState:
        accumulator = DiscussionAccumulator(request.topic, request.roles, self._prompts)

        try:
            session: TurnSession = await self._backend.open(request.topic)
        except _TURN_FAILURES as exc:
            return await self._fail(state, _error_from(None, exc))

        for index, role in enumerate(request.roles):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = CancelledError(f"Discussion cancelled before {role.value} spoke")
                return await self._fail(
                    state,
                    DiscussionError(role=role, reason="cancelled", message=str(cancelled)),
                )

            await self._publish(state.discussion_id, TurnStarted(role=role, sequence_index=index))
            prompt = accumulator.next_prompt()

            try:
                output = await session.generate_turn(role, prompt)
            except OutOfOrderAppendError:
                raise
            except _TURN_FAILURES as exc:
                return await self._fail(state, _error_from(role, exc))

            turn = Turn(role=role, text=output.text, sequence_index=index, backend=output.backend)
            accumulator.append(turn)

            # A turn the backend could not take into its own context is not part of the discussion.
            try:
                await session.record_turn(turn)
            except _TURN_FAILURES as exc:
                return await self._fail(state, _error_from(role, exc))
            state.turns.append(turn)

            logger.info("Turn %d (%s) via %s", index, role.value, output.backend)
            await self._publish(state.discussion_id, TurnCompleted(turn=turn))
            self._notify(state, turn)

        state.status = DiscussionStatus.COMPLETED
        logger.info("Discussion %s completed with %d turns", state.discussion_id, len(state.turns))
        await self._publish(state.discussion_id, DiscussionCompleted(turn_count=len(state.turns)))
        return state

    async def run_many(self, requests: Sequence[DiscussionRequest]) -> list[DiscussionState]:
        """Run independent discussions concurrently; each keeps its own state.

        Every request is validated before any discussion starts, so one bad
        request rejects the batch without leaving the others running.

        Raises:
            DiscussionValidationError: at least one request is invalid.
        """
        checked = [
            (validate_request(r.topic, r.roles), r.discussion_id)
            for r in requests
        ]
        return list(await asyncio.gather(
            *(self.run(request.topic, request.roles, discussion_id=discussion_id) for request, discussion_id in checked)
        ))
