"""Pipeline State - explicit stage machine for one verdict stream.

Invariants:
    - Stages only move along TRANSITIONS; anything else raises IllegalTransitionError
    - BLOCKED and FAILED accept exactly one event: the terminal error
    - DONE accepts non-terminal events (advice, share) and then the done sentinel
    - Nothing is emitted after an error or done event (StreamClosedError)

Design Decisions:
    - Transition table over nested conditionals: every legal path is visible in one dict
    - emit() returns the event so the orchestrator can `yield machine.emit(...)`
    - Plain class, no IO: testable without mocks
"""

from enum import Enum

from emoji_verdict.core.errors import IllegalTransitionError, StreamClosedError
from emoji_verdict.core.stream_events import TERMINAL_FIELDS


class PipelineStage(str, Enum):
    START = "start"
    MODERATING = "moderating"
    BLOCKED = "blocked"
    TRANSLATING = "translating"
    GENERATING = "generating"
    VALIDATING = "validating"
    SHARING = "sharing"
    FAILED = "failed"
    DONE = "done"


TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.START: frozenset({PipelineStage.MODERATING, PipelineStage.FAILED}),
    PipelineStage.MODERATING: frozenset({
        PipelineStage.BLOCKED, PipelineStage.TRANSLATING, PipelineStage.FAILED,
    }),
    PipelineStage.TRANSLATING: frozenset({PipelineStage.GENERATING, PipelineStage.FAILED}),
    PipelineStage.GENERATING: frozenset({PipelineStage.VALIDATING, PipelineStage.FAILED}),
    PipelineStage.VALIDATING: frozenset({PipelineStage.SHARING, PipelineStage.FAILED}),
    PipelineStage.SHARING: frozenset({PipelineStage.DONE, PipelineStage.FAILED}),
    PipelineStage.BLOCKED: frozenset(),
    PipelineStage.FAILED: frozenset(),
    PipelineStage.DONE: frozenset(),
}

_ERROR_STAGES = frozenset({PipelineStage.BLOCKED, PipelineStage.FAILED})


class PipelineStateMachine:
    """Tracks the current stage and guards event emission."""

    def __init__(self) -> None:
        self.stage = PipelineStage.START
        self.closed = False

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self.stage]

    def can_advance(self, target: PipelineStage) -> bool:
        return target in TRANSITIONS[self.stage]

    def advance(self, target: PipelineStage) -> None:
        if self.closed or not self.can_advance(target):
            raise IllegalTransitionError(self.stage.value, target.value)
        self.stage = target

    def emit(self, event: dict) -> dict:
        """Validate event against the current stage and return it."""
        field = event.get("field", "")
        if self.closed:
            raise StreamClosedError(field)
        if field == "error":
            if self.stage not in _ERROR_STAGES:
                raise IllegalTransitionError(self.stage.value, "error")
        elif field == "done":
            if self.stage != PipelineStage.DONE:
                raise IllegalTransitionError(self.stage.value, "done")
        elif self.stage in _ERROR_STAGES:
            raise StreamClosedError(field)
        if field in TERMINAL_FIELDS:
            self.closed = True
        return event
