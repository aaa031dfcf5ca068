"""Pipeline state machine tests - transitions and emission guards.

Tests cover:
    - Happy path walks START -> ... -> DONE
    - Transitions outside the table raise IllegalTransitionError
    - BLOCKED / FAILED accept only the terminal error event
    - done only in DONE; nothing after error or done
"""

import pytest

from emoji_verdict.core.errors import IllegalTransitionError, StreamClosedError
from emoji_verdict.core.pipeline_state import (
    PipelineStage, PipelineStateMachine, TRANSITIONS,
)
from emoji_verdict.core.stream_events import done_event, error_event, status_event

HAPPY_PATH = [
    PipelineStage.MODERATING,
    PipelineStage.TRANSLATING,
    PipelineStage.GENERATING,
    PipelineStage.VALIDATING,
    PipelineStage.SHARING,
    PipelineStage.DONE,
]


def _machine_at(stage: PipelineStage) -> PipelineStateMachine:
    machine = PipelineStateMachine()
    for target in HAPPY_PATH:
        if machine.stage == stage:
            break
        machine.advance(target)
    return machine


def test_happy_path():
    machine = PipelineStateMachine()
    for target in HAPPY_PATH:
        machine.advance(target)
    assert machine.stage == PipelineStage.DONE
    assert machine.is_terminal


def test_every_non_terminal_stage_can_fail():
    for stage, targets in TRANSITIONS.items():
        if targets:
            assert PipelineStage.FAILED in targets, stage


def test_skipping_a_stage_is_illegal():
    machine = PipelineStateMachine()
    with pytest.raises(IllegalTransitionError):
        machine.advance(PipelineStage.GENERATING)
    assert machine.stage == PipelineStage.START


def test_blocked_only_from_moderating():
    machine = _machine_at(PipelineStage.TRANSLATING)
    assert not machine.can_advance(PipelineStage.BLOCKED)
    machine = _machine_at(PipelineStage.MODERATING)
    machine.advance(PipelineStage.BLOCKED)
    assert machine.is_terminal


def test_status_allowed_while_running():
    machine = _machine_at(PipelineStage.VALIDATING)
    event = status_event("Share responsibly.")
    assert machine.emit(event) is event
    assert not machine.closed


def test_error_rejected_outside_error_stages():
    machine = _machine_at(PipelineStage.GENERATING)
    with pytest.raises(IllegalTransitionError):
        machine.emit(error_event("boom"))


def test_blocked_accepts_error_then_closes():
    machine = _machine_at(PipelineStage.MODERATING)
    machine.advance(PipelineStage.BLOCKED)
    machine.emit(error_event("dismissed"))
    assert machine.closed
    with pytest.raises(StreamClosedError):
        machine.emit(error_event("again"))


def test_failed_refuses_non_terminal_events():
    machine = _machine_at(PipelineStage.GENERATING)
    machine.advance(PipelineStage.FAILED)
    with pytest.raises(StreamClosedError):
        machine.emit(status_event("late"))


def test_done_only_in_done_stage():
    machine = _machine_at(PipelineStage.SHARING)
    with pytest.raises(IllegalTransitionError):
        machine.emit(done_event())
    machine.advance(PipelineStage.DONE)
    machine.emit(done_event())
    assert machine.closed


def test_nothing_after_done():
    machine = _machine_at(PipelineStage.DONE)
    machine.emit(done_event())
    with pytest.raises(StreamClosedError):
        machine.emit(status_event("after"))


def test_closed_machine_cannot_advance():
    machine = _machine_at(PipelineStage.MODERATING)
    machine.advance(PipelineStage.BLOCKED)
    machine.emit(error_event("x"))
    with pytest.raises(IllegalTransitionError):
        machine.advance(PipelineStage.FAILED)
