"""Stream Orchestrator - sequences every stage and yields ordered NDJSON events.

Invariants:
    - Strictly sequential: moderate -> normalize -> generate -> validate -> share
    - Every emission passes PipelineStateMachine.emit: nothing follows error/done
    - block yields exactly [status, error(reason)] and issues no further calls
    - Field events are whole validated values, emitted once, after validation
    - Share failure is a warning status, never a terminal error
    - Terminal error messages are safe summaries (VerdictCourtError.public_message)

Design Decisions:
    - Async generator of dicts: the route owns serialization (ndjson_line) and transport
    - Stages injected as Protocols: tests drive the pipeline with plain fakes
    - CancelledError re-raised after logging: client disconnect ends the generator,
      the rate-limit counter was already committed before the stream opened
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from emoji_verdict.core.boundary_protocols import (
    ContentModeration, LanguageNormalization, VerdictGeneration,
)
from emoji_verdict.core.domain_types import ModerationAction, ValidatedVerdict
from emoji_verdict.core.emoji_limits import compute_emoji_limits
from emoji_verdict.core.errors import (
    ErrorContext, ModelOutputEmptyError, ModerationBlockedError,
    SharePreparationError, VerdictCourtError,
)
from emoji_verdict.core.pipeline_state import PipelineStage, PipelineStateMachine
from emoji_verdict.core.share_payload import (
    DEFAULT_MAX_URL_LENGTH, build_direct_share_url, build_share_payload,
    classify_share_url,
)
from emoji_verdict.core.stream_events import (
    done_event, error_event, share_event, status_event, verdict_field_events,
)
from emoji_verdict.core.validate_verdict import validate_model_output

logger = logging.getLogger(__name__)

STATUS_REVIEWING = "Reviewing case file..."
STATUS_REWRITTEN = (
    "Content was rewritten into a playful warning to keep things court-approved."
)
STATUS_LANGUAGE_DEGRADED = (
    "Language services unavailable. Proceeding with original wording."
)
UNEXPECTED_ERROR_MESSAGE = (
    "The emoji jury hung mid-trial. Please try resubmitting your case."
)


class VerdictPipeline:
    """One instance per process; run() holds all per-request state."""

    def __init__(
        self,
        moderator: ContentModeration,
        normalizer: LanguageNormalization,
        generator: VerdictGeneration,
        share_base_path: str = "/",
        max_share_url_length: int = DEFAULT_MAX_URL_LENGTH,
    ):
        self.moderator = moderator
        self.normalizer = normalizer
        self.generator = generator
        self.share_base_path = share_base_path
        self.max_share_url_length = max_share_url_length

    async def run(
        self, text: str, density: float, client_id: str | None = None,
    ) -> AsyncIterator[dict]:
        """Async generator yielding stream events for one submission."""
        machine = PipelineStateMachine()
        try:
            async for event in self._stages(machine, text, density):
                yield event
        except asyncio.CancelledError:
            logger.info(
                "Client disconnected from verdict stream",
                extra={"client_id": client_id, "stage": machine.stage.value},
            )
            raise
        except VerdictCourtError as e:
            logger.warning(
                "Verdict stream failed: %s", e.message,
                extra={
                    "client_id": client_id, "stage": machine.stage.value,
                    "error_code": e.code,
                },
            )
            for event in self._fail(machine, e.to_stream_event()):
                yield event
        except Exception as e:
            logger.error(
                "Unexpected error in verdict stream: %s", e,
                extra={"client_id": client_id, "stage": machine.stage.value},
                exc_info=True,
            )
            for event in self._fail(machine, error_event(UNEXPECTED_ERROR_MESSAGE)):
                yield event

    async def _stages(
        self, machine: PipelineStateMachine, text: str, density: float,
    ) -> AsyncIterator[dict]:
        limits = compute_emoji_limits(density)
        yield machine.emit(status_event(STATUS_REVIEWING))

        machine.advance(PipelineStage.MODERATING)
        decision = await self.moderator.moderate(text)
        if decision.is_blocked:
            machine.advance(PipelineStage.BLOCKED)
            blocked = ModerationBlockedError(decision.reason)
            logger.info("Submission blocked by moderation",
                extra={"error_code": blocked.code})
            yield machine.emit(blocked.to_stream_event())
            return

        moderated = text
        if decision.action == ModerationAction.REWRITE and decision.safe_text:
            moderated = decision.safe_text
            yield machine.emit(status_event(decision.reason or STATUS_REWRITTEN))

        machine.advance(PipelineStage.TRANSLATING)
        normalized = await self.normalizer.normalize(moderated)
        if normalized.degraded:
            yield machine.emit(status_event(STATUS_LANGUAGE_DEGRADED))
        elif normalized.was_translated:
            yield machine.emit(status_event(
                f"Translated from {normalized.language.upper()} "
                "for consistent emoji verdict.",
            ))

        machine.advance(PipelineStage.GENERATING)
        raw = await self.generator.generate(normalized.text, density, limits)
        if raw is None:
            raise ModelOutputEmptyError(ErrorContext(stage="generating"))

        machine.advance(PipelineStage.VALIDATING)
        validated = validate_model_output(raw, limits)
        for event in verdict_field_events(validated):
            yield machine.emit(event)
        yield machine.emit(status_event(validated.status_advice))

        machine.advance(PipelineStage.SHARING)
        yield machine.emit(self._share_or_warning(moderated.strip(), density, validated))

        machine.advance(PipelineStage.DONE)
        yield machine.emit(done_event())

    def _share_or_warning(
        self, moderated_text: str, density: float, validated: ValidatedVerdict,
    ) -> dict:
        try:
            payload = build_share_payload(moderated_text, density, validated)
            url = build_direct_share_url(payload, self.share_base_path)
        except Exception as e:
            warning = SharePreparationError(str(e), ErrorContext(stage="sharing"))
            logger.warning("Share payload failed: %s", e,
                extra={"error_code": warning.code})
            return status_event(f"Share payload warning: {warning.public_message}")
        return share_event(url, classify_share_url(url, self.max_share_url_length))

    def _fail(self, machine: PipelineStateMachine, event: dict) -> list[dict]:
        """Move to FAILED and return the terminal error event, if still possible."""
        if machine.closed:
            logger.error("Error after terminal event dropped: %s", event.get("message"))
            return []
        if machine.stage not in (PipelineStage.BLOCKED, PipelineStage.FAILED):
            if not machine.can_advance(PipelineStage.FAILED):
                logger.error("No failure transition from stage %s", machine.stage.value)
                return []
            machine.advance(PipelineStage.FAILED)
        return [machine.emit(event)]
