"""Resilient Anthropic Client - wraps AsyncAnthropic with request-shape negotiation and error mapping.

Invariants:
    - No blind retries: the SDK's own retry is disabled (max_retries=0)
    - The only resubmission is a RequestShapeFallback whose predicate matches the
      failure; each fallback applies at most once per call, so the loop is bounded
    - Every SDK failure is mapped to UpstreamUnavailableError (core/errors.py)
    - Timeouts are fatal for the request (api_error_type="timeout")

Design Decisions:
    - Wrapper over raw client: isolates negotiation/mapping from the stages
    - Fallbacks keyed by predicate over (error, request): a new model quirk is one
      more RequestShapeFallback, not another copy of the call logic
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    RateLimitError,
)

from emoji_verdict.core.errors import ErrorContext, UpstreamUnavailableError

logger = logging.getLogger(__name__)

# ADR: OverloadedError (HTTP 529) is not re-exported by every SDK release.
# Detect via status code on APIStatusError instead of a private import.
_OVERLOADED_STATUS = 529


@dataclass(frozen=True)
class RequestShapeFallback:
    """A one-shot request rewrite applied when `applies(error, request)` is true."""
    name: str
    applies: Callable[[APIStatusError, dict], bool]
    reshape: Callable[[dict], dict]


def _error_details(error: APIStatusError) -> tuple[str, str | None]:
    """(message, code) from the provider error body, falling back to str(error)."""
    body = error.body
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            message = err.get("message")
            code = err.get("code") or err.get("type")
            return (
                message if isinstance(message, str) else str(error),
                code if isinstance(code, str) else None,
            )
    return str(error), None


def is_unsupported_temperature(error: APIStatusError, request: dict) -> bool:
    """True when the model rejected the request because of `temperature`."""
    if "temperature" not in request or error.status_code not in (400, 422):
        return False
    message, code = _error_details(error)
    text = message.lower()
    if "temperature" not in text:
        return False
    return (
        code == "unsupported_value"
        or "unsupported" in text
        or "not supported" in text
    )


def _without_temperature(request: dict) -> dict:
    return {k: v for k, v in request.items() if k != "temperature"}


TEMPERATURE_FALLBACK = RequestShapeFallback(
    name="drop_temperature",
    applies=is_unsupported_temperature,
    reshape=_without_temperature,
)


def extract_text(response) -> str | None:
    """Concatenate text blocks of a Message. None when there is no text."""
    parts = [
        block.text for block in getattr(response, "content", None) or []
        if getattr(block, "type", None) == "text" and block.text
    ]
    return "".join(parts) or None


class ResilientAnthropicClient:
    """Wraps Anthropic client with shape negotiation, timeouts, and error mapping."""

    def __init__(
        self,
        api_key: str,
        timeout_seconds: float = 45.0,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        messages: list,
        system: str | None = None,
        temperature: float | None = None,
        fallbacks: Sequence[RequestShapeFallback] = (),
        context: ErrorContext | None = None,
    ):
        """Create message, renegotiating the request shape on a matching failure."""
        request: dict = {
            "model": model, "max_tokens": max_tokens, "messages": messages,
        }
        if system is not None:
            request["system"] = system
        if temperature is not None:
            request["temperature"] = temperature

        applied: list[str] = []
        while True:
            try:
                response = await self.client.messages.create(**request)
                self._log_success(response, model, applied)
                return response

            except APIStatusError as e:
                fallback = self._match_fallback(e, request, fallbacks, applied)
                if fallback is None:
                    raise self._map_status_error(e, context) from e
                logger.warning(
                    "Retrying Anthropic request with reshaped payload",
                    extra={"fallback": fallback.name, "model": model},
                )
                applied.append(fallback.name)
                request = fallback.reshape(request)

            except APITimeoutError as e:
                raise UpstreamUnavailableError(
                    "API timeout", "timeout", context=context,
                ) from e

            except APIConnectionError as e:
                raise UpstreamUnavailableError(
                    f"Connection error: {e}", "connection_error", context=context,
                ) from e

            except APIError as e:
                logger.error(f"Unexpected Anthropic error: {e}", exc_info=True)
                raise UpstreamUnavailableError(
                    str(e), "unknown", context=context,
                ) from e

    async def complete_text(self, **kwargs) -> str | None:
        """create_message() and return only the completion text."""
        return extract_text(await self.create_message(**kwargs))

    def _match_fallback(
        self,
        error: APIStatusError,
        request: dict,
        fallbacks: Sequence[RequestShapeFallback],
        applied: list[str],
    ) -> RequestShapeFallback | None:
        for fallback in fallbacks:
            if fallback.name not in applied and fallback.applies(error, request):
                return fallback
        return None

    def _map_status_error(
        self, e: APIStatusError, context: ErrorContext | None,
    ) -> UpstreamUnavailableError:
        if isinstance(e, RateLimitError):
            error_type = "rate_limit"
        elif e.status_code == _OVERLOADED_STATUS:
            error_type = "overloaded"
        elif e.status_code >= 500:
            error_type = "server_error"
        else:
            error_type = "client_error"
        message, _ = _error_details(e)
        return UpstreamUnavailableError(
            f"HTTP {e.status_code}: {message}", error_type, context=context,
        )

    def _log_success(self, response, model: str, applied: list[str]) -> None:
        usage = getattr(response, "usage", None)
        logger.info(
            "Anthropic API success",
            extra={
                "model": model,
                "attempt": len(applied) + 1,
                "fallback": ",".join(applied) or None,
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )
