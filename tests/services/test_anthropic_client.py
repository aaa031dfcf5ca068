"""Resilient Anthropic client tests - shape negotiation and error mapping.

Invariants:
    - An unsupported-temperature rejection resubmits once without temperature
    - Any other 400 is fatal after a single call
    - SDK errors map to UpstreamUnavailableError with a typed api_error_type

Design Decisions:
    - FakeSDKClient injected through the constructor: real except clauses run
      against real anthropic exception types, no network
"""

import anthropic
import pytest

from emoji_verdict.core.errors import ErrorContext, UpstreamUnavailableError
from emoji_verdict.infrastructure.anthropic_client import (
    ResilientAnthropicClient, TEMPERATURE_FALLBACK, extract_text,
    is_unsupported_temperature,
)

from tests.services.mock_anthropic import (
    FakeSDKClient, connection_error, status_error, text_message, timeout_error,
)

MESSAGES = [{"role": "user", "content": "Pineapple on pizza is a crime."}]


def _client(outcomes):
    sdk = FakeSDKClient(outcomes)
    return ResilientAnthropicClient(api_key="sk-ant-test", client=sdk), sdk


def _temperature_rejection():
    return status_error(
        400, "temperature is not supported with this model.",
        code="unsupported_value",
    )


async def _call(client, **overrides):
    kwargs = {
        "model": "claude-test", "max_tokens": 100, "messages": MESSAGES,
        "temperature": 0.5, "fallbacks": (TEMPERATURE_FALLBACK,),
    }
    kwargs.update(overrides)
    return await client.complete_text(**kwargs)


# ==============================================================================
# Request-shape negotiation
# ==============================================================================


async def test_temperature_rejection_retries_without_temperature():
    client, sdk = _client([_temperature_rejection(), text_message('{"ok": true}')])

    text = await _call(client)

    assert text == '{"ok": true}'
    assert len(sdk.calls) == 2
    assert sdk.calls[0]["temperature"] == 0.5
    assert "temperature" not in sdk.calls[1]
    assert sdk.calls[1]["messages"] == MESSAGES


async def test_temperature_fallback_applies_once():
    client, sdk = _client([_temperature_rejection(), _temperature_rejection()])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert len(sdk.calls) == 2
    assert exc_info.value.api_error_type == "client_error"


async def test_temperature_rejection_without_fallback_is_fatal():
    client, sdk = _client([_temperature_rejection()])

    with pytest.raises(UpstreamUnavailableError):
        await _call(client, fallbacks=())

    assert len(sdk.calls) == 1


async def test_other_bad_request_is_fatal_after_one_call():
    client, sdk = _client([status_error(400, "max_tokens: must be positive")])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert len(sdk.calls) == 1
    assert exc_info.value.api_error_type == "client_error"
    assert isinstance(exc_info.value.__cause__, anthropic.APIStatusError)
    assert "max_tokens" in exc_info.value.message


async def test_no_temperature_sent_when_none():
    client, sdk = _client([text_message("{}")])

    await _call(client, temperature=None, system="judge")

    assert "temperature" not in sdk.calls[0]
    assert sdk.calls[0]["system"] == "judge"


# ==============================================================================
# Error mapping
# ==============================================================================


async def test_rate_limit_maps_to_rate_limit():
    error = status_error(
        429, "slow down", error_type="rate_limit_error", cls=anthropic.RateLimitError,
    )
    client, _ = _client([error])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert exc_info.value.api_error_type == "rate_limit"


async def test_overloaded_maps_to_overloaded():
    client, _ = _client([status_error(529, "Overloaded", error_type="overloaded_error")])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert exc_info.value.api_error_type == "overloaded"


async def test_server_error_maps_to_server_error():
    client, sdk = _client([status_error(500, "Internal", error_type="api_error")])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert exc_info.value.api_error_type == "server_error"
    assert len(sdk.calls) == 1


async def test_timeout_is_fatal():
    client, sdk = _client([timeout_error()])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert exc_info.value.api_error_type == "timeout"
    assert len(sdk.calls) == 1


async def test_connection_error_maps():
    client, _ = _client([connection_error()])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client)

    assert exc_info.value.api_error_type == "connection_error"


async def test_context_is_carried_on_error():
    client, _ = _client([timeout_error()])
    context = ErrorContext(stage="generating")

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _call(client, context=context)

    assert exc_info.value.context.stage == "generating"
    assert exc_info.value.public_message == UpstreamUnavailableError.SAFE_SUMMARY


# ==============================================================================
# Helpers
# ==============================================================================


def test_unsupported_temperature_predicate():
    request = {"model": "m", "temperature": 0.5}
    assert is_unsupported_temperature(_temperature_rejection(), request)
    assert not is_unsupported_temperature(_temperature_rejection(), {"model": "m"})
    assert not is_unsupported_temperature(
        status_error(400, "temperature must be <= 1.0"), request,
    )
    assert is_unsupported_temperature(
        status_error(422, "Unsupported parameter: temperature"), request,
    )
    assert not is_unsupported_temperature(
        status_error(500, "temperature unsupported", error_type="api_error"), request,
    )


def test_extract_text_joins_text_blocks():
    assert extract_text(text_message("abc")) == "abc"


def test_extract_text_none_without_text():
    class _Empty:
        content = []
    assert extract_text(_Empty()) is None
