"""Verdict generator tests - request construction and JSON parsing."""

import json

import pytest

from emoji_verdict.core.domain_types import StagePolicy
from emoji_verdict.core.emoji_limits import compute_emoji_limits
from emoji_verdict.core.errors import UpstreamUnavailableError
from emoji_verdict.infrastructure.anthropic_client import TEMPERATURE_FALLBACK
from emoji_verdict.services.verdict_generator import VerdictGenerator, temperature_for
from emoji_verdict.services.verdict_prompt import SYSTEM_PROMPT, build_verdict_messages

from tests.services.mock_anthropic import MockAnthropicClient

TEXT = "Pineapple on pizza is a crime."
RAW = {"verdict": "⚖️", "sentence": "🍍🚫"}


def _generator(responses, **kwargs):
    client = MockAnthropicClient(responses)
    return VerdictGenerator(client, model="claude-verdict", **kwargs), client


@pytest.mark.parametrize(("density", "expected"), [
    (0, 0.2), (1, 0.2), (5, 0.5), (7.5, 0.75), (9, 0.9), (10, 0.9),
])
def test_temperature_for_density(density, expected):
    assert temperature_for(density) == pytest.approx(expected)


async def test_generate_parses_json():
    generator, _ = _generator([json.dumps(RAW, ensure_ascii=False)])

    assert await generator.generate(TEXT, 5, compute_emoji_limits(5)) == RAW


async def test_generate_parses_fenced_json():
    generator, _ = _generator(["```json\n" + json.dumps(RAW) + "\n```"])

    assert await generator.generate(TEXT, 5, compute_emoji_limits(5)) == RAW


@pytest.mark.parametrize("completion", [None, "", "I refuse."])
async def test_unparseable_completion_is_none(completion):
    generator, _ = _generator([completion])

    assert await generator.generate(TEXT, 5, compute_emoji_limits(5)) is None


async def test_request_carries_prompt_temperature_and_fallback():
    generator, client = _generator(["{}"])
    limits = compute_emoji_limits(5)

    await generator.generate(TEXT, 5, limits)

    call = client.calls[0]
    assert call["model"] == "claude-verdict"
    assert call["system"] == SYSTEM_PROMPT
    assert call["temperature"] == pytest.approx(0.5)
    assert call["fallbacks"] == (TEMPERATURE_FALLBACK,)
    assert call["context"].stage == "generating"
    assert call["messages"] == build_verdict_messages(TEXT, 5, limits)


async def test_temperature_omitted_when_disabled():
    generator, client = _generator(["{}"], send_temperature=False)

    await generator.generate(TEXT, 5, compute_emoji_limits(5))

    assert client.calls[0]["temperature"] is None


def test_prompt_states_limits_and_density():
    limits = compute_emoji_limits(7.5)
    content = build_verdict_messages(TEXT, 7.5, limits)[0]["content"]
    assert TEXT in content
    assert f"verdict: {limits.verdict_max} emoji max" in content
    assert f"sentence: {limits.sentence_max} emoji max" in content
    assert f"each {limits.evidence_max} emoji max" in content
    assert "slider value 7.5 on scale 0-10" in content


def test_prompt_formats_whole_density_as_integer():
    content = build_verdict_messages(TEXT, 5.0, compute_emoji_limits(5))[0]["content"]
    assert "slider value 5 on scale" in content


def test_prompt_text_with_braces_is_not_a_template():
    content = build_verdict_messages("{density} {x}", 3, compute_emoji_limits(3))[0]["content"]
    assert "{density} {x}" in content


# --- Failure policy -----------------------------------------------------------

async def test_upstream_failure_propagates_by_default():
    generator, _ = _generator([UpstreamUnavailableError("HTTP 500", "server_error")])

    with pytest.raises(UpstreamUnavailableError):
        await generator.generate(TEXT, 5, compute_emoji_limits(5))


async def test_upstream_failure_is_no_verdict_when_fail_open():
    generator, client = _generator(
        [UpstreamUnavailableError("timeout", "timeout")],
        policy=StagePolicy.FAIL_OPEN,
    )

    assert await generator.generate(TEXT, 5, compute_emoji_limits(5)) is None
    assert len(client.calls) == 1
