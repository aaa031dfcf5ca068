"""Mock Anthropic objects - fake SDK client, fake resilient client, error builders.

Invariants:
    - FakeSDKClient sequences create() outcomes (Message or exception), records kwargs
    - MockAnthropicClient replaces ResilientAnthropicClient (complete_text and
      create_message) for stage tests
    - status_error() builds real anthropic.APIStatusError subclasses over httpx objects

Design Decisions:
    - Flat mock classes (no inheritance): simple, explicit, easy to debug
    - Real SDK exception types: the client's except clauses are exercised as in prod
"""

import anthropic
import httpx

_URL = "https://api.anthropic.com/v1/messages"


# -- Mock Anthropic SDK objects ------------------------------------------------


class _Block:
    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


class _Usage:
    def __init__(self, input_tokens=100, output_tokens=50):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class _Message:
    def __init__(self, content, stop_reason="end_turn"):
        self.content = content
        self.stop_reason = stop_reason
        self.usage = _Usage()


def text_message(text, stop_reason="end_turn"):
    return _Message([_Block(type="text", text=text)], stop_reason=stop_reason)


class _FakeMessages:
    def __init__(self, outcomes):
        self._outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self._outcomes:
            raise RuntimeError(
                f"FakeSDKClient: no outcome for call {len(self.calls)}",
            )
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeSDKClient:
    """Stands in for anthropic.AsyncAnthropic inside ResilientAnthropicClient."""

    def __init__(self, outcomes):
        self.messages = _FakeMessages(outcomes)

    @property
    def calls(self):
        return self.messages.calls


# -- Resilient client replacement ----------------------------------------------


class MockAnthropicClient:
    """Replaces ResilientAnthropicClient. Sequences completion texts or exceptions."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    async def complete_text(self, **kwargs):
        self.calls.append(kwargs)
        return self._next()

    async def create_message(self, **kwargs):
        """Wraps text outcomes in a Message; Message outcomes pass through."""
        self.calls.append(kwargs)
        outcome = self._next()
        if isinstance(outcome, _Message):
            return outcome
        return text_message(outcome)

    def _next(self):
        if not self._responses:
            raise RuntimeError(
                f"MockAnthropicClient: no response at index {len(self.calls) - 1}",
            )
        outcome = self._responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# -- Error builders ------------------------------------------------------------


def _request():
    return httpx.Request("POST", _URL)


def status_error(
    status, message, code=None, error_type="invalid_request_error",
    cls=anthropic.APIStatusError,
):
    """Build an APIStatusError (or subclass) with a provider-shaped body."""
    response = httpx.Response(status, request=_request())
    error = {"type": error_type, "message": message}
    if code is not None:
        error["code"] = code
    return cls(message, response=response, body={"type": "error", "error": error})


def timeout_error():
    return anthropic.APITimeoutError(request=_request())


def connection_error():
    return anthropic.APIConnectionError(request=_request())
