"""Error Hierarchy - typed, categorized exceptions for every verdict failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400/429) are raised before the stream opens
    - In-stream errors become exactly one terminal {"field": "error"} event
    - to_response() produces the REST envelope; to_stream_event() the NDJSON envelope
    - No upstream internals in user-facing messages (context.user_message wins)

Design Decisions:
    - Single hierarchy with VerdictCourtError base: FastAPI global handler catches all
    - Flat {"error": "<message>"} envelope: the browser client reads body.error as a string
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    MODERATION = "moderation"
    MODEL_OUTPUT = "model_output"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    client_id: str | None = None
    stage: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_seconds: int | None = None


class VerdictCourtError(Exception):
    """Base exception for all Emoji Verdict Court errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def public_message(self) -> str:
        return self.context.user_message or self.message

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def to_response(self) -> dict:
        """Convert to REST error body."""
        return {"error": self.public_message, "code": self.code}

    def to_stream_event(self) -> dict:
        """Convert to terminal NDJSON error event."""
        return {"field": "error", "message": self.public_message}


# ─── Request Errors (no stream opened) ──────────────────────────

class RequestInvalidError(VerdictCourtError):
    """Request body failed validation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class RateLimitExceededError(VerdictCourtError):
    """Client exhausted its quota for the current window."""

    DEFAULT_MESSAGE = (
        "Our emoji docket is jam-packed for today! "
        "Please come back tomorrow with fresh takes."
    )

    def __init__(
        self,
        retry_after_seconds: int,
        remaining: int = 0,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_seconds = retry_after_seconds
        super().__init__(
            self.DEFAULT_MESSAGE, "RATE_LIMIT_EXCEEDED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )
        self.retry_after_seconds = retry_after_seconds
        self.remaining = remaining

    @property
    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after_seconds)}

    def to_response(self) -> dict:
        return {
            **super().to_response(),
            "retryAfterSeconds": self.retry_after_seconds,
            "remaining": self.remaining,
        }


class SharePayloadInvalidError(VerdictCourtError):
    """Shared case parameter could not be decoded."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid case payload: {reason}", "SHARE_PAYLOAD_INVALID",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, context, 400,
        )
        self.context.user_message = "Invalid case payload."


# ─── Stream Errors (terminal error event) ───────────────────────

class ModerationBlockedError(VerdictCourtError):
    """Moderation refused the submission. The reason is shown verbatim."""

    DEFAULT_MESSAGE = "⚖️ Case dismissed: this submission breaks the Emoji Court rulebook."

    def __init__(self, reason: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            reason or self.DEFAULT_MESSAGE, "MODERATION_BLOCKED",
            ErrorCategory.MODERATION, ErrorSeverity.WARNING, context, 422,
        )


class UpstreamUnavailableError(VerdictCourtError):
    """An external API call failed (transport, timeout, HTTP status)."""

    SAFE_SUMMARY = "The emoji jury hung mid-trial. Please try resubmitting your case."

    def __init__(
        self,
        message: str,
        api_error_type: str,
        service: str = "anthropic",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or self.SAFE_SUMMARY
        super().__init__(
            f"{service} API error ({api_error_type}): {message}",
            "UPSTREAM_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type
        self.service = service


class ModelOutputEmptyError(VerdictCourtError):
    """Generator completion was not parseable JSON."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Emoji court could not render a verdict. Try again.",
            "MODEL_OUTPUT_EMPTY", ErrorCategory.MODEL_OUTPUT,
            ErrorSeverity.ERROR, context, 502,
        )


class ModelOutputInvalidError(VerdictCourtError):
    """Parsed model output broke a validation rule. message names the rule."""
    def __init__(self, rule: str, context: ErrorContext | None = None):
        super().__init__(
            rule, "MODEL_OUTPUT_INVALID", ErrorCategory.MODEL_OUTPUT,
            ErrorSeverity.ERROR, context, 502,
        )
        self.rule = rule


class SharePreparationError(VerdictCourtError):
    """Share link could not be built. Downgraded to a warning status."""

    SAFE_SUMMARY = "share link unavailable."

    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or self.SAFE_SUMMARY
        super().__init__(
            message, "SHARE_PREPARATION_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.WARNING, ctx, 500,
        )


# ─── Pipeline Invariant Violations (programming errors) ─────────

class IllegalTransitionError(VerdictCourtError):
    """Pipeline attempted a stage transition missing from the table."""
    def __init__(self, source: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal pipeline transition {source} -> {target}",
            "ILLEGAL_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class StreamClosedError(VerdictCourtError):
    """An event was emitted after the terminal error/done event."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Stream already closed, refused '{field_name}' event",
            "STREAM_CLOSED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
