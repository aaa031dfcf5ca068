"""Structured Logging - one JSON object per line for the verdict pipeline.

Invariants:
    - Every line carries ts (from the record, not the formatter), level, logger, msg
    - Pipeline context (client_id, stage, error_code, language, moderation_action)
      sits at the top level; model-call fields are grouped under "anthropic"
    - Only whitelisted extras are emitted, so submitted text never reaches a log line
    - setup_logging is idempotent: calling it again replaces its own handler

Design Decisions:
    - stdlib logging + a small Formatter: uvicorn and the Anthropic SDK already log
      through it, one handler captures everything
    - httpx/httpcore/anthropic pinned to WARNING: their INFO lines repeat what
      ResilientAnthropicClient logs with token usage attached
"""

import json
import logging
from datetime import datetime, timezone

_PIPELINE_FIELDS = (
    "client_id", "stage", "error_code", "language", "moderation_action",
)
_MODEL_CALL_FIELDS = (
    "model", "attempt", "fallback", "input_tokens", "output_tokens",
)
_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")

_HANDLER_NAME = "emoji_verdict"
_PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(stage)s] %(message)s"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(_present(record, _PIPELINE_FIELDS))
        model_call = _present(record, _MODEL_CALL_FIELDS)
        if model_call:
            entry["anthropic"] = model_call
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class _StageDefault(logging.Filter):
    """Plain format references %(stage)s; records without one get '-'."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "stage"):
            record.stage = "-"
        return True


def _present(record: logging.LogRecord, keys: tuple[str, ...]) -> dict:
    return {
        key: record.__dict__[key]
        for key in keys
        if record.__dict__.get(key) is not None
    }


def build_handler(fmt: str = "json") -> logging.Handler:
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.addFilter(_StageDefault())
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    return handler


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the app handler on the root logger, replacing a previous one."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    handler = build_handler(fmt)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
