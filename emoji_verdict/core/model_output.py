"""Model Output Parsing - completion text to untyped JSON.

Invariants:
    - Never raises: unparseable or empty completions return None
    - An optional surrounding ``` or ```json fence is stripped before parsing
"""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def parse_model_json(content: str | None) -> Any | None:
    """Parse model completion as JSON. None means "no verdict"."""
    if not content:
        return None
    match = _FENCE_RE.search(content)
    raw = match.group(1) if match else content
    try:
        return json.loads(raw.strip())
    except (json.JSONDecodeError, ValueError):
        return None
