"""Verdict Routes - rate-limited NDJSON verdict stream and shared-case decoding.

Invariants:
    - Body validation (400) runs before the rate limiter: bad requests cost no quota
    - 429 is raised before StreamingResponse exists: a rejected call opens no stream
    - One JSON object per line, flushed as produced; response is never cached

Design Decisions:
    - Route only gates and serializes; VerdictPipeline owns ordering and failure
    - Client identity from proxy headers first (deployed behind a reverse proxy)
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from emoji_verdict.api.dependencies import get_pipeline, get_rate_limiter
from emoji_verdict.core.domain_types import ClientIdentifier
from emoji_verdict.core.errors import ErrorContext, RateLimitExceededError
from emoji_verdict.core.share_payload import decode_share_payload
from emoji_verdict.core.stream_events import ndjson_line
from emoji_verdict.schemas.verdict import VerdictRequest
from emoji_verdict.services.rate_limiter import RateLimiter
from emoji_verdict.services.stream_orchestrator import VerdictPipeline

router = APIRouter(prefix="/api/verdict", tags=["verdict"])

NDJSON_MEDIA_TYPE = "application/x-ndjson; charset=utf-8"

# ADR: X-Accel-Buffering stops nginx from batching lines before the client sees them
_NDJSON_HEADERS = {
    "Cache-Control": "no-store",
    "X-Accel-Buffering": "no",
}


def client_identifier(request: Request) -> ClientIdentifier:
    """First X-Forwarded-For hop, else X-Real-IP, else socket peer, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return ClientIdentifier(forwarded.split(",")[0].strip() or forwarded)
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return ClientIdentifier(real_ip.strip())
    if request.client and request.client.host:
        return ClientIdentifier(request.client.host)
    return ClientIdentifier("unknown")


@router.post("")
async def create_verdict(
    body: VerdictRequest,
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    pipeline: VerdictPipeline = Depends(get_pipeline),
):
    """Stream a verdict as newline-delimited JSON events."""
    client_id = client_identifier(request)
    decision = await limiter.check(client_id)
    if not decision.allowed:
        raise RateLimitExceededError(
            decision.retry_after_seconds,
            remaining=decision.remaining,
            context=ErrorContext(client_id=client_id),
        )

    async def event_stream():
        async for event in pipeline.run(body.text, body.density, client_id):
            yield ndjson_line(event)

    return StreamingResponse(
        event_stream(),
        media_type=NDJSON_MEDIA_TYPE,
        headers=_NDJSON_HEADERS,
    )


@router.get("/case")
async def read_shared_case(case: str = Query("", description="Encoded share payload")):
    """Decode a shared `case` link parameter into its SharePayload."""
    return decode_share_payload(case)
