"""API test fixtures - FastAPI app with stage dependencies overridden.

Invariants:
    - Every test gets a fresh rate limiter (fixed clock) and a scripted pipeline
    - Overrides are cleared after each test so the module-level app stays clean

Design Decisions:
    - httpx AsyncClient over ASGITransport: exercises the real middleware and
      exception handlers without a socket
    - StubPipeline yields scripted events: route tests check gating and framing,
      pipeline ordering is covered in tests/services
"""

import pytest
from httpx import ASGITransport, AsyncClient

from emoji_verdict.api.dependencies import get_pipeline, get_rate_limiter
from emoji_verdict.infrastructure.rate_limit_store import InMemoryWindowStore
from emoji_verdict.main import app
from emoji_verdict.services.rate_limiter import RateLimiter

from tests.api.stub_pipeline import FIXED_NOW, StubPipeline


@pytest.fixture
def limiter():
    return RateLimiter(
        InMemoryWindowStore(), max_requests=2, clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def pipeline():
    return StubPipeline()


@pytest.fixture
async def client(limiter, pipeline):
    """FastAPI test client with limiter and pipeline overridden."""
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
