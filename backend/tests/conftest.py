"""
Pytest configuration and fixtures for AppSchmiede backend tests.

The ASGI transport does not run the app lifespan, so routes fall back to
in-memory page storage and tests inject their own LLM and billing doubles
through app.dependency_overrides.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_appschmiede")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_appschmiede")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.main import app  # noqa: E402


@pytest_asyncio.fixture(loop_scope="session")
async def async_client():
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture(autouse=True)
def reset_app_overrides():
    """Each test starts without dependency overrides or cached app state."""
    yield
    app.dependency_overrides.clear()
    for name in ("assembly", "llm_provider", "billing"):
        if hasattr(app.state, name):
            delattr(app.state, name)
