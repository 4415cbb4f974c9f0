"""
AppSchmiede configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings from environment variables."""

    # Database (empty → in-memory page storage)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # OpenAI (single-page layout generation)
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT_SECONDS: float = float(os.environ.get("LLM_TIMEOUT_SECONDS", "20"))
    LLM_TEMPERATURE: float = 0.4
    LLM_MAX_TOKENS: int = 900

    # Mock LLM (tests / UX simulation)
    USE_MOCK_LLM: bool = _flag("USE_MOCK_LLM")
    MOCK_LLM_SCENARIO: str = os.environ.get("MOCK_LLM_SCENARIO", "chat_page")

    # Stripe
    STRIPE_SECRET_KEY: str = os.environ.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET: str = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_API_BASE: str = os.environ.get("STRIPE_API_BASE", "https://api.stripe.com/v1")
    STRIPE_SIGNATURE_TOLERANCE_SECONDS: int = 300

    # Accounts that are never charged or credited
    ADMIN_EMAILS: frozenset[str] = frozenset(
        e.strip().lower() for e in os.environ.get("ADMIN_EMAILS", "").split(",") if e.strip()
    )

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def is_admin(self, email: str | None) -> bool:
        return bool(email) and email.strip().lower() in self.ADMIN_EMAILS


# Singleton instance
settings = Settings()

# Development and tests run without a database or Stripe (memory storage,
# deterministic generator); production needs both.
if settings.ENVIRONMENT == "production":
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if not settings.STRIPE_SECRET_KEY:
        raise RuntimeError("STRIPE_SECRET_KEY environment variable is required")
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise RuntimeError("STRIPE_WEBHOOK_SECRET environment variable is required")
