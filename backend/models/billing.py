"""Billing models: plans, coin packages, user balances and webhook outcomes."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

PlanId = Literal["free", "starter", "pro", "business"]
CoinPackageId = Literal["coins_100", "coins_300", "coins_1000"]
StripeEventStatus = Literal["processing", "completed", "failed"]


class PlanConfig(BaseModel):
    """A subscription plan. Monthly coins are credited on activation and on each paid invoice."""

    model_config = {"frozen": True}

    id: PlanId
    label: str
    monthly_price_eur: int
    included_coins_per_month: int
    max_projects: int
    stripe_price_id: str | None = None


class CoinPackage(BaseModel):
    """A one-off coin purchase."""

    model_config = {"frozen": True}

    id: CoinPackageId
    label: str
    coins: int
    price_eur: int
    stripe_price_id: str | None = None


class BillingUser(BaseModel):
    """The billing-relevant columns of a row in the users table."""

    id: str
    email: str | None = None
    plan: PlanId = "free"
    coins_balance: int = 0
    plan_since: datetime | None = None


class StripeEvent(BaseModel):
    """Represents a row in the stripe_events table."""

    id: str
    type: str | None = None
    status: StripeEventStatus
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class WebhookResponse(BaseModel):
    """What the Stripe webhook returns on success."""

    received: bool = False
    skipped: bool = False
