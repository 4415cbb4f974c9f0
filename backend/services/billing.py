"""
Billing: plan/coin catalogue, Stripe signature checks and event handling.

Webhook processing is idempotent per event id: an event is claimed before
any balance changes, and finalized as completed or failed afterwards.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any

import httpx

from backend.config import settings
from backend.models.billing import CoinPackage, PlanConfig
from backend.repos.billing_repo import BillingRepo

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

PLANS: dict[str, PlanConfig] = {
    "free": PlanConfig(id="free", label="Free", monthly_price_eur=0, included_coins_per_month=20, max_projects=1),
    "starter": PlanConfig(
        id="starter",
        label="Starter",
        monthly_price_eur=19,
        included_coins_per_month=300,
        max_projects=10,
        stripe_price_id=os.environ.get("STRIPE_PRICE_STARTER"),
    ),
    "pro": PlanConfig(
        id="pro",
        label="Pro",
        monthly_price_eur=59,
        included_coins_per_month=1500,
        max_projects=50,
        stripe_price_id=os.environ.get("STRIPE_PRICE_PRO"),
    ),
    "business": PlanConfig(
        id="business",
        label="Business",
        monthly_price_eur=149,
        included_coins_per_month=5000,
        max_projects=9999,
        stripe_price_id=os.environ.get("STRIPE_PRICE_BUSINESS"),
    ),
}

COIN_PACKAGES: dict[str, CoinPackage] = {
    "coins_100": CoinPackage(
        id="coins_100", label="100 Coins", coins=100, price_eur=9, stripe_price_id=os.environ.get("STRIPE_PRICE_COINS_100")
    ),
    "coins_300": CoinPackage(
        id="coins_300", label="300 Coins", coins=300, price_eur=24, stripe_price_id=os.environ.get("STRIPE_PRICE_COINS_300")
    ),
    "coins_1000": CoinPackage(
        id="coins_1000",
        label="1000 Coins",
        coins=1000,
        price_eur=69,
        stripe_price_id=os.environ.get("STRIPE_PRICE_COINS_1000"),
    ),
}


def get_plan(plan_id: str | None) -> PlanConfig:
    """Unknown plan ids resolve to the free plan."""
    return PLANS.get(plan_id or "", PLANS["free"])


def find_plan_by_price_id(price_id: str | None) -> str | None:
    if not price_id:
        return None
    return next((p.id for p in PLANS.values() if p.stripe_price_id == price_id), None)


def find_coin_package_by_price_id(price_id: str | None) -> str | None:
    if not price_id:
        return None
    return next((p.id for p in COIN_PACKAGES.values() if p.stripe_price_id == price_id), None)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SignatureVerificationError(Exception):
    """The Stripe-Signature header does not match the payload."""


class UserNotFound(Exception):
    """A webhook referenced a user id that does not exist."""


# ---------------------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------------------


def _parse_signature_header(header: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as e:
                raise SignatureVerificationError("Malformed timestamp in signature header") from e
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise SignatureVerificationError("Signature header is missing t or v1")
    return timestamp, signatures


def sign_payload(payload: bytes, secret: str, timestamp: int) -> str:
    """HMAC-SHA256 over "{timestamp}.{payload}", hex encoded."""
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def verify_signature(
    payload: bytes,
    header: str,
    secret: str,
    tolerance: int = settings.STRIPE_SIGNATURE_TOLERANCE_SECONDS,
    now: float | None = None,
) -> dict[str, Any]:
    """
    Verify a Stripe webhook and decode its event.

    Args:
        payload: Raw request body, exactly as received
        header: Value of the Stripe-Signature header
        secret: The endpoint's signing secret
        tolerance: Maximum age of the timestamp in seconds

    Returns:
        The decoded event object

    Raises:
        SignatureVerificationError: Bad header, stale timestamp, no matching
            signature, or a body that is not a JSON event
    """
    timestamp, signatures = _parse_signature_header(header)
    current = time.time() if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise SignatureVerificationError("Timestamp outside the tolerance zone")

    expected = sign_payload(payload, secret, timestamp)
    if not any(hmac.compare_digest(expected, s) for s in signatures):
        raise SignatureVerificationError("No signature matches the expected signature for payload")

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise SignatureVerificationError("Payload is not valid JSON") from e
    if not isinstance(event, dict) or not isinstance(event.get("id"), str):
        raise SignatureVerificationError("Payload is not a Stripe event")
    return event


# ---------------------------------------------------------------------------
# Balance changes
# ---------------------------------------------------------------------------


class BillingService:
    """Applies paid events to user balances. Admin accounts are never charged or credited."""

    def __init__(self, repo: BillingRepo | None = None, http: httpx.AsyncClient | None = None):
        self.repo = repo or BillingRepo()
        self.http = http

    async def credit_coins(self, user_id: str, coins: int) -> None:
        if not coins or coins <= 0:
            return
        user = await self.repo.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found, coins could not be credited")
        if settings.is_admin(user.email):
            logger.info("Skipping coin credit for admin account %s", user_id)
            return
        if await self.repo.add_coins(user_id, coins) is None:
            raise UserNotFound(f"User {user_id} not found")
        logger.info("Credited %d coins to %s", coins, user_id)

    async def activate_plan(self, user_id: str, plan_id: str) -> None:
        plan = get_plan(plan_id)
        user = await self.repo.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found, plan {plan.id} could not be activated")
        if settings.is_admin(user.email):
            logger.info("Skipping plan activation for admin account %s", user_id)
            return
        if await self.repo.set_plan(user_id, plan.id, plan.included_coins_per_month) is None:
            raise UserNotFound(f"User {user_id} not found")
        logger.info("Activated plan %s for %s", plan.id, user_id)

    # -- event handlers --

    async def handle_checkout_session(self, session: dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        uid = metadata.get("uid")
        kind = metadata.get("kind")
        if not uid or not kind:
            return

        if kind == "coins":
            package = COIN_PACKAGES.get(metadata.get("coinPackage") or "")
            if package is None:
                return
            await self.credit_coins(uid, package.coins)
        elif kind == "plan":
            plan_id = metadata.get("planId")
            if not plan_id:
                return
            await self.activate_plan(uid, plan_id)

    async def handle_invoice_paid(self, invoice: dict[str, Any]) -> None:
        subscription = invoice.get("subscription")
        subscription_id = subscription.get("id") if isinstance(subscription, dict) else subscription
        if not subscription_id:
            return

        metadata = (invoice.get("subscription_details") or {}).get("metadata") or {}
        if not metadata.get("uid"):
            metadata = await self.fetch_subscription_metadata(subscription_id)
        uid = metadata.get("uid")
        plan_id = metadata.get("planId")
        if not uid or not plan_id:
            return

        await self.credit_coins(uid, get_plan(plan_id).included_coins_per_month)

    async def fetch_subscription_metadata(self, subscription_id: str) -> dict[str, Any]:
        """GET /v1/subscriptions/{id} and return its metadata."""
        url = f"{settings.STRIPE_API_BASE}/subscriptions/{subscription_id}"
        auth = (settings.STRIPE_SECRET_KEY, "")
        if self.http is not None:
            response = await self.http.get(url, auth=auth)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(url, auth=auth)
        response.raise_for_status()
        return response.json().get("metadata") or {}

    async def handle_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """
        Claim, apply and finalize one verified event.

        Returns {"skipped": True} for events seen before, else {"received": True}.
        Handler errors finalize the event as failed and are re-raised.
        """
        event_id = event["id"]
        event_type = event.get("type")
        if not await self.repo.claim_event(event_id, event_type):
            logger.info("Stripe event %s already processed, skipping", event_id)
            return {"skipped": True}

        obj = (event.get("data") or {}).get("object") or {}
        try:
            handler = _EVENT_HANDLERS.get(event_type)
            if handler is not None:
                await handler(self, obj)
        except Exception as e:
            await self.repo.finalize_event(event_id, "failed", str(e))
            logger.error("Stripe event %s (%s) failed: %s", event_id, event_type, e)
            raise

        await self.repo.finalize_event(event_id, "completed")
        logger.info("Stripe event %s (%s) completed", event_id, event_type)
        return {"received": True}


_EVENT_HANDLERS = {
    "checkout.session.completed": BillingService.handle_checkout_session,
    "invoice.payment_succeeded": BillingService.handle_invoice_paid,
}
