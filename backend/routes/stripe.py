"""Stripe webhook: verified, idempotent coin and plan crediting."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from backend import config
from backend.services.billing import BillingService, SignatureVerificationError, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["stripe"])


def get_billing_service(request: Request) -> BillingService:
    """FastAPI dependency: one BillingService per app."""
    service = getattr(request.app.state, "billing", None)
    if service is None:
        service = request.app.state.billing = BillingService()
    return service


@router.post("/webhook", status_code=200)
async def stripe_webhook(
    request: Request,
    billing: BillingService = Depends(get_billing_service),
) -> dict:
    """
    Receive Stripe events.

    Unauthenticated; verified by the Stripe-Signature header before
    anything else is read. Handles:
    - checkout.session.completed: coin package purchase or plan activation
    - invoice.payment_succeeded: monthly coins for the subscription's plan

    Other event types are claimed and completed without side effects.
    """
    signature = request.headers.get("stripe-signature")
    secret = config.settings.STRIPE_WEBHOOK_SECRET
    if not signature or not secret:
        logger.error("Stripe webhook called without signature header or configured secret")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="webhook secret missing")

    body = await request.body()
    try:
        event = verify_signature(body, signature, secret)
    except SignatureVerificationError as e:
        logger.warning("Stripe signature validation failed: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid signature") from e

    try:
        return await billing.handle_event(event)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="webhook processing failed"
        ) from e
