"""
Tests for BillingService and Stripe signature verification.

The repo is an AsyncMock: these tests pin which balance changes an event
causes, and that every claimed event is finalized exactly once.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from backend.config import settings
from backend.models.billing import BillingUser
from backend.repos.billing_repo import BillingRepo
from backend.services.billing import (
    PLANS,
    BillingService,
    SignatureVerificationError,
    UserNotFound,
    find_coin_package_by_price_id,
    find_plan_by_price_id,
    get_plan,
    sign_payload,
    verify_signature,
)

SECRET = "whsec_unit"
NOW = 1_767_225_600


@pytest.fixture
def repo():
    repo = AsyncMock(spec=BillingRepo)
    user = BillingUser(id="user_1", email="kunde@example.de")
    repo.get_user.return_value = user
    repo.add_coins.return_value = user
    repo.set_plan.return_value = user
    repo.claim_event.return_value = True
    return repo


@pytest.fixture
def service(repo):
    return BillingService(repo=repo)


# ── catalogue ──────────────────────────────────────────────────────────────


class TestCatalogue:
    def test_unknown_plan_is_free(self):
        assert get_plan("enterprise").id == "free"
        assert get_plan(None).included_coins_per_month == 20

    def test_price_lookups(self, monkeypatch):
        monkeypatch.setitem(PLANS, "pro", PLANS["pro"].model_copy(update={"stripe_price_id": "price_pro"}))
        assert find_plan_by_price_id("price_pro") == "pro"
        assert find_plan_by_price_id("price_nope") is None
        assert find_plan_by_price_id(None) is None
        assert find_coin_package_by_price_id(None) is None


# ── signatures ─────────────────────────────────────────────────────────────


def header_for(payload: bytes, secret: str = SECRET, timestamp: int = NOW) -> str:
    return f"t={timestamp},v1={sign_payload(payload, secret, timestamp)}"


class TestVerifySignature:
    def test_valid(self):
        payload = json.dumps({"id": "evt_1", "type": "invoice.payment_succeeded"}).encode()
        event = verify_signature(payload, header_for(payload), SECRET, now=NOW)
        assert event["id"] == "evt_1"

    def test_any_v1_may_match(self):
        payload = b'{"id": "evt_1"}'
        header = f"t={NOW},v1=deadbeef,v1={sign_payload(payload, SECRET, NOW)}"
        assert verify_signature(payload, header, SECRET, now=NOW)["id"] == "evt_1"

    @pytest.mark.parametrize("header", ["", "v1=abc", f"t={NOW}", "t=soon,v1=abc"])
    def test_malformed_header(self, header):
        with pytest.raises(SignatureVerificationError):
            verify_signature(b'{"id": "evt_1"}', header, SECRET, now=NOW)

    def test_outside_tolerance(self):
        payload = b'{"id": "evt_1"}'
        with pytest.raises(SignatureVerificationError, match="tolerance"):
            verify_signature(payload, header_for(payload), SECRET, tolerance=300, now=NOW + 301)

    def test_zero_tolerance_disables_age_check(self):
        payload = b'{"id": "evt_1"}'
        assert verify_signature(payload, header_for(payload), SECRET, tolerance=0, now=NOW + 86_400)

    @pytest.mark.parametrize("payload", [b"not json", b"[]", b'{"type": "x"}'])
    def test_body_must_be_an_event(self, payload):
        with pytest.raises(SignatureVerificationError):
            verify_signature(payload, header_for(payload), SECRET, now=NOW)


# ── balance changes ────────────────────────────────────────────────────────


class TestBalances:
    async def test_credit_coins(self, service, repo):
        await service.credit_coins("user_1", 100)
        repo.add_coins.assert_awaited_once_with("user_1", 100)

    @pytest.mark.parametrize("coins", [0, -5])
    async def test_non_positive_amounts_skipped(self, service, repo, coins):
        await service.credit_coins("user_1", coins)
        repo.get_user.assert_not_awaited()

    async def test_unknown_user(self, service, repo):
        repo.get_user.return_value = None
        with pytest.raises(UserNotFound):
            await service.credit_coins("ghost", 100)

    async def test_admin_is_never_credited(self, service, repo, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_EMAILS", frozenset({"kunde@example.de"}))
        await service.credit_coins("user_1", 100)
        await service.activate_plan("user_1", "pro")
        repo.add_coins.assert_not_awaited()
        repo.set_plan.assert_not_awaited()

    async def test_activate_plan_credits_included_coins(self, service, repo):
        await service.activate_plan("user_1", "pro")
        repo.set_plan.assert_awaited_once_with("user_1", "pro", 1500)

    async def test_activate_unknown_plan_falls_back_to_free(self, service, repo):
        await service.activate_plan("user_1", "enterprise")
        repo.set_plan.assert_awaited_once_with("user_1", "free", 20)


# ── event handlers ─────────────────────────────────────────────────────────


class TestCheckoutSession:
    async def test_coin_package(self, service, repo):
        await service.handle_checkout_session(
            {"metadata": {"uid": "user_1", "kind": "coins", "coinPackage": "coins_300"}}
        )
        repo.add_coins.assert_awaited_once_with("user_1", 300)

    async def test_unknown_coin_package(self, service, repo):
        await service.handle_checkout_session({"metadata": {"uid": "user_1", "kind": "coins", "coinPackage": "x"}})
        repo.add_coins.assert_not_awaited()

    async def test_plan(self, service, repo):
        await service.handle_checkout_session({"metadata": {"uid": "user_1", "kind": "plan", "planId": "starter"}})
        repo.set_plan.assert_awaited_once_with("user_1", "starter", 300)

    async def test_missing_metadata(self, service, repo):
        await service.handle_checkout_session({})
        repo.get_user.assert_not_awaited()


class TestInvoicePaid:
    async def test_metadata_on_invoice(self, service, repo):
        await service.handle_invoice_paid(
            {
                "subscription": "sub_1",
                "subscription_details": {"metadata": {"uid": "user_1", "planId": "business"}},
            }
        )
        repo.add_coins.assert_awaited_once_with("user_1", 5000)

    async def test_metadata_fetched_from_subscription(self, repo):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "sub_2", "metadata": {"uid": "user_1", "planId": "starter"}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            service = BillingService(repo=repo, http=http)
            await service.handle_invoice_paid({"subscription": {"id": "sub_2"}})

        assert requests[0].url.path.endswith("/subscriptions/sub_2")
        assert requests[0].headers["authorization"].startswith("Basic ")
        repo.add_coins.assert_awaited_once_with("user_1", 300)

    async def test_no_subscription(self, service, repo):
        await service.handle_invoice_paid({"subscription": None})
        repo.get_user.assert_not_awaited()


# ── idempotency ────────────────────────────────────────────────────────────


def coin_event(event_id: str = "evt_1") -> dict:
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {"uid": "user_1", "kind": "coins", "coinPackage": "coins_100"}}},
    }


class TestHandleEvent:
    async def test_completed(self, service, repo):
        assert await service.handle_event(coin_event()) == {"received": True}
        repo.claim_event.assert_awaited_once_with("evt_1", "checkout.session.completed")
        repo.finalize_event.assert_awaited_once_with("evt_1", "completed")
        repo.add_coins.assert_awaited_once_with("user_1", 100)

    async def test_already_claimed_is_skipped(self, service, repo):
        repo.claim_event.return_value = False
        assert await service.handle_event(coin_event()) == {"skipped": True}
        repo.add_coins.assert_not_awaited()
        repo.finalize_event.assert_not_awaited()

    async def test_failure_is_recorded_and_raised(self, service, repo):
        repo.get_user.return_value = None
        with pytest.raises(UserNotFound):
            await service.handle_event(coin_event())
        status_call = repo.finalize_event.await_args
        assert status_call.args[:2] == ("evt_1", "failed")
        assert "user_1" in status_call.args[2]

    async def test_unhandled_type_completes_without_changes(self, service, repo):
        event = {"id": "evt_9", "type": "customer.created", "data": {"object": {}}}
        assert await service.handle_event(event) == {"received": True}
        repo.get_user.assert_not_awaited()
        repo.finalize_event.assert_awaited_once_with("evt_9", "completed")
