"""Repository for coin balances, plans and Stripe event claims."""

from __future__ import annotations

import asyncpg

from backend.db import system_conn
from backend.models.billing import BillingUser, StripeEvent, StripeEventStatus


def _row_to_user(row: asyncpg.Record) -> BillingUser:
    """Convert a database row to a BillingUser model."""
    return BillingUser(
        id=row["id"],
        email=row["email"],
        plan=row["plan"],
        coins_balance=row["coins_balance"],
        plan_since=row["plan_since"],
    )


class BillingRepo:
    """All billing-related database operations."""

    async def get_user(self, user_id: str) -> BillingUser | None:
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT id, email, plan, coins_balance, plan_since FROM users WHERE id = $1",
                user_id,
            )
            return _row_to_user(row) if row else None

    async def add_coins(self, user_id: str, coins: int) -> BillingUser | None:
        """
        Add coins to a balance in one statement.

        Returns:
            The updated user, or None if no such user exists
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                UPDATE users
                SET coins_balance = coins_balance + $2, updated_at = now()
                WHERE id = $1
                RETURNING id, email, plan, coins_balance, plan_since
                """,
                user_id,
                coins,
            )
            return _row_to_user(row) if row else None

    async def set_plan(self, user_id: str, plan_id: str, included_coins: int) -> BillingUser | None:
        """Switch a user to plan_id and credit the plan's included coins."""
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                UPDATE users
                SET plan = $2,
                    plan_since = now(),
                    plan_expires_at = NULL,
                    coins_balance = coins_balance + $3,
                    updated_at = now()
                WHERE id = $1
                RETURNING id, email, plan, coins_balance, plan_since
                """,
                user_id,
                plan_id,
                included_coins,
            )
            return _row_to_user(row) if row else None

    async def claim_event(self, event_id: str, event_type: str | None = None) -> bool:
        """
        Record a Stripe event as processing.

        Returns:
            True if this call claimed the event, False if it was seen before
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO stripe_events (id, type, status)
                VALUES ($1, $2, 'processing')
                ON CONFLICT (id) DO NOTHING
                RETURNING id
                """,
                event_id,
                event_type,
            )
            return row is not None

    async def finalize_event(
        self,
        event_id: str,
        status: StripeEventStatus,
        error_message: str | None = None,
    ) -> None:
        async with system_conn() as conn:
            await conn.execute(
                """
                UPDATE stripe_events
                SET status = $2, error_message = $3, updated_at = now()
                WHERE id = $1
                """,
                event_id,
                status,
                error_message,
            )

    async def get_event(self, event_id: str) -> StripeEvent | None:
        async with system_conn() as conn:
            row = await conn.fetchrow("SELECT * FROM stripe_events WHERE id = $1", event_id)
            return StripeEvent(**dict(row)) if row else None
