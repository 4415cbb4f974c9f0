"""Initial schema: page documents, users with coin balances, Stripe event claims.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create users table (ids come from the auth provider)
    op.execute("""
        CREATE TABLE users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE,
            display_name TEXT,
            role TEXT DEFAULT 'user' CHECK (role IN ('user', 'admin')),
            plan TEXT DEFAULT 'free' CHECK (plan IN ('free', 'starter', 'pro', 'business')),
            plan_since TIMESTAMPTZ,
            plan_expires_at TIMESTAMPTZ,
            coins_balance INTEGER NOT NULL DEFAULT 20 CHECK (coins_balance >= 0),
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    # Create page_trees table (one whole document per page)
    op.execute("""
        CREATE TABLE page_trees (
            project_id TEXT NOT NULL,
            page_id TEXT NOT NULL,
            name TEXT NOT NULL DEFAULT 'Seite',
            document JSONB NOT NULL,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now(),
            PRIMARY KEY (project_id, page_id)
        );
    """)

    op.execute("""
        CREATE INDEX idx_page_trees_project ON page_trees(project_id);
    """)

    # Create stripe_events table (idempotency claims)
    op.execute("""
        CREATE TABLE stripe_events (
            id TEXT PRIMARY KEY,
            type TEXT,
            status TEXT NOT NULL CHECK (status IN ('processing', 'completed', 'failed')),
            error_message TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ
        );
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS stripe_events;")
    op.execute("DROP TABLE IF EXISTS page_trees;")
    op.execute("DROP TABLE IF EXISTS users;")
