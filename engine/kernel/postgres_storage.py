"""
PostgresStorage adapter for the AppSchmiede kernel assembly layer.

Implements the PageStorage protocol using Postgres as the backend.
Stores whole page documents as JSONB in the page_trees table. Expects a
pool created by backend.db.init_pool (jsonb codec installed).
"""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from engine.kernel.assembly import PageStorage


class PostgresStorage(PageStorage):
    """
    Postgres-based storage for page documents.

    One row per (project_id, page_id); writes replace the whole document.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get(self, project_id: str, page_id: str) -> dict[str, Any] | None:
        """Fetch a page document. Returns None if not found."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT document FROM page_trees WHERE project_id = $1 AND page_id = $2",
                project_id,
                page_id,
            )
            if row is None:
                return None
            document = row["document"]
            return json.loads(document) if isinstance(document, str) else document

    async def put(self, project_id: str, page_id: str, document: dict[str, Any]) -> None:
        """Write a page document (last write wins)."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO page_trees (project_id, page_id, name, document, updated_at)
                VALUES ($1, $2, $3, $4, now())
                ON CONFLICT (project_id, page_id)
                DO UPDATE SET name = EXCLUDED.name, document = EXCLUDED.document, updated_at = now()
                """,
                project_id,
                page_id,
                document.get("name") or "Seite",
                document,
            )

    async def delete(self, project_id: str, page_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "DELETE FROM page_trees WHERE project_id = $1 AND page_id = $2",
                project_id,
                page_id,
            )

    async def close(self) -> None:
        """Close the connection pool."""
        await self.pool.close()
