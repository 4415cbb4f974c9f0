"""
Tests for the PostgresStorage adapter.

The pool is mocked: these tests pin the SQL contract (one row per
project/page, whole-document upsert) without a running database.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from engine.kernel.assembly import PageAssembly
from engine.kernel.postgres_storage import PostgresStorage


def make_pool(conn):
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield conn

    pool.acquire = acquire
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def conn():
    return AsyncMock()


@pytest.fixture
def storage(conn):
    return PostgresStorage(make_pool(conn))


class TestPostgresStorage:
    @pytest.mark.asyncio
    async def test_get_missing(self, storage, conn):
        conn.fetchrow.return_value = None
        assert await storage.get("p1", "start") is None
        args = conn.fetchrow.call_args.args
        assert "FROM page_trees" in args[0]
        assert args[1:] == ("p1", "start")

    @pytest.mark.asyncio
    async def test_get_decoded_document(self, storage, conn):
        document = {"name": "Start", "tree": {"id": "root", "type": "container"}}
        conn.fetchrow.return_value = {"document": document}
        assert await storage.get("p1", "start") == document

    @pytest.mark.asyncio
    async def test_get_text_document(self, storage, conn):
        conn.fetchrow.return_value = {"document": '{"name": "Start", "tree": {}}'}
        assert await storage.get("p1", "start") == {"name": "Start", "tree": {}}

    @pytest.mark.asyncio
    async def test_put_upserts_whole_document(self, storage, conn):
        document = {"name": "Kontakt", "tree": {"id": "root", "type": "container"}}
        await storage.put("p1", "kontakt", document)
        sql, project_id, page_id, name, payload = conn.execute.call_args.args
        assert "ON CONFLICT (project_id, page_id)" in sql
        assert (project_id, page_id, name) == ("p1", "kontakt", "Kontakt")
        assert payload is document

    @pytest.mark.asyncio
    async def test_put_defaults_name(self, storage, conn):
        await storage.put("p1", "x", {"tree": {}})
        assert conn.execute.call_args.args[3] == "Seite"

    @pytest.mark.asyncio
    async def test_delete(self, storage, conn):
        await storage.delete("p1", "x")
        assert "DELETE FROM page_trees" in conn.execute.call_args.args[0]

    @pytest.mark.asyncio
    async def test_close(self, storage):
        await storage.close()
        storage.pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_assembly_over_postgres(self, storage, conn):
        conn.fetchrow.return_value = None
        page = await PageAssembly(storage).load_or_create("p1", "neu")
        assert page.tree.id == "root"
        stored = conn.execute.call_args.args[4]
        assert stored["tree"]["id"] == "root"
