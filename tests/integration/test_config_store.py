"""
Integration tests for the SQLite configuration store.

WHAT: Persist, overwrite, delete and list model configurations
WHY: Configured models must survive a restart of the host process
HOW: Real SQLite file under tmp_path
"""

import threading

import pytest

from infill.core.store import SqlModelConfigStore, get_model_store, set_model_store

RECORD = {
    "nickname": "local",
    "providerId": "llama.cpp-completion",
    "model": "",
    "contextWindow": 32768,
    "baseUrl": "http://localhost:8012",
}


@pytest.mark.integration
class TestSqlModelConfigStore:
    """SQLite-backed store."""

    def test_missing_nickname_returns_none(self, sql_store):
        assert sql_store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, sql_store):
        await sql_store.set("local", RECORD)

        assert sql_store.get("local") == RECORD

    @pytest.mark.asyncio
    async def test_set_overwrites(self, sql_store):
        await sql_store.set("local", RECORD)
        await sql_store.set("local", {**RECORD, "baseUrl": "http://gpu-box:8012"})

        assert sql_store.get("local")["baseUrl"] == "http://gpu-box:8012"
        assert sql_store.list_nicknames() == ["local"]

    @pytest.mark.asyncio
    async def test_delete(self, sql_store):
        await sql_store.set("local", RECORD)

        assert await sql_store.delete("local") is True
        assert await sql_store.delete("local") is False
        assert sql_store.get("local") is None

    @pytest.mark.asyncio
    async def test_list_nicknames_sorted(self, sql_store):
        await sql_store.set("zeta", {**RECORD, "nickname": "zeta"})
        await sql_store.set("alpha", {**RECORD, "nickname": "alpha"})

        assert sql_store.list_nicknames() == ["alpha", "zeta"]

    @pytest.mark.asyncio
    async def test_record_without_required_fields_rejected(self, sql_store):
        with pytest.raises(ValueError, match="providerId"):
            await sql_store.set("bad", {"nickname": "bad", "contextWindow": 1})
        assert sql_store.get("bad") is None

    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'nested' / 'models.db'}"
        first = SqlModelConfigStore.from_url(url)
        await first.set("local", RECORD)
        first.close()

        second = SqlModelConfigStore.from_url(url)
        try:
            assert second.get("local") == RECORD
        finally:
            second.close()

    @pytest.mark.asyncio
    async def test_writes_run_off_the_event_loop_thread(self, sql_store, monkeypatch):
        threads = []
        write = sql_store._write

        def recording_write(nickname, payload):
            threads.append(threading.get_ident())
            write(nickname, payload)

        monkeypatch.setattr(sql_store, "_write", recording_write)

        await sql_store.set("local", RECORD)

        assert threads and threads[0] != threading.get_ident()
        assert sql_store.get("local") == RECORD

    def test_default_store_can_be_replaced(self, sql_store):
        set_model_store(sql_store)

        assert get_model_store() is sql_store
