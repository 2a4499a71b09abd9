import asyncio
import json

import pytest

from shared.database.document_store import JSONDocumentStore
from shared.utils.errors import DocumentIOError


async def test_missing_document_reads_empty(store: JSONDocumentStore) -> None:
    assert await store.read("tickets") == []


async def test_corrupt_document_reads_empty(tmp_path) -> None:
    (tmp_path / "tickets.json").write_text("{not json", encoding="utf-8")
    store = JSONDocumentStore(tmp_path)
    assert await store.read("tickets") == []


async def test_non_array_document_reads_empty(tmp_path) -> None:
    (tmp_path / "payments.json").write_text('{"id": "x"}', encoding="utf-8")
    store = JSONDocumentStore(tmp_path)
    assert await store.read("payments") == []


async def test_write_replaces_whole_document(store: JSONDocumentStore) -> None:
    await store.write("tickets", [{"id": "a"}, {"id": "b"}])
    await store.write("tickets", [{"id": "c", "origin": "Bogotá"}])

    assert await store.read("tickets") == [{"id": "c", "origin": "Bogotá"}]
    raw = store.path_for("tickets").read_text(encoding="utf-8")
    assert "Bogotá" in raw
    assert json.loads(raw) == [{"id": "c", "origin": "Bogotá"}]


async def test_transaction_discards_changes_on_error(store: JSONDocumentStore) -> None:
    await store.write("tickets", [{"id": "a"}])

    with pytest.raises(RuntimeError):
        async with store.transaction("tickets") as tickets:
            tickets.append({"id": "b"})
            raise RuntimeError("boom")

    assert await store.read("tickets") == [{"id": "a"}]


async def test_concurrent_transactions_do_not_lose_updates(store: JSONDocumentStore) -> None:
    async def append(n: int) -> None:
        async with store.transaction("tickets") as tickets:
            await asyncio.sleep(0)
            tickets.append({"id": str(n)})

    await asyncio.gather(*(append(n) for n in range(25)))

    ids = sorted(int(record["id"]) for record in await store.read("tickets"))
    assert ids == list(range(25))


async def test_write_failure_raises_document_io_error(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    store = JSONDocumentStore(blocker)

    with pytest.raises(DocumentIOError) as exc_info:
        await store.write("tickets", [{"id": "a"}])
    assert exc_info.value.status_code == 500
    assert exc_info.value.details["document"] == "tickets"


def test_document_names_cannot_escape_base_dir(store: JSONDocumentStore) -> None:
    with pytest.raises(ValueError):
        store.path_for("../secrets")
