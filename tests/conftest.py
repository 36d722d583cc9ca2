"""Shared fixtures: an in-memory document store and a SQLite-backed one."""
import asyncio
import copy
from collections import defaultdict
from typing import Any, Optional, Sequence

import pytest
import pytest_asyncio

import db.repositories.contacts as contacts_repo
import db.repositories.leads as leads_repo
import db.repositories.organisations as organisations_repo
from db.connection import build_engine
from db.errors import NotFoundError
from db.store import Filter, Sort, SqlDocumentStore, apply_query, apply_search, new_document_id


class InMemoryDocumentStore:
    """DocumentStore held in dicts, recording every write.

    get() snapshots the document and then yields; update() yields and then
    applies. Two interleaved read-then-write callers therefore both read the
    same state, the way they would against a remote store.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.writes: list[tuple[str, str, str]] = []

    async def create(self, collection: str, doc: dict[str, Any]) -> str:
        data = copy.deepcopy(doc)
        doc_id = str(data.pop("id", None) or new_document_id())
        self.collections[collection][doc_id] = data
        self.writes.append(("create", collection, doc_id))
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        doc = self.collections[collection].get(doc_id)
        snapshot = None if doc is None else {**copy.deepcopy(doc), "id": doc_id}
        await asyncio.sleep(0)
        return snapshot

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        await asyncio.sleep(0)
        if doc_id not in self.collections[collection]:
            raise NotFoundError(collection, doc_id)
        patch = {k: copy.deepcopy(v) for k, v in fields.items() if k != "id"}
        self.collections[collection][doc_id] = {**self.collections[collection][doc_id], **patch}
        self.writes.append(("update", collection, doc_id))

    async def delete(self, collection: str, doc_id: str) -> None:
        self.collections[collection].pop(doc_id, None)
        self.writes.append(("delete", collection, doc_id))

    async def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        docs = [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self.collections[collection].items()
        ]
        return apply_query(docs, filters, sort, limit)

    async def search(
        self,
        collection: str,
        fields: Sequence[str],
        term: str,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        docs = [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self.collections[collection].items()
        ]
        return apply_search(docs, fields, term, sort, limit)

    def updates_to(self, collection: str) -> list[str]:
        return [doc_id for op, coll, doc_id in self.writes if op == "update" and coll == collection]


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    sql_store = SqlDocumentStore(engine)
    await sql_store.create_all()
    yield sql_store
    await sql_store.dispose()


@pytest_asyncio.fixture
async def acme(store):
    return await organisations_repo.create(store, {"id": "O1", "name": "Acme"})


@pytest_asyncio.fixture
async def jane(store):
    return await contacts_repo.create(
        store, {"id": "C1", "first_name": "Jane", "last_name": "Doe", "email": "jane@acme.com"}
    )


@pytest_asyncio.fixture
async def lead(store):
    return await leads_repo.create(
        store,
        {"id": "L1", "contact_person": {"full_name": "Jane Doe", "email": "jane@acme.com"}},
    )
