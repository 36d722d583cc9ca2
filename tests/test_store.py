"""Tests for the SQL document store and the shared query semantics."""
import pytest
import pytest_asyncio
from sqlalchemy import event

from db.connection import build_engine
from db.errors import DocumentStoreError, NotFoundError
from db.repositories import leads as leads_repo
from db.store import SqlDocumentStore, apply_query, apply_search


@pytest_asyncio.fixture
async def traced_store(tmp_path):
    """A SQL store plus the list of SQL statements it sends to the database."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'traced.db'}")
    statements: list[str] = []

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    store = SqlDocumentStore(engine)
    await store.create_all()
    statements.clear()
    yield store, statements
    await store.dispose()


@pytest.mark.asyncio
async def test_create_assigns_id_and_get_returns_doc(sql_store):
    doc_id = await sql_store.create("organisations", {"name": "Acme"})
    doc = await sql_store.get("organisations", doc_id)
    assert doc == {"name": "Acme", "id": doc_id}


@pytest.mark.asyncio
async def test_create_keeps_given_id(sql_store):
    doc_id = await sql_store.create("contacts", {"id": "C1", "email": "a@b.com"})
    assert doc_id == "C1"
    assert (await sql_store.get("contacts", "C1"))["email"] == "a@b.com"


@pytest.mark.asyncio
async def test_get_missing_returns_none(sql_store):
    assert await sql_store.get("leads", "nope") is None


@pytest.mark.asyncio
async def test_same_id_in_different_collections_is_independent(sql_store):
    await sql_store.create("contacts", {"id": "X", "kind": "contact"})
    await sql_store.create("leads", {"id": "X", "kind": "lead"})
    assert (await sql_store.get("contacts", "X"))["kind"] == "contact"
    assert (await sql_store.get("leads", "X"))["kind"] == "lead"


@pytest.mark.asyncio
async def test_update_merges_fields_and_rewrites_arrays_whole(sql_store):
    await sql_store.create("leads", {"id": "L1", "status": "new", "contact_ids": ["C1", "C2"]})
    await sql_store.update("leads", "L1", {"contact_ids": ["C3"]})
    doc = await sql_store.get("leads", "L1")
    assert doc["status"] == "new"
    assert doc["contact_ids"] == ["C3"]


@pytest.mark.asyncio
async def test_update_cannot_change_id(sql_store):
    await sql_store.create("leads", {"id": "L1", "status": "new"})
    await sql_store.update("leads", "L1", {"id": "L2", "status": "contacted"})
    assert await sql_store.get("leads", "L2") is None
    assert (await sql_store.get("leads", "L1"))["status"] == "contacted"


@pytest.mark.asyncio
async def test_update_missing_raises_not_found(sql_store):
    with pytest.raises(NotFoundError) as excinfo:
        await sql_store.update("leads", "ghost", {"status": "new"})
    assert excinfo.value.collection == "leads"
    assert excinfo.value.doc_id == "ghost"


@pytest.mark.asyncio
async def test_non_json_value_is_rejected(sql_store):
    with pytest.raises(DocumentStoreError):
        await sql_store.create("leads", {"id": "L1", "bad": object()})


@pytest.mark.asyncio
async def test_delete_is_idempotent(sql_store):
    await sql_store.create("websites", {"id": "W1", "domain": "acme.com"})
    await sql_store.delete("websites", "W1")
    await sql_store.delete("websites", "W1")
    assert await sql_store.get("websites", "W1") is None


@pytest.mark.asyncio
async def test_query_filters_sorts_and_limits(sql_store):
    await sql_store.create("leads", {"id": "L1", "organisation_id": "O1", "contact_ids": ["C1"], "rank": 2})
    await sql_store.create("leads", {"id": "L2", "organisation_id": "O2", "contact_ids": [], "rank": 1})
    await sql_store.create("leads", {"id": "L3", "organisation_id": "O1", "contact_ids": ["C1", "C2"]})

    by_org = await sql_store.query("leads", [("organisation_id", "==", "O1")], ("rank", "asc"))
    assert [d["id"] for d in by_org] == ["L1", "L3"]

    by_contact = await sql_store.query("leads", [("contact_ids", "array-contains", "C1")])
    assert {d["id"] for d in by_contact} == {"L1", "L3"}

    top = await sql_store.query("leads", None, ("rank", "desc"), limit=1)
    assert [d["id"] for d in top] == ["L1"]


def test_apply_query_missing_sort_field_sorts_last_both_ways():
    docs = [{"id": "a"}, {"id": "b", "n": 2}, {"id": "c", "n": 1}]
    assert [d["id"] for d in apply_query(docs, sort=("n", "asc"))] == ["c", "b", "a"]
    assert [d["id"] for d in apply_query(docs, sort=("n", "desc"))] == ["b", "c", "a"]


def test_apply_query_in_and_not_equal():
    docs = [{"id": "a", "s": "new"}, {"id": "b", "s": "won"}, {"id": "c", "s": "lost"}]
    assert [d["id"] for d in apply_query(docs, [("s", "in", ["new", "lost"])])] == ["a", "c"]
    assert [d["id"] for d in apply_query(docs, [("s", "!=", "won")])] == ["a", "c"]


def test_apply_query_rejects_unknown_operator_and_direction():
    with pytest.raises(ValueError):
        apply_query([{"id": "a"}], [("id", "~=", "a")])
    with pytest.raises(ValueError):
        apply_query([{"id": "a"}], sort=("id", "sideways"))


# ---------------------------------------------------------------------------
# SQL pushdown
# ---------------------------------------------------------------------------


def _selects(statements: list[str]) -> list[str]:
    return [s for s in statements if s.lstrip().upper().startswith("SELECT")]


@pytest.mark.asyncio
async def test_string_filter_sort_and_limit_run_in_sql(traced_store):
    store, statements = traced_store
    for doc_id, org, name in [("L1", "O1", "b"), ("L2", "O2", "a"), ("L3", "O1", "c"), ("L4", "O1", "a")]:
        await store.create("leads", {"id": doc_id, "organisation_id": org, "name": name})
    statements.clear()

    found = await store.query("leads", [("organisation_id", "==", "O1")], ("name", "asc"), limit=2)

    assert [d["id"] for d in found] == ["L4", "L1"]
    (sql,) = _selects(statements)
    assert "json_extract" in sql.lower()
    assert "ORDER BY" in sql.upper()
    assert "LIMIT" in sql.upper()


@pytest.mark.asyncio
async def test_in_filter_runs_in_sql(traced_store):
    store, statements = traced_store
    await store.create("leads", {"id": "L1", "status": "new"})
    await store.create("leads", {"id": "L2", "status": "won"})
    await store.create("leads", {"id": "L3", "status": "lost"})
    statements.clear()

    found = await store.query("leads", [("status", "in", ["new", "lost"])], ("status", "asc"))

    assert [d["id"] for d in found] == ["L3", "L1"]
    assert " IN " in _selects(statements)[0].upper()


@pytest.mark.asyncio
async def test_not_equal_keeps_documents_missing_the_field(sql_store):
    await sql_store.create("leads", {"id": "L1", "status": "new"})
    await sql_store.create("leads", {"id": "L2", "status": "won"})
    await sql_store.create("leads", {"id": "L3"})

    found = await sql_store.query("leads", [("status", "!=", "won")])
    assert {d["id"] for d in found} == {"L1", "L3"}


@pytest.mark.asyncio
async def test_sql_sort_puts_missing_field_last_both_ways(sql_store):
    await sql_store.create("organisations", {"id": "a"})
    await sql_store.create("organisations", {"id": "b", "name": "Beta"})
    await sql_store.create("organisations", {"id": "c", "name": "Alpha"})

    asc = await sql_store.query("organisations", sort=("name", "asc"))
    desc = await sql_store.query("organisations", sort=("name", "desc"))
    assert [d["id"] for d in asc] == ["c", "b", "a"]
    assert [d["id"] for d in desc] == ["b", "c", "a"]


@pytest.mark.asyncio
async def test_array_contains_with_limit_filters_before_truncating(traced_store):
    store, statements = traced_store
    await store.create("leads", {"id": "L1", "contact_ids": []})
    await store.create("leads", {"id": "L2", "contact_ids": ["C1"]})
    await store.create("leads", {"id": "L3", "contact_ids": ["C2", "C1"]})
    statements.clear()

    found = await store.query("leads", [("contact_ids", "array-contains", "C1")], limit=1)

    assert [d["id"] for d in found] == ["L2"]
    assert "LIMIT" not in _selects(statements)[0].upper()


@pytest.mark.asyncio
async def test_non_string_equality_matches_json_type(sql_store):
    await sql_store.create("leads", {"id": "L1", "rank": 1})
    await sql_store.create("leads", {"id": "L2", "rank": "1"})

    found = await sql_store.query("leads", [("rank", "==", 1)])
    assert [d["id"] for d in found] == ["L1"]


@pytest.mark.asyncio
async def test_query_rejects_unknown_operator_and_direction(sql_store):
    with pytest.raises(ValueError):
        await sql_store.query("leads", [("status", "~=", "new")])
    with pytest.raises(ValueError):
        await sql_store.query("leads", sort=("status", "sideways"))


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_uses_like(traced_store):
    store, statements = traced_store
    await store.create("organisations", {"id": "O1", "name": "ACME Corp", "industry": "Retail"})
    await store.create("organisations", {"id": "O2", "name": "Globex", "industry": "acme supplies"})
    await store.create("organisations", {"id": "O3", "name": "Initech"})
    statements.clear()

    found = await store.search("organisations", ("name", "industry"), "Acme", ("name", "asc"))

    assert [d["id"] for d in found] == ["O1", "O2"]
    assert "LIKE" in _selects(statements)[0].upper()


@pytest.mark.asyncio
async def test_search_reads_nested_fields_and_limits(sql_store):
    await leads_repo.create(
        sql_store, {"id": "L1", "contact_person": {"full_name": "Jane Doe", "email": "jane@ACME.com"}}
    )
    await leads_repo.create(
        sql_store, {"id": "L2", "contact_person": {"full_name": "Bob Roe", "email": "bob@acme.com"}}
    )
    await leads_repo.create(
        sql_store, {"id": "L3", "contact_person": {"full_name": "Ann Poe", "email": "ann@globex.com"}}
    )

    hits = await leads_repo.search(sql_store, "acme", limit=10)
    assert {l.id for l in hits} == {"L1", "L2"}
    assert len(await leads_repo.search(sql_store, "acme", limit=1)) == 1


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(sql_store):
    await sql_store.create("organisations", {"id": "O1", "name": "100% Cotton"})
    await sql_store.create("organisations", {"id": "O2", "name": "1000 Cotton"})
    await sql_store.create("organisations", {"id": "O3", "name": "A_B Ltd"})
    await sql_store.create("organisations", {"id": "O4", "name": "AXB Ltd"})

    assert [d["id"] for d in await sql_store.search("organisations", ("name",), "0%")] == ["O1"]
    assert [d["id"] for d in await sql_store.search("organisations", ("name",), "a_b")] == ["O3"]


def test_apply_search_matches_the_sql_search():
    docs = [
        {"id": "a", "name": "ACME", "meta": {"city": "Leeds"}},
        {"id": "b", "name": "Globex", "meta": {"city": "acme town"}},
        {"id": "c", "name": None, "meta": None},
    ]
    assert [d["id"] for d in apply_search(docs, ("name", "meta.city"), "acme")] == ["a", "b"]
    assert [d["id"] for d in apply_search(docs, ("name",), "acme", ("name", "asc"), 1)] == ["a"]
