"""Document store client — create/get/update/delete/query/search over named collections.

The store has no joins and no multi-document transactions: every call runs
in its own session. Array fields are never patched element-wise; callers
rewrite them wholesale through update().

Filters are (field, op, value) triples with op one of "==", "!=", "in",
"array-contains". Sort is (field, "asc" | "desc"); documents missing the
sort field come last regardless of direction. Search fields may name a
nested value with a dotted path ("contact_person.email").
"""
import json
import logging
import uuid
from typing import Any, Iterable, Optional, Protocol, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from db.connection import get_engine, session_scope
from db.errors import DocumentStoreError, NotFoundError
from db.models import Base, Document

logger = logging.getLogger(__name__)

Filter = tuple[str, str, Any]
Sort = tuple[str, str]

FILTER_OPS = ("==", "!=", "in", "array-contains")


class DocumentStore(Protocol):
    async def create(self, collection: str, doc: dict[str, Any]) -> str: ...

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]: ...

    async def search(
        self,
        collection: str,
        fields: Sequence[str],
        term: str,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]: ...


def new_document_id() -> str:
    return uuid.uuid4().hex


def _check_filter(flt: Filter) -> None:
    if flt[1] not in FILTER_OPS:
        raise ValueError(f"Unsupported filter operator {flt[1]!r}; expected one of {FILTER_OPS}")


def _check_sort(sort: Sort) -> None:
    if sort[1] not in ("asc", "desc"):
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got {sort[1]!r}")


def field_value(doc: dict[str, Any], path: str) -> Any:
    """Look up a possibly dotted field path; None when any step is missing."""
    value: Any = doc
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _matches(doc: dict[str, Any], flt: Filter) -> bool:
    _check_filter(flt)
    field, op, value = flt
    actual = doc.get(field)
    if op == "==":
        return actual == value
    if op == "!=":
        return actual != value
    if op == "in":
        return actual in value
    return isinstance(actual, list) and value in actual


def apply_query(
    docs: Iterable[dict[str, Any]],
    filters: Optional[Sequence[Filter]] = None,
    sort: Optional[Sort] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Filter, sort and truncate already-loaded documents."""
    out = [d for d in docs if all(_matches(d, f) for f in filters or ())]
    if sort is not None:
        _check_sort(sort)
        field, direction = sort
        present = [d for d in out if d.get(field) is not None]
        missing = [d for d in out if d.get(field) is None]
        present.sort(key=lambda d: d[field], reverse=direction == "desc")
        out = present + missing
    if limit is not None:
        out = out[:limit]
    return out


def matches_term(term: str, values: Iterable[Any]) -> bool:
    """Case-insensitive substring match of term against any non-empty string value."""
    needle = term.lower()
    return any(needle in value.lower() for value in values if isinstance(value, str) and value)


def apply_search(
    docs: Iterable[dict[str, Any]],
    fields: Sequence[str],
    term: str,
    sort: Optional[Sort] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Search already-loaded documents the way SqlDocumentStore.search does in SQL."""
    hits = [d for d in docs if matches_term(term, (field_value(d, f) for f in fields))]
    return apply_query(hits, None, sort, limit)


def _ensure_serialisable(collection: str, fields: dict[str, Any]) -> None:
    try:
        json.dumps(fields)
    except (TypeError, ValueError) as exc:
        raise DocumentStoreError(
            f"Cannot store non-JSON value in {collection}: {exc}"
        ) from exc


def _json_text(path: str):
    """The value at a (dotted) field path as a SQL text expression."""
    keys = tuple(path.split("."))
    element = Document.data[keys[0]] if len(keys) == 1 else Document.data[keys]
    return element.as_string()


def _sql_predicate(flt: Filter):
    """Translate a filter to SQL, or None when it must run in Python.

    Only string comparisons are pushed down; JSON text extraction cannot
    tell a number from its string form. array-contains has no portable
    operator across PostgreSQL json and SQLite.
    """
    _check_filter(flt)
    field, op, value = flt
    column = _json_text(field)
    if op == "==" and isinstance(value, str):
        return column == value
    if op == "!=" and isinstance(value, str):
        return or_(column.is_(None), column != value)
    if op == "in" and value and all(isinstance(v, str) for v in value):
        return column.in_(list(value))
    return None


def _sort_clauses(sort: Optional[Sort]) -> list:
    tiebreak = [Document.created_at, Document.id]
    if sort is None:
        return tiebreak
    _check_sort(sort)
    field, direction = sort
    column = _json_text(field)
    ordered = column.desc() if direction == "desc" else column.asc()
    # missing values last in both directions
    return [column.is_(None), ordered, *tiebreak]


class SqlDocumentStore:
    """DocumentStore backed by the documents table via SQLAlchemy asyncio.

    String filters, sort and limit become SQL. Sort compares values as
    text, which orders the ISO timestamps and names used as sort keys.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_env(cls) -> "SqlDocumentStore":
        """Build a store from DATABASE_URL (see db.connection)."""
        return cls(get_engine())

    async def create_all(self) -> None:
        """Create the documents table. Development convenience; use Alembic in production."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def create(self, collection: str, doc: dict[str, Any]) -> str:
        data = dict(doc)
        doc_id = str(data.pop("id", None) or new_document_id())
        _ensure_serialisable(collection, data)
        async with session_scope(self._session_factory) as session:
            session.add(Document(collection=collection, id=doc_id, data=data))
        logger.debug("Created %s/%s", collection, doc_id)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        async with session_scope(self._session_factory) as session:
            row = await session.get(Document, (collection, doc_id))
            if row is None:
                return None
            return {**row.data, "id": row.id}

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        patch = {k: v for k, v in fields.items() if k != "id"}
        _ensure_serialisable(collection, patch)
        async with session_scope(self._session_factory) as session:
            row = await session.get(Document, (collection, doc_id))
            if row is None:
                raise NotFoundError(collection, doc_id)
            # JSON columns do not track in-place mutation; assign a new dict.
            row.data = {**row.data, **patch}
        logger.debug("Updated %s/%s fields=%s", collection, doc_id, sorted(patch))

    async def delete(self, collection: str, doc_id: str) -> None:
        async with session_scope(self._session_factory) as session:
            await session.execute(
                delete(Document)
                .where(Document.collection == collection)
                .where(Document.id == doc_id)
            )
        logger.debug("Deleted %s/%s", collection, doc_id)

    async def _select(self, stmt) -> list[dict[str, Any]]:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return [{**row.data, "id": row.id} for row in result.scalars().all()]

    async def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        stmt = select(Document).where(Document.collection == collection)
        residual: list[Filter] = []
        for flt in filters or ():
            clause = _sql_predicate(flt)
            if clause is None:
                residual.append(flt)
            else:
                stmt = stmt.where(clause)
        stmt = stmt.order_by(*_sort_clauses(sort))
        if limit is not None and not residual:
            stmt = stmt.limit(limit)
        docs = await self._select(stmt)
        if residual:
            return apply_query(docs, residual, None, limit)
        return docs

    async def search(
        self,
        collection: str,
        fields: Sequence[str],
        term: str,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Case-insensitive substring match (ILIKE) of term against any of fields."""
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .where(or_(*(_json_text(f).icontains(term, autoescape=True) for f in fields)))
            .order_by(*_sort_clauses(sort))
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._select(stmt)

    async def dispose(self) -> None:
        await self._engine.dispose()
