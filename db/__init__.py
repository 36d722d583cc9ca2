"""Database package for the business console."""
from db.connection import dispose_engine, get_engine
from db.errors import DocumentStoreError, NotFoundError
from db.store import DocumentStore, SqlDocumentStore

__all__ = [
    "get_engine",
    "dispose_engine",
    "DocumentStore",
    "SqlDocumentStore",
    "NotFoundError",
    "DocumentStoreError",
]
