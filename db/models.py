"""SQLAlchemy 2.0 ORM models for the business console document store.

Every entity collection (organisations, contacts, leads, websites) lives in
one table, keyed by (collection, id), with the entity body held as JSON.
Relationships are fields inside those bodies; there are no foreign keys.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Document(Base):
    """documents — one row per stored entity document."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection_created", "collection", "created_at"),
    )

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
