"""Helpers shared by the entity repositories."""
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

ModelT = TypeVar("ModelT", bound=BaseModel)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def to_document(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert models, datetimes and nested structures to JSON-safe values."""
    return to_jsonable_python(fields)


def validated_patch(model: type[ModelT], current: ModelT, fields: dict[str, Any]) -> dict[str, Any]:
    """Return fields as a JSON-safe patch, stamped with updated_at.

    Raises pydantic.ValidationError (a ValueError) if the document that
    results from applying the patch to current would not validate, so a
    bad patch is never written.
    """
    patch = to_document({k: v for k, v in fields.items() if k != "id"})
    patch["updated_at"] = utc_now_iso()
    model.model_validate({**current.model_dump(mode="json"), **patch})
    return patch
