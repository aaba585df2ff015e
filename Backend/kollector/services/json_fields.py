"""
Helpers for the JSON text columns on MusicRelease.

Artists and genres are stored as compact JSON arrays of ids ("[3,17]") rather
than join tables, and purchase info, images, links and media are stored as
JSON documents. Everything that reads or filters those columns goes through
this module so the encoding stays in one place.
"""
import json
import logging
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)

T = TypeVar("T")


def dump_ids(ids: Optional[Iterable[int]]) -> Optional[str]:
    """Encode ids as a compact JSON array, or None when there are none."""
    if not ids:
        return None
    values = [int(i) for i in ids]
    if not values:
        return None
    return json.dumps(values, separators=(",", ":"))


def load_ids(raw: Optional[str]) -> List[int]:
    """Decode a JSON id array. Bad data is logged and treated as empty."""
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed id array: {raw!r}")
        return []
    if not isinstance(data, list):
        logger.warning(f"Expected a JSON array of ids, got: {raw!r}")
        return []
    ids = []
    for value in data:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            logger.warning(f"Skipping non-integer id {value!r} in {raw!r}")
    return ids


def id_array_contains(column, entity_id: int) -> ColumnElement:
    """
    Build a clause that is true when the JSON id array in `column` holds
    `entity_id` as a whole element.

    A plain substring match would let id 1 match "[12]", so the four shapes a
    compact array can take around one element are matched explicitly:
    the only element, the first, the last, or somewhere in the middle.
    """
    value = int(entity_id)
    return and_(
        column.isnot(None),
        or_(
            column == f"[{value}]",
            column.like(f"[{value},%"),
            column.like(f"%,{value}]"),
            column.like(f"%,{value},%"),
        ),
    )


def dump_document(value: Any) -> Optional[str]:
    """Serialize a pydantic model (or list of them) for a JSON text column."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump_json(exclude_none=True)
    if isinstance(value, list):
        if not value:
            return None
        return json.dumps([
            item.model_dump(mode="json", exclude_none=True) if isinstance(item, BaseModel) else item
            for item in value
        ])
    return json.dumps(value)


def load_document(raw: Optional[str], model: Type[T]) -> Optional[T]:
    """
    Parse a JSON text column into `model` (a pydantic model or a typing form
    such as List[Link]). Returns None when the column is empty or invalid.
    """
    if raw is None or not raw.strip():
        return None
    try:
        return TypeAdapter(model).validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Could not parse stored {getattr(model, '__name__', model)}: {e}")
        return None
