# dealership/services/crud.py
"""
Query helpers shared by the entity services: soft-delete filtering,
escaped LIKE search, whitelisted sorting, pagination, and mapping
unique-index violations to 409 Conflict.
"""

import math
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from dealership.exceptions import ConflictError, NotFoundError
from dealership.utils.logger import get_logger

logger = get_logger(__name__)


def active(query: Query, model) -> Query:
    """Exclude soft-deleted rows."""
    return query.filter(model.deleted_at.is_(None))


def get_active(db: Session, model, record_id: int, label: str = None):
    """Fetch a non-deleted row by id or raise NotFoundError."""
    record = active(db.query(model), model).filter(model.id == record_id).first()
    if record is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return record


def like_pattern(text: str) -> str:
    """Substring pattern with LIKE wildcards in the user's text escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def ilike(column, text: str):
    return column.ilike(like_pattern(text), escape="\\")


def apply_sort(query: Query, model, sort_by, sort_order: str, allowed: set, default: list) -> Query:
    """
    Order by a whitelisted column. Unknown or missing sort_by falls back
    to the entity's default ordering.
    """
    if sort_by and sort_by in allowed:
        column = getattr(model, sort_by)
        return query.order_by(column.asc() if sort_order == "asc" else column.desc())
    return query.order_by(*default)


def paginate(query: Query, page: int, limit: int):
    """Returns (items, pagination dict)."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def stamp_created(record, actor_id: int):
    now = datetime.utcnow()
    record.created_at = now
    record.updated_at = now
    record.created_by = actor_id
    record.updated_by = actor_id


def stamp_updated(record, actor_id: int):
    record.updated_at = datetime.utcnow()
    record.updated_by = actor_id


def apply_changes(record, changes: dict) -> dict:
    """Set changed attributes on record; returns {field: [old, new]} for the ones that differ."""
    diff = {}
    for field, value in changes.items():
        old = getattr(record, field)
        if old != value:
            diff[field] = [old, value]
            setattr(record, field, value)
    return diff


def _conflicting_field(exc: IntegrityError, unique_fields: dict):
    message = str(exc.orig).lower()
    for column, label in unique_fields.items():
        if column in message:
            return column, label
    return None, None


@contextmanager
def unique_guard(db: Session, unique_fields: dict, entity: str):
    """
    Wrap a flush/commit so a unique-index violation surfaces as ConflictError.
    unique_fields maps column name → human label, e.g. {"vin": "VIN"}.
    """
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        column, label = _conflicting_field(exc, unique_fields)
        logger.info(f"[{entity.upper()}] Unique violation on {column or 'unknown column'}: {exc.orig}")
        if column is None:
            raise ConflictError(f"{entity} conflicts with an existing record")
        raise ConflictError(f"{entity} with this {label} already exists", details={"field": column})
