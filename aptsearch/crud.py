# aptsearch/crud.py
"""Listing store operations for cached ``DetailedListing`` records.

Provides point lookup, an idempotent upsert keyed on the listing id, a
partial price update and a bulk clear. SQLAlchemy failures are re-raised as
``DatabaseError``; a lookup miss returns ``None``.
"""
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from .errors import DatabaseError
from .models import DetailedListingRecord
from .schemas import DetailedListing

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}
_TIMESTAMPS = ("created_at", "updated_at")


def _to_row(listing: DetailedListing) -> Dict[str, Any]:
    return listing.model_dump(mode="json", exclude=set(_TIMESTAMPS))


def _to_schema(obj: DetailedListingRecord) -> DetailedListing:
    data = {c.name: getattr(obj, c.name) for c in DetailedListingRecord.__table__.columns}
    return DetailedListing.model_validate(data)


def upsert_listing(db: Session, listing: DetailedListing):
    table = DetailedListingRecord.__table__
    data = _to_row(listing)
    insert = _INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        raise DatabaseError(f"upsert not supported on {db.get_bind().dialect.name}")
    stmt = insert(table).values(**data)
    # copy all updatable columns from EXCLUDED, but override timestamps
    excluded = {c.name: stmt.excluded[c.name] for c in table.columns if c.name not in ("id",) + _TIMESTAMPS}
    # a record without analysis must not wipe out a stored one
    if data.get("image_analysis") is None:
        excluded.pop("image_analysis")
    excluded["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=excluded)
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError(f"failed to upsert listing {listing.id}: {e}") from e


def get_listing(db: Session, listing_id: str) -> Optional[DetailedListing]:
    try:
        obj = db.get(DetailedListingRecord, listing_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError(f"failed to read listing {listing_id}: {e}") from e
    if not obj:
        return None
    return _to_schema(obj)


def update_price(db: Session, listing_id: str, price: int) -> Optional[DetailedListing]:
    try:
        obj = db.get(DetailedListingRecord, listing_id)
        if not obj:
            return None
        obj.price = price
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError(f"failed to update price of listing {listing_id}: {e}") from e
    return _to_schema(obj)


def clear_all(db: Session) -> int:
    try:
        result = db.execute(delete(DetailedListingRecord))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError(f"failed to clear listing cache: {e}") from e
    return result.rowcount
