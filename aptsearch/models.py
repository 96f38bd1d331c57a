# aptsearch/models.py
"""SQLAlchemy ORM models for persisted entities.

``DetailedListingRecord`` is the listing cache: one row per StreetEasy rental
id. Composite fields live in JSON columns (JSONB on PostgreSQL).
"""
from sqlalchemy import Column, Integer, Text, Float, Boolean, JSON, TIMESTAMP, func, Index
from sqlalchemy.dialects.postgresql import JSONB
from .db import Base

JSONColumn = JSON().with_variant(JSONB(), "postgresql")


class DetailedListingRecord(Base):
    __tablename__ = "detailed_listings"
    id = Column(Text, primary_key=True)
    status = Column(Text)
    address = Column(Text)
    price = Column(Integer, nullable=False)
    borough = Column(Text, default="")
    neighborhood = Column(Text, default="")
    property_type = Column(Text, default="")
    sqft = Column(Integer, default=0)
    bedrooms = Column(Integer)
    bathrooms = Column(Float)
    amenities = Column(JSONColumn, nullable=False, default=list)
    description = Column(Text, default="")
    images = Column(JSONColumn, nullable=False, default=list)
    image_analysis = Column(JSONColumn)
    no_fee = Column(Boolean, default=False)
    agents = Column(JSONColumn, nullable=False, default=list)
    available_from = Column(Text)
    days_on_market = Column(Integer)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

Index("idx_detailed_listings_price", DetailedListingRecord.price)
