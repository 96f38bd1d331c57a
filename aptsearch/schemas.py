# aptsearch/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    # upstream API and front end speak camelCase; python code uses snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class ImageAnalysis(CamelModel):
    labels: List[str] = Field(default_factory=list)
    room_type: Optional[str] = None
    natural_light_score: int = Field(0, ge=0, le=10)
    modern_score: int = Field(0, ge=0, le=10)


class DetailedListing(CamelModel):
    id: str = Field(..., max_length=255)
    status: Optional[str] = None
    address: Optional[str] = None
    price: int
    borough: Optional[str] = ""
    neighborhood: Optional[str] = ""
    property_type: Optional[str] = ""
    sqft: Optional[int] = 0
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    amenities: List[str] = Field(default_factory=list)
    description: Optional[str] = ""
    images: List[str] = Field(default_factory=list)
    image_analysis: Optional[Dict[str, ImageAnalysis]] = None
    no_fee: bool = False
    agents: List[str] = Field(default_factory=list)
    available_from: Optional[str] = None
    days_on_market: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("amenities", "images", "agents", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    def needs_image_analysis(self) -> bool:
        return bool(self.images) and not self.image_analysis


class Listing(CamelModel):
    id: str
    price: int
    status: Optional[str] = None
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    url: Optional[str] = None
    details: Optional[DetailedListing] = None


class Pagination(CamelModel):
    count: int = 0
    next_offset: Optional[int] = None


class SearchFilters(CamelModel):
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_baths: Optional[float] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    neighborhoods: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    pet_friendly: bool = False
    no_fee: Optional[bool] = None
    offset: int = Field(0, ge=0)

    @field_validator("min_bedrooms", "max_bedrooms", mode="before")
    @classmethod
    def _studio_is_zero(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "studio":
                return 0
            if value == "":
                return None
        return value


class SearchResponse(CamelModel):
    listings: List[Listing] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    # ids whose enrichment failed and are returned in summary form
    degraded: List[str] = Field(default_factory=list)


class RankResult(CamelModel):
    listings: List[DetailedListing] = Field(default_factory=list)
    ranked: bool = True
    error: Optional[str] = None


class DisplayScores(CamelModel):
    natural_light: int = 0
    modern: int = 0


class PriceUpdate(BaseModel):
    price: int = Field(..., ge=0)


class AnalyzeImageRequest(CamelModel):
    image_url: str = Field(..., min_length=1)


class RankRequest(CamelModel):
    text: str
    listings: List[DetailedListing] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: str
    content: str


class ProcessSearchRequest(CamelModel):
    query: str = Field(..., min_length=1)
    conversation_history: List[ChatMessage] = Field(default_factory=list)


class AdditionalPreferences(CamelModel):
    must_have: List[str] = Field(default_factory=list)
    modern_preference: Optional[bool] = None
    natural_light_preference: Optional[bool] = None
    appliance_preference: Optional[str] = None


class ProcessedPreferences(CamelModel):
    needs_more_info: bool = False
    follow_up_question: Optional[str] = None
    areas: Optional[str] = None
    min_beds: Optional[str] = None
    max_beds: Optional[str] = None
    min_baths: Optional[str] = None
    min_price: Optional[str] = None
    max_price: Optional[str] = None
    no_fee: Optional[str] = None
    additional_preferences: AdditionalPreferences = Field(default_factory=AdditionalPreferences)

    def to_filters(self) -> SearchFilters:
        def _num(value):
            if value is None or str(value).strip() == "":
                return None
            return str(value).strip()

        return SearchFilters(
            min_bedrooms=_num(self.min_beds),
            max_bedrooms=_num(self.max_beds),
            min_baths=_num(self.min_baths),
            min_price=_num(self.min_price),
            max_price=_num(self.max_price),
            neighborhoods=[a.strip() for a in (self.areas or "").split(",") if a.strip()],
            amenities=list(self.additional_preferences.must_have),
            no_fee=None if self.no_fee is None else str(self.no_fee).lower() == "true",
        )


class ConversationalSearchResponse(CamelModel):
    preferences: ProcessedPreferences
    results: Optional[SearchResponse] = None
