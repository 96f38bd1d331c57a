# aptsearch/streeteasy.py
"""Client for the StreetEasy rentals API (served through RapidAPI)."""
from typing import Any, Dict, List
import requests
from pydantic import BaseModel, Field, ValidationError
from .errors import CollaboratorError
from .schemas import DetailedListing, Listing, Pagination, SearchFilters
from .utils import logger, retry

DEFAULT_SEARCH_PARAMS = {
    "areas": "all-downtown,all-midtown",
    "minPrice": "0",
    "maxPrice": "10000",
    "minBeds": "0",
    "maxBeds": "10",
    "minBaths": "1",
    "noFee": "false",
    "limit": "15",
    "offset": "0",
}


class RentalSearchPage(BaseModel):
    listings: List[Listing] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


def _param(value, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def filters_to_params(filters: SearchFilters) -> Dict[str, str]:
    """Translate search filters into query parameters, defaulting every unset field."""
    return {
        "areas": ",".join(filters.neighborhoods) if filters.neighborhoods else DEFAULT_SEARCH_PARAMS["areas"],
        "minPrice": _param(filters.min_price, DEFAULT_SEARCH_PARAMS["minPrice"]),
        "maxPrice": _param(filters.max_price, DEFAULT_SEARCH_PARAMS["maxPrice"]),
        "minBeds": _param(filters.min_bedrooms, DEFAULT_SEARCH_PARAMS["minBeds"]),
        "maxBeds": _param(filters.max_bedrooms, DEFAULT_SEARCH_PARAMS["maxBeds"]),
        "minBaths": _param(filters.min_baths, DEFAULT_SEARCH_PARAMS["minBaths"]),
        "noFee": DEFAULT_SEARCH_PARAMS["noFee"] if filters.no_fee is None else str(filters.no_fee).lower(),
        "limit": DEFAULT_SEARCH_PARAMS["limit"],
        "offset": str(filters.offset),
    }


class StreetEasyClient:
    def __init__(self, api_key, host="streeteasy-api.p.rapidapi.com", timeout=15.0, session=None):
        if not api_key:
            raise ValueError("StreetEasy API key is missing.")
        self.host = host
        self.base_url = f"https://{host}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "x-rapidapi-host": host,
            "x-rapidapi-key": api_key,
        }

    @retry((requests.ConnectionError, requests.Timeout), tries=3, delay=1, backoff=2)
    def _get(self, path: str, params: Dict[str, str] = None) -> Any:
        resp = self.session.get(f"{self.base_url}{path}", headers=self.headers, params=params, timeout=self.timeout)
        if resp.status_code >= 400:
            raise CollaboratorError(f"StreetEasy {path} returned {resp.status_code}")
        return resp.json()

    def _call(self, path: str, params: Dict[str, str] = None) -> Any:
        try:
            return self._get(path, params)
        except ValueError as e:
            raise CollaboratorError(f"StreetEasy {path} returned invalid JSON") from e
        except requests.RequestException as e:
            raise CollaboratorError(f"StreetEasy {path} unreachable: {e}") from e

    def search_rentals(self, params: Dict[str, str]) -> RentalSearchPage:
        logger.info("Fetching listings with params: %s", params)
        data = self._call("/rentals/search", params)
        try:
            return RentalSearchPage.model_validate(data)
        except ValidationError as e:
            raise CollaboratorError(f"malformed StreetEasy search response: {e}") from e

    def get_rental(self, listing_id: str) -> DetailedListing:
        data = self._call(f"/rentals/{listing_id}")
        if isinstance(data, dict) and not data.get("id"):
            data = {**data, "id": listing_id}
        try:
            return DetailedListing.model_validate(data)
        except ValidationError as e:
            raise CollaboratorError(f"malformed StreetEasy rental {listing_id}: {e}") from e
