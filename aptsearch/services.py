# aptsearch/services.py
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple
from .enrichment import EnrichmentPipeline
from .errors import EnrichmentError
from .schemas import Listing, Pagination, SearchFilters, SearchResponse
from .streeteasy import StreetEasyClient, filters_to_params
from .utils import logger


def _has_amenity(listing: Listing, wanted: str) -> bool:
    wanted = wanted.lower()
    return any(wanted in a.lower() for a in listing.details.amenities)


def matches_preferences(listing: Listing, filters: SearchFilters) -> bool:
    """Client-side checks the search endpoint cannot express."""
    wants_amenities = bool(filters.amenities)
    if not wants_amenities and not filters.pet_friendly:
        return True
    # without details there is nothing to check the criteria against
    if listing.details is None:
        return False
    if wants_amenities and not all(_has_amenity(listing, a) for a in filters.amenities):
        return False
    if filters.pet_friendly and not _has_amenity(listing, "pet friendly"):
        return False
    return True


def filter_listings_by_preferences(listings: List[Listing], filters: SearchFilters) -> List[Listing]:
    return [l for l in listings if matches_preferences(l, filters)]


class SearchService:
    def __init__(self, listings_client: StreetEasyClient, pipeline: EnrichmentPipeline, max_workers: int = 8):
        self.listings_client = listings_client
        self.pipeline = pipeline
        self.max_workers = max(1, max_workers)

    def _enrich(self, listing: Listing) -> Tuple[Listing, Optional[str]]:
        try:
            details = self.pipeline.get_rental_by_id(listing.id, listing.price)
        except EnrichmentError as e:
            logger.error("Error fetching details for listing %s: %s", listing.id, e)
            return listing, str(e)
        except Exception as e:
            logger.exception("Unexpected error enriching listing %s", listing.id)
            return listing, str(e)
        return listing.model_copy(update={"details": details}), None

    def search(self, filters: SearchFilters) -> SearchResponse:
        page = self.listings_client.search_rentals(filters_to_params(filters))
        if page.listings:
            workers = min(self.max_workers, len(page.listings))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                enriched = list(pool.map(self._enrich, page.listings))
        else:
            enriched = []

        degraded = [l.id for l, err in enriched if err is not None]
        listings = filter_listings_by_preferences([l for l, _ in enriched], filters)
        logger.info("Search returned %d listings, %d after filtering, %d without details",
                    len(page.listings), len(listings), len(degraded))
        return SearchResponse(
            listings=listings,
            pagination=Pagination(count=len(listings), next_offset=page.pagination.next_offset),
            degraded=degraded,
        )
