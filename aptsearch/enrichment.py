# aptsearch/enrichment.py
"""Cache-or-fetch enrichment of a single rental id.

The listing store acts as a cache in front of the StreetEasy detail endpoint.
A cached record is refreshed when the caller has seen a different price, or
when it has photos but no image analysis yet. A record fetched for the first
time is stored as-is; its photos are analysed on a later stale hit unless
``analyze_on_first_fetch`` is set.
"""
from typing import Dict, List, Optional
from .crud import get_listing, update_price, upsert_listing
from .errors import AnalysisError, CollaboratorError, DatabaseError, EnrichmentError
from .schemas import DetailedListing, ImageAnalysis
from .utils import logger


class EnrichmentPipeline:
    def __init__(self, session_factory, listings_client, image_analyzer, analyze_on_first_fetch=False):
        self.session_factory = session_factory
        self.listings_client = listings_client
        self.image_analyzer = image_analyzer
        self.analyze_on_first_fetch = analyze_on_first_fetch

    def analyze_images(self, images: List[str]) -> Dict[str, ImageAnalysis]:
        results: Dict[str, ImageAnalysis] = {}
        for image_url in images:
            try:
                results[image_url] = self.image_analyzer.analyze(image_url)
            except AnalysisError as e:
                logger.error("Error analyzing image %s: %s", image_url, e)
        return results

    def _lookup(self, db, listing_id: str) -> Optional[DetailedListing]:
        try:
            return get_listing(db, listing_id)
        except DatabaseError as e:
            logger.error("Error checking database for %s: %s", listing_id, e)
            return None

    def _save(self, db, listing: DetailedListing):
        try:
            upsert_listing(db, listing)
        except DatabaseError as e:
            logger.error("Error saving listing %s to database: %s", listing.id, e)

    def _refresh(self, db, cached: DetailedListing, new_price: Optional[int], needs_analysis: bool) -> DetailedListing:
        updates = {}
        if new_price is not None:
            logger.info("Updating price for listing %s from %s to %s", cached.id, cached.price, new_price)
            updates["price"] = new_price
        if needs_analysis:
            logger.info("Adding missing image analysis for cached listing %s", cached.id)
            updates["image_analysis"] = self.analyze_images(cached.images)
        updated = cached.model_copy(update=updates)

        if needs_analysis:
            self._save(db, updated)
        else:
            try:
                update_price(db, cached.id, new_price)
            except DatabaseError as e:
                logger.error("Error updating price of listing %s: %s", cached.id, e)
        return updated

    def _fetch(self, db, listing_id: str) -> DetailedListing:
        try:
            listing = self.listings_client.get_rental(listing_id)
        except CollaboratorError as e:
            raise EnrichmentError(f"could not fetch details for listing {listing_id}: {e}") from e
        if self.analyze_on_first_fetch and listing.needs_image_analysis():
            listing = listing.model_copy(update={"image_analysis": self.analyze_images(listing.images)})
        self._save(db, listing)
        logger.info("Saved new listing to database: %s", listing_id)
        return listing

    def get_rental_by_id(self, listing_id: str, current_price: Optional[int] = None) -> DetailedListing:
        with self.session_factory() as db:
            cached = self._lookup(db, listing_id)
            if cached is None:
                return self._fetch(db, listing_id)

            new_price = current_price if current_price is not None and current_price != cached.price else None
            needs_analysis = cached.needs_image_analysis()
            if new_price is None and not needs_analysis:
                return cached
            return self._refresh(db, cached, new_price, needs_analysis)
