# aptsearch/api/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from .. import crud, schemas
from ..embeddings import EmbeddingRanker
from ..enrichment import EnrichmentPipeline
from ..errors import NotFoundError
from ..preferences import PreferenceExtractor
from ..scoring import listing_display_scores
from ..services import SearchService
from ..utils import logger
from ..vision import ImageAnalyzer

router = APIRouter()


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def get_pipeline(request: Request) -> EnrichmentPipeline:
    return request.app.state.pipeline


def get_analyzer(request: Request) -> ImageAnalyzer:
    return request.app.state.image_analyzer


def get_ranker(request: Request) -> EmbeddingRanker:
    return request.app.state.ranker


def get_extractor(request: Request) -> PreferenceExtractor:
    return request.app.state.preference_extractor


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/listings/{listing_id}")
def get_listing(listing_id: str, db: Session = Depends(get_db)):
    listing = crud.get_listing(db, listing_id)
    if not listing:
        return {"found": False}
    return {"found": True, "listing": listing.model_dump(mode="json", by_alias=True)}


@router.post("/listings")
def upsert_listing(payload: schemas.DetailedListing, db: Session = Depends(get_db)):
    crud.upsert_listing(db, payload)
    return {"success": True}


@router.patch("/listings/{listing_id}", response_model=schemas.DetailedListing)
def update_price(listing_id: str, payload: schemas.PriceUpdate, db: Session = Depends(get_db)):
    obj = crud.update_price(db, listing_id, payload.price)
    if not obj:
        raise NotFoundError(f"Listing {listing_id} not found")
    return obj


@router.get("/listings/{listing_id}/scores", response_model=schemas.DisplayScores)
def listing_scores(listing_id: str, db: Session = Depends(get_db)):
    listing = crud.get_listing(db, listing_id)
    if not listing:
        raise NotFoundError(f"Listing {listing_id} not found")
    return listing_display_scores(listing)


@router.get("/rentals/{listing_id}", response_model=schemas.DetailedListing)
def get_rental(
    listing_id: str,
    current_price: Optional[int] = Query(None, alias="currentPrice"),
    pipeline: EnrichmentPipeline = Depends(get_pipeline),
):
    return pipeline.get_rental_by_id(listing_id, current_price)


@router.post("/listings/search", response_model=schemas.SearchResponse)
def search_listings(filters: schemas.SearchFilters, service: SearchService = Depends(get_search_service)):
    return service.search(filters)


@router.post("/analyze-image", response_model=schemas.ImageAnalysis)
def analyze_image(payload: schemas.AnalyzeImageRequest, analyzer: ImageAnalyzer = Depends(get_analyzer)):
    return analyzer.analyze(payload.image_url)


@router.post("/embeddings", response_model=schemas.RankResult)
def rank_listings(payload: schemas.RankRequest, ranker: EmbeddingRanker = Depends(get_ranker)):
    return ranker.rank(payload.text, payload.listings)


@router.post("/process-search", response_model=schemas.ProcessedPreferences)
def process_search(payload: schemas.ProcessSearchRequest, extractor: PreferenceExtractor = Depends(get_extractor)):
    return extractor.process(payload.query, payload.conversation_history)


@router.post("/process-search/listings", response_model=schemas.ConversationalSearchResponse)
def conversational_search(
    payload: schemas.ProcessSearchRequest,
    extractor: PreferenceExtractor = Depends(get_extractor),
    service: SearchService = Depends(get_search_service),
):
    prefs = extractor.process(payload.query, payload.conversation_history)
    if prefs.needs_more_info:
        return schemas.ConversationalSearchResponse(preferences=prefs)
    return schemas.ConversationalSearchResponse(preferences=prefs, results=service.search(prefs.to_filters()))


@router.post("/clear-cache")
def clear_cache(request: Request, db: Session = Depends(get_db)):
    if not request.app.state.settings.allow_cache_clear:
        raise HTTPException(status_code=403, detail="Cache clearing is disabled")
    removed = crud.clear_all(db)
    logger.warning("Cleared listing cache (%d records)", removed)
    return {"success": True, "message": "Cache cleared successfully", "removed": removed}
