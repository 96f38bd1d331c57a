# aptsearch/main.py
"""FastAPI application factory.

Run with ``uvicorn aptsearch.main:create_app --factory``.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from openai import OpenAI
from .api.routes import router as api_router
from .config import Settings
from .db import Base, make_engine, make_session_factory
from .embeddings import EmbeddingRanker
from .enrichment import EnrichmentPipeline
from .errors import AptSearchError
from .preferences import PreferenceExtractor
from .services import SearchService
from .streeteasy import StreetEasyClient
from .utils import configure_logging, logger
from .vision import ImageAnalyzer
from . import models  # noqa: F401 ensure models are imported so tables are known


def build_services(settings: Settings, session_factory):
    """Wire every collaborator adapter from one settings object."""
    listings_client = StreetEasyClient(
        settings.streeteasy_api_key, host=settings.streeteasy_host, timeout=settings.http_timeout
    )
    image_analyzer = ImageAnalyzer(
        settings.google_vision_api_key, endpoint=settings.vision_endpoint, timeout=settings.http_timeout
    )
    openai_client = OpenAI(api_key=settings.openai_api_key, timeout=settings.http_timeout)
    pipeline = EnrichmentPipeline(
        session_factory, listings_client, image_analyzer,
        analyze_on_first_fetch=settings.analyze_on_first_fetch,
    )
    return {
        "image_analyzer": image_analyzer,
        "pipeline": pipeline,
        "search_service": SearchService(listings_client, pipeline, max_workers=settings.enrichment_workers),
        "ranker": EmbeddingRanker(openai_client, model=settings.embedding_model),
        "preference_extractor": PreferenceExtractor(openai_client, model=settings.chat_model),
    }


def create_app(settings: Settings = None, engine=None, services=None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    engine = engine or make_engine(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    session_factory = make_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure database tables are created on startup
        Base.metadata.create_all(bind=engine)
        yield

    app = FastAPI(title="aptsearch", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    for name, service in (services or build_services(settings, session_factory)).items():
        setattr(app.state, name, service)
    app.include_router(api_router)

    @app.exception_handler(AptSearchError)
    async def handle_aptsearch_error(request: Request, exc: AptSearchError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": str(exc)})

    return app
