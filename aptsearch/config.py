# aptsearch/config.py
"""Process-wide settings.

Settings are read from the environment (and an optional ``.env`` file) once at
start-up and handed to every adapter explicitly. Construction fails fast when a
required variable is missing.
"""
import os
from typing import Mapping, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

REQUIRED_VARS = ("POSTGRES_URL", "STREETEASY_API_KEY", "OPENAI_API_KEY", "GOOGLE_VISION_API_KEY")


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_url: str
    streeteasy_api_key: str
    openai_api_key: str
    google_vision_api_key: str

    streeteasy_host: str = "streeteasy-api.p.rapidapi.com"
    vision_endpoint: str = "https://vision.googleapis.com/v1/images:annotate"
    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-4"
    http_timeout: float = 15.0
    enrichment_workers: int = 8
    db_pool_size: int = 5
    db_max_overflow: int = 10
    log_level: str = "INFO"
    analyze_on_first_fetch: bool = False
    allow_cache_clear: bool = False

    @property
    def streeteasy_base_url(self) -> str:
        return f"https://{self.streeteasy_host}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        missing = [name for name in REQUIRED_VARS if not environ.get(name)]
        if missing:
            raise RuntimeError(f"{', '.join(missing)} not set")

        return cls(
            database_url=normalize_database_url(environ["POSTGRES_URL"]),
            streeteasy_api_key=environ["STREETEASY_API_KEY"],
            openai_api_key=environ["OPENAI_API_KEY"],
            google_vision_api_key=environ["GOOGLE_VISION_API_KEY"],
            streeteasy_host=environ.get("STREETEASY_HOST", "streeteasy-api.p.rapidapi.com"),
            vision_endpoint=environ.get("VISION_ENDPOINT", "https://vision.googleapis.com/v1/images:annotate"),
            embedding_model=environ.get("EMBEDDING_MODEL", "text-embedding-3-small"),
            chat_model=environ.get("CHAT_MODEL", "gpt-4"),
            http_timeout=float(environ.get("HTTP_TIMEOUT", 15)),
            enrichment_workers=int(environ.get("ENRICHMENT_WORKERS", 8)),
            db_pool_size=int(environ.get("DB_POOL_SIZE", 5)),
            db_max_overflow=int(environ.get("DB_MAX_OVERFLOW", 10)),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
            analyze_on_first_fetch=_flag(environ.get("ANALYZE_ON_FIRST_FETCH")),
            allow_cache_clear=_flag(environ.get("ALLOW_CACHE_CLEAR")),
        )
