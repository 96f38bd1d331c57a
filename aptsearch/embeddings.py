# aptsearch/embeddings.py
import math
from typing import List, Sequence
from openai import OpenAI
from .schemas import DetailedListing, RankResult
from .utils import logger


def _fmt(value) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def listing_to_text(listing: DetailedListing) -> str:
    """Flatten a listing into the text that gets embedded for ranking."""
    features = [
        f"{_fmt(listing.bedrooms)} bedroom",
        f"{_fmt(listing.bathrooms)} bathroom",
        f"{listing.sqft} square feet" if listing.sqft else "",
        listing.property_type or "",
        listing.neighborhood or "",
        listing.borough or "",
        "no fee" if listing.no_fee else "fee",
        listing.description or "",
        *listing.amenities,
    ]
    return " ".join(f for f in features if f)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if not norm_a or not norm_b:
        return 0.0
    return dot / (norm_a * norm_b)


class EmbeddingRanker:
    def __init__(self, client: OpenAI, model: str = "text-embedding-3-small"):
        self.client = client
        self.model = model

    def embed(self, texts: List[str]) -> List[List[float]]:
        resp = self.client.embeddings.create(model=self.model, input=texts)
        vectors = [d.embedding for d in sorted(resp.data, key=lambda d: d.index)]
        if len(vectors) != len(texts):
            raise ValueError(f"expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors

    def rank(self, query: str, listings: List[DetailedListing]) -> RankResult:
        listings = list(listings)
        if not listings:
            return RankResult(listings=[], ranked=True)
        try:
            vectors = self.embed([query] + [listing_to_text(l) for l in listings])
        except Exception as e:
            # ranking is best-effort; callers still get every listing back
            logger.error("Error ranking %d listings: %s", len(listings), e)
            return RankResult(listings=listings, ranked=False, error=str(e))

        query_vec, listing_vecs = vectors[0], vectors[1:]
        scored = [(cosine_similarity(query_vec, vec), l) for vec, l in zip(listing_vecs, listings)]
        # sorted() is stable, so ties keep their input order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return RankResult(listings=[l for _, l in scored], ranked=True)
