# aptsearch/scoring.py
"""Per-listing display scores derived from the stored image analysis.

Scores are recomputed on every read and never persisted, so the weights
below can change without touching cached listings.
"""
from typing import Dict, Optional
from .schemas import DetailedListing, DisplayScores, ImageAnalysis
from .utils import round_half_up

KITCHEN_MODERN_BOOST = 1.5
NON_KITCHEN_MODERN_FACTOR = 0.8
LIGHT_PHOTO_COUNT = 4
LIGHT_WEIGHTS = (1.5, 1.2, 1, 1)
LIGHT_NORMALIZER = 1.2
LIGHT_BOOST = 1.3


def modern_display_score(analyses) -> int:
    analyses = list(analyses)
    if not analyses:
        return 0
    kitchens = [a for a in analyses if (a.room_type or "").lower() == "kitchen"]
    if kitchens:
        best = max(a.modern_score for a in kitchens) * KITCHEN_MODERN_BOOST
    else:
        best = max(a.modern_score * NON_KITCHEN_MODERN_FACTOR for a in analyses)
    return min(10, round_half_up(best))


def natural_light_display_score(analyses) -> int:
    # the brightest photos count more than the rest
    best = sorted((a.natural_light_score for a in analyses), reverse=True)[:LIGHT_PHOTO_COUNT]
    if not best:
        return 0
    weighted = sum(score * LIGHT_WEIGHTS[i] for i, score in enumerate(best))
    return min(10, round_half_up(weighted / (len(best) * LIGHT_NORMALIZER) * LIGHT_BOOST))


def display_scores(image_analysis: Optional[Dict[str, ImageAnalysis]]) -> DisplayScores:
    analyses = list((image_analysis or {}).values())
    return DisplayScores(
        natural_light=natural_light_display_score(analyses),
        modern=modern_display_score(analyses),
    )


def listing_display_scores(listing: DetailedListing) -> DisplayScores:
    return display_scores(listing.image_analysis)
