# aptsearch/vision.py
"""Image analysis for listing photos.

``ImageAnalyzer`` asks the Google Cloud Vision REST API for labels, dominant
colours and localized objects in a single ``images:annotate`` call, and
``score_annotations`` turns those into a room type plus natural-light and
modern scores on a 0-10 scale.
"""
from typing import Any, Dict, Iterable, List, Optional
import requests
from .errors import AnalysisError
from .schemas import ImageAnalysis
from .utils import logger, retry, round_half_up, clamp

ROOM_TYPES = (
    "bedroom", "bathroom", "kitchen", "living room", "dining room",
    "office", "closet", "laundry room",
)

WINDOW_QUALITY_INDICATORS = {
    "large": ("large window", "floor to ceiling", "panoramic", "bay window"),
    "standard": ("window", "daylight"),
    "small": ("small window",),
}

WINDOW_QUALITY_SCORES = {
    "large": 4,
    "standard": 2.5,
    "small": 1,
}

MODERN_FEATURE_SCORES = {
    "appliances": {
        "stainless steel appliance": 2,
        "smart appliance": 2,
        "new appliance": 1.5,
        "modern appliance": 1.5,
        "updated kitchen": 1,
    },
    "flooring": {
        "hardwood floor": 1.5,
        "modern flooring": 1,
        "new flooring": 1,
    },
    "fixtures": {
        "recessed lighting": 1,
        "led lighting": 1,
        "modern light fixture": 0.8,
        "modern hardware": 0.8,
        "modern door": 0.7,
    },
}

MODERN_OBJECT_KEYWORDS = ("modern", "new", "stainless")
MODERN_OBJECT_SCORE = 0.5

VISION_FEATURES = [
    {"type": "LABEL_DETECTION"},
    {"type": "IMAGE_PROPERTIES"},
    {"type": "OBJECT_LOCALIZATION"},
]


def detect_room_type(labels: List[str]) -> Optional[str]:
    for room in ROOM_TYPES:
        if any(room in label for label in labels):
            return room
    return None


def _window_quality(label: str) -> Optional[str]:
    if not any(ind in label for inds in WINDOW_QUALITY_INDICATORS.values() for ind in inds):
        return None
    if any(ind in label for ind in WINDOW_QUALITY_INDICATORS["large"]):
        return "large"
    if any(ind in label for ind in WINDOW_QUALITY_INDICATORS["small"]):
        return "small"
    return "standard"


def average_brightness(colors: Iterable[Dict[str, Any]]) -> float:
    """Mean perceived luminance (0-1) of the dominant colours, 0 when none."""
    values = []
    for info in colors:
        color = (info or {}).get("color") or {}
        r = color.get("red") or 0
        g = color.get("green") or 0
        b = color.get("blue") or 0
        values.append((0.299 * r + 0.587 * g + 0.114 * b) / 255)
    if not values:
        return 0.0
    return sum(values) / len(values)


def natural_light_score(labels: List[str], colors: Iterable[Dict[str, Any]]) -> int:
    score = 0.0
    for label in labels:
        quality = _window_quality(label)
        if quality:
            score += WINDOW_QUALITY_SCORES[quality]
    score += average_brightness(colors) * 2
    return clamp(round_half_up(score))


def modern_score(labels: List[str], objects: Iterable[Dict[str, Any]]) -> int:
    score = 0.0
    for features in MODERN_FEATURE_SCORES.values():
        for feature, points in features.items():
            if any(feature in label for label in labels):
                score += points
    for obj in objects:
        name = str((obj or {}).get("name") or "").lower()
        if any(keyword in name for keyword in MODERN_OBJECT_KEYWORDS):
            score += MODERN_OBJECT_SCORE
    return clamp(round_half_up(score))


def score_annotations(labels, colors=(), objects=()) -> ImageAnalysis:
    labels = [str(label or "").lower() for label in labels]
    colors = list(colors)
    return ImageAnalysis(
        labels=labels,
        room_type=detect_room_type(labels),
        natural_light_score=natural_light_score(labels, colors),
        modern_score=modern_score(labels, objects),
    )


class ImageAnalyzer:
    def __init__(self, api_key, endpoint="https://vision.googleapis.com/v1/images:annotate",
                 timeout=15.0, session=None):
        if not api_key:
            raise ValueError("Google Vision API key is missing.")
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry((requests.ConnectionError, requests.Timeout), tries=3, delay=1, backoff=2)
    def _annotate(self, image_url: str) -> Dict[str, Any]:
        body = {
            "requests": [{
                "image": {"source": {"imageUri": image_url}},
                "features": VISION_FEATURES,
            }]
        }
        resp = self.session.post(self.endpoint, params={"key": self.api_key}, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise AnalysisError(f"vision API returned {resp.status_code} for {image_url}")
        return resp.json()

    def analyze(self, image_url: str) -> ImageAnalysis:
        try:
            payload = self._annotate(image_url)
        except ValueError as e:
            raise AnalysisError(f"vision API returned invalid JSON for {image_url}") from e
        except requests.RequestException as e:
            raise AnalysisError(f"vision API unreachable for {image_url}: {e}") from e

        try:
            result = payload["responses"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise AnalysisError(f"malformed vision response for {image_url}") from e
        if not isinstance(result, dict):
            raise AnalysisError(f"malformed vision response for {image_url}")
        error = result.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise AnalysisError(f"vision API error for {image_url}: {message}")

        try:
            labels = [a.get("description") for a in result.get("labelAnnotations") or []]
            colors = ((result.get("imagePropertiesAnnotation") or {}).get("dominantColors") or {}).get("colors") or []
            objects = result.get("localizedObjectAnnotations") or []
            analysis = score_annotations(labels, colors, objects)
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            raise AnalysisError(f"malformed vision response for {image_url}: {e}") from e
        logger.debug("Analyzed %s: room=%s light=%s modern=%s", image_url,
                     analysis.room_type, analysis.natural_light_score, analysis.modern_score)
        return analysis
