# aptsearch/preferences.py
"""Turn a free-text apartment description into search filters.

The chat model is asked for a JSON object; friendly area names in its reply
are expanded into StreetEasy area codes before the result is handed back.
"""
import json
from typing import Dict, Iterable, List
from openai import OpenAI, OpenAIError
from pydantic import ValidationError
from .errors import CollaboratorError
from .schemas import ChatMessage, ProcessedPreferences
from .utils import logger

NEIGHBORHOOD_GROUPS: Dict[str, List[str]] = {
    "manhattan": [
        "roosevelt-island", "financial-district", "tribeca", "soho", "little-italy",
        "lower-east-side", "chinatown", "battery-park-city", "gramercy-park",
        "chelsea", "west-chelsea", "greenwich-village", "east-village", "west-village",
        "flatiron", "nomad", "nolita", "midtown", "central-park-south", "midtown-south",
        "midtown-east", "murray-hill", "kips-bay", "midtown-west", "hells-kitchen",
        "upper-west-side", "lincoln-square", "upper-east-side", "lenox-hill", "yorkville",
        "carnegie-hill", "morningside-heights", "hamilton-heights", "washington-heights",
        "inwood", "central-harlem", "east-harlem", "south-harlem",
    ],
    "brooklyn": [
        "greenpoint", "williamsburg", "east-williamsburg", "downtown-brooklyn",
        "fort-greene", "brooklyn-heights", "boerum-hill", "dumbo", "bedford-stuyvesant",
        "bushwick", "red-hook", "park-slope", "gowanus", "carroll-gardens", "cobble-hill",
        "sunset-park", "windsor-terrace", "crown-heights", "prospect-heights", "clinton-hill",
    ],
    "queens": [
        "astoria", "long-island-city", "sunnyside", "woodside", "jackson-heights",
        "forest-hills", "flushing", "ridgewood",
    ],
    "bronx": ["mott-haven", "riverdale", "concourse", "fordham", "pelham-bay", "morris-park", "woodlawn"],
    "staten-island": ["saint-george", "tompkinsville", "stapleton"],
    "downtown": [
        "financial-district", "tribeca", "soho", "little-italy", "lower-east-side",
        "chinatown", "battery-park-city", "west-village", "east-village", "nolita",
    ],
    "midtown": [
        "chelsea", "gramercy-park", "flatiron", "nomad", "midtown", "midtown-south",
        "midtown-east", "murray-hill", "kips-bay", "midtown-west", "hells-kitchen",
    ],
    "upper-manhattan": [
        "upper-west-side", "upper-east-side", "morningside-heights",
        "hamilton-heights", "washington-heights", "inwood", "central-harlem", "east-harlem",
    ],
}

# "Downtown Manhattan" is offered to users but the group is keyed "downtown"
AREA_ALIASES = {"downtown-manhattan": "downtown"}

USER_FRIENDLY_AREAS = [
    "Manhattan", "Brooklyn", "Queens", "Bronx", "Staten Island",
    "Downtown Manhattan", "Midtown", "Upper Manhattan",
    "East Village", "West Village", "Lower East Side", "Upper East Side", "Upper West Side",
    "Chelsea", "Tribeca", "SoHo", "Financial District",
    "Williamsburg", "Bushwick", "Greenpoint", "DUMBO", "Park Slope",
    "Astoria", "Long Island City", "Forest Hills",
]

_KNOWN_CODES = {code for codes in NEIGHBORHOOD_GROUPS.values() for code in codes}

SYSTEM_PROMPT = """You are a helpful NYC apartment search assistant.
You must ALWAYS respond with a valid JSON object and nothing else, in this format:
{
  "needsMoreInfo": boolean,
  "followUpQuestion": string (if needsMoreInfo is true),
  "areas": string (comma-separated area names),
  "minBeds": string (optional),
  "maxBeds": string (optional),
  "minBaths": string (optional),
  "minPrice": string (optional),
  "maxPrice": string (optional),
  "noFee": string (optional),
  "additionalPreferences": {
    "mustHave": string[],
    "modernPreference": boolean (optional),
    "naturalLightPreference": boolean (optional),
    "appliancePreference": "new" | "any" (optional)
  }
}
Valid areas: %s.
If the area, price or bedrooms are missing, set needsMoreInfo to true and ask a natural follow-up question."""


def expand_area(area: str) -> List[str]:
    normalized = "-".join(area.lower().split())
    normalized = AREA_ALIASES.get(normalized, normalized)
    if normalized in _KNOWN_CODES:
        return [normalized]
    return list(NEIGHBORHOOD_GROUPS.get(normalized, []))


def expand_areas(areas: Iterable[str]) -> List[str]:
    codes: List[str] = []
    for area in areas:
        for code in expand_area(area.strip()):
            if code not in codes:
                codes.append(code)
    return codes


class PreferenceExtractor:
    def __init__(self, client: OpenAI, model: str = "gpt-4", temperature: float = 0.1):
        self.client = client
        self.model = model
        self.temperature = temperature

    def _messages(self, query: str, history: List[ChatMessage]):
        messages = [{"role": "system", "content": SYSTEM_PROMPT % ", ".join(USER_FRIENDLY_AREAS)}]
        messages.extend(m.model_dump() for m in history)
        messages.append({"role": "user", "content": query})
        return messages

    def process(self, query: str, history: List[ChatMessage] = ()) -> ProcessedPreferences:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(query, list(history)),
                temperature=self.temperature,
            )
            content = completion.choices[0].message.content
        except (OpenAIError, IndexError, AttributeError) as e:
            raise CollaboratorError(f"preference extraction failed: {e}") from e
        if not content:
            raise CollaboratorError("No response from the chat model")

        try:
            prefs = ProcessedPreferences.model_validate(json.loads(content))
        except (ValueError, ValidationError) as e:
            logger.warning("Unparseable preference reply: %s", content[:200])
            raise CollaboratorError(f"chat model returned malformed preferences: {e}") from e

        if prefs.areas:
            prefs = prefs.model_copy(update={"areas": ",".join(expand_areas(prefs.areas.split(",")))})
        return prefs
