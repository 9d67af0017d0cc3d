"""OpenCage geocoding client.

Turns free-text place names into a de-duplicated list of locations with
coordinates and an IANA timezone the forecast endpoint can use.
"""

import logging

import httpx
from pydantic import BaseModel

from config import Settings
from errors import ProviderNotConfiguredError
from services.upstream import get_json

logger = logging.getLogger(__name__)

PROVIDER = "OpenCage"

# OpenCage uses 402 for an exhausted daily quota and 429 for too many req/s
RATE_LIMIT_STATUSES = (402, 429)

# Settlement components in preference order
CITY_COMPONENTS = ("city", "town", "village", "hamlet")


class Geometry(BaseModel):
    lat: float
    lng: float


class GeocodeResult(BaseModel):
    formatted: str
    city: str | None = None
    state: str | None = None
    county: str | None = None
    country: str | None = None
    timezone: str = ""
    geometry: Geometry
    flag: str | None = None


class GeocodeResponse(BaseModel):
    results: list[GeocodeResult]


def normalize_result(raw: dict) -> GeocodeResult:
    """Map one raw OpenCage result onto a GeocodeResult."""
    components = raw.get("components") or {}
    annotations = raw.get("annotations") or {}
    geometry = raw.get("geometry") or {}

    timezone = (annotations.get("timezone") or {}).get("name")
    if not timezone:
        logger.warning("No timezone annotation for %r, using empty string", raw.get("formatted"))
        timezone = ""

    city = next((components[c] for c in CITY_COMPONENTS if components.get(c)), None)

    return GeocodeResult(
        formatted=raw.get("formatted", ""),
        city=city,
        state=components.get("state"),
        county=components.get("county"),
        country=components.get("country"),
        timezone=timezone,
        geometry=Geometry(lat=geometry["lat"], lng=geometry["lng"]),
        flag=annotations.get("flag"),
    )


def dedupe_results(results: list[GeocodeResult]) -> list[GeocodeResult]:
    """Drop repeated (formatted, lat, lng) entries, keeping first-seen order."""
    seen: set[tuple[str, float, float]] = set()
    unique = []
    for result in results:
        identity = (result.formatted, result.geometry.lat, result.geometry.lng)
        if identity in seen:
            continue
        seen.add(identity)
        unique.append(result)
    return unique


async def search(client: httpx.AsyncClient, settings: Settings, query: str) -> list[GeocodeResult]:
    """Geocode a free-text query. No matches is an empty list, not an error."""
    if not settings.opencage_api_key:
        raise ProviderNotConfiguredError(PROVIDER, "OPENCAGE_API_KEY")

    data = await get_json(
        client,
        PROVIDER,
        settings.opencage_url,
        params={"q": query, "key": settings.opencage_api_key, "no_annotations": 0},
        rate_limit_statuses=RATE_LIMIT_STATUSES,
    )

    raw_results = data.get("results") or []
    results = [normalize_result(raw) for raw in raw_results if raw.get("geometry")]
    unique = dedupe_results(results)
    logger.info("Geocoded %r: %d results (%d duplicates dropped)", query, len(unique), len(results) - len(unique))
    return unique
