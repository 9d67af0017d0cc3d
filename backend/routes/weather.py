"""Proxy routes for the geocoding, forecast and image providers.

Each handler: validate (FastAPI query constraints) → cache lookup →
upstream call → cache store. Failures become error envelopes in errors.py.
"""

import logging
from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from fastapi import APIRouter, Depends, Query
from pydantic import AfterValidator

from config import Settings
from dependencies import get_cache, get_http_client, get_settings
from services import geocoding, images, weather
from services.cache import ResponseCache, make_key
from services.presentation import HOUR_CHOICES, build_dashboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _check_timezone(timezone: str) -> str:
    timezone = timezone.strip()
    if timezone == "auto":
        return timezone
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise ValueError(f"unknown IANA timezone {timezone!r}") from None
    return timezone


def _search_text(query: str) -> str:
    text = query.strip()
    if len(text) < 2:
        raise ValueError("String should have at least 2 non-blank characters")
    return text


# Checked alongside the other query parameters so one 400 lists every bad field
Latitude = Annotated[float, Query(ge=-90, le=90, description="Latitude in decimal degrees")]
Longitude = Annotated[float, Query(ge=-180, le=180, description="Longitude in decimal degrees")]
Timezone = Annotated[
    str,
    Query(min_length=1, description="IANA timezone, e.g. Europe/London"),
    AfterValidator(_check_timezone),
]
SearchText = Annotated[str, AfterValidator(_search_text)]


async def _cached_forecast(
    cache: ResponseCache,
    client: httpx.AsyncClient,
    settings: Settings,
    latitude: float,
    longitude: float,
    timezone: str,
) -> dict:
    key = make_key("/api/weather", latitude, longitude, timezone)
    cached = cache.get(key)
    if cached is not None:
        return cached

    data = await weather.get_forecast(client, settings, latitude, longitude, timezone)
    cache.set(key, data)
    return data


@router.get("/geocode", response_model=geocoding.GeocodeResponse)
async def geocode(
    query: Annotated[SearchText, Query(min_length=2, description="Free-text place name")],
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Location suggestions for a search string."""
    key = make_key("/api/geocode", query)
    cached = cache.get(key)
    if cached is not None:
        return cached

    results = await geocoding.search(client, settings, query)
    payload = {"results": [r.model_dump() for r in results]}
    cache.set(key, payload)
    return payload


@router.get("/weather")
async def forecast(
    latitude: Latitude,
    longitude: Longitude,
    timezone: Timezone,
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Current, hourly and daily forecast, passed through from Open-Meteo."""
    return await _cached_forecast(cache, client, settings, latitude, longitude, timezone)


@router.get("/unsplash")
async def background_image(
    query: Annotated[SearchText, Query(min_length=2, description="Image search text")],
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """One random landscape photo. Never cached: each call should vary."""
    return await images.get_random_image(client, settings, query)


@router.get("/dashboard")
async def dashboard(
    latitude: Latitude,
    longitude: Longitude,
    timezone: Timezone,
    location: str = Query("", description="Display name for the location"),
    units: Literal["metric", "imperial"] = Query("metric"),
    hours: int = Query(HOUR_CHOICES[0], ge=HOUR_CHOICES[0], le=HOUR_CHOICES[-1]),
    cache: ResponseCache = Depends(get_cache),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Display-ready forecast: converted units, icons, next ``hours`` hours."""
    data = await _cached_forecast(cache, client, settings, latitude, longitude, timezone)
    return build_dashboard(data, location or timezone, metric=units == "metric", hours=hours)
