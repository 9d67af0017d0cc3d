"""Liveness endpoint: process uptime, build commit and cache size. Never calls a provider."""

import time

from fastapi import APIRouter, Depends

from dependencies import AppServices, get_services
from services.weather import FORECAST_FIELDS_VERSION

router = APIRouter(prefix="/api")


@router.get("/health")
async def health(services: AppServices = Depends(get_services)) -> dict:
    return {
        "status": "ok",
        "service": "weather-dashboard-api",
        "uptime": round(time.monotonic() - services.started_at, 3),
        "commit": services.settings.git_sha,
        "cache_entries": len(services.cache),
        "forecast_fields_version": FORECAST_FIELDS_VERSION,
    }
