"""Request-scoped access to the per-app services stored on ``app.state``."""

from dataclasses import dataclass

import httpx
from fastapi import Request

from config import Settings
from services.cache import ResponseCache


@dataclass
class AppServices:
    settings: Settings
    cache: ResponseCache
    started_at: float
    http_client: httpx.AsyncClient | None = None


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.services.cache


def get_http_client(request: Request) -> httpx.AsyncClient:
    services: AppServices = request.app.state.services
    if services.http_client is None:
        raise RuntimeError("HTTP client is not running (app lifespan not started)")
    return services.http_client
