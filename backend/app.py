"""App factory and uvicorn entry point for the weather dashboard API."""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Callable

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, settings as default_settings
from dependencies import AppServices
from errors import rate_limited_response, register_error_handlers
from services.cache import ResponseCache
from services.rate_limit import RateLimiter, client_address

# Structured logging: JSON for production, human-readable for local
if default_settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    cache_timer: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the app and its per-app services.

    Pass ``http_client`` to reuse a caller-owned client (tests inject one
    backed by ``httpx.MockTransport``); otherwise one is opened for the
    lifetime of the app.
    """
    settings = settings or default_settings

    services = AppServices(
        settings=settings,
        cache=ResponseCache(settings.cache_ttl_seconds, settings.cache_max_entries, timer=cache_timer),
        started_at=time.monotonic(),
        http_client=http_client,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (provider calls will fail): %s", ", ".join(missing))

        owns_client = services.http_client is None
        if owns_client:
            services.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        try:
            yield
        finally:
            if owns_client:
                await services.http_client.aclose()
                services.http_client = None

    app = FastAPI(title="Weather Dashboard API", version="1.0.0", lifespan=lifespan)
    app.state.services = services

    # Rate limiting (fixed window per client IP, checked before any handler runs)
    limiter = RateLimiter(settings.rate_limit)

    @app.middleware("http")
    async def enforce_rate_limit(request: Request, call_next):
        if limiter.is_exempt(request):
            return await call_next(request)
        key = client_address(request)
        if not limiter.hit(key):
            logger.info("Rate limit exceeded for %s on %s", key, request.url.path)
            return rate_limited_response(
                str(limiter.limit), limiter.retry_after(key), production=settings.is_production
            )
        return await call_next(request)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app, production=settings.is_production)

    from routes.admin import router as admin_router
    from routes.health import router as health_router
    from routes.weather import router as weather_router

    app.include_router(health_router)
    app.include_router(weather_router)
    app.include_router(admin_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    ssl_options = {}
    if default_settings.https_enabled:
        ssl_options = {
            "ssl_certfile": default_settings.ssl_cert_path,
            "ssl_keyfile": default_settings.ssl_key_path,
        }
    scheme = "https" if ssl_options else "http"
    logger.info("Server listening at %s://%s:%d", scheme, default_settings.host, default_settings.port)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port, **ssl_options)
