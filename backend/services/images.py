"""Unsplash client for dashboard background images."""

import logging

import httpx

from config import Settings
from errors import ProviderNotConfiguredError, UpstreamError, UpstreamRateLimitedError
from services.upstream import get_json

logger = logging.getLogger(__name__)

PROVIDER = "Unsplash"


async def get_random_image(client: httpx.AsyncClient, settings: Settings, query: str) -> dict:
    """Return metadata for one random landscape photo matching ``query``."""
    if not settings.unsplash_access_key:
        raise ProviderNotConfiguredError(PROVIDER, "UNSPLASH_ACCESS_KEY")

    try:
        data = await get_json(
            client,
            PROVIDER,
            settings.unsplash_url,
            params={"query": query, "orientation": "landscape", "content_filter": "high"},
            headers={"Authorization": f"Client-ID {settings.unsplash_access_key}", "Accept-Version": "v1"},
        )
    except UpstreamError as e:
        # Unsplash reports an exhausted hourly quota as 403 "Rate Limit Exceeded"
        if e.upstream_status == 403 and "rate limit" in (e.details or "").lower():
            raise UpstreamRateLimitedError(PROVIDER, e.details, upstream_status=403) from e
        raise

    if isinstance(data, dict) and data.get("errors"):
        raise UpstreamError(PROVIDER, "; ".join(str(err) for err in data["errors"]))

    # count=N returns a list; we only ever ask for one photo
    if isinstance(data, list):
        if not data:
            raise UpstreamError(PROVIDER, f"No images found for {query!r}")
        data = data[0]

    logger.info("Fetched background image %s for %r", data.get("id"), query)
    return data
