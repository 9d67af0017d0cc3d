"""Shared outbound HTTP call for the upstream providers.

Maps transport failures and non-2xx responses onto ``UpstreamError``.
No retries: a failed call is reported to the caller immediately.
"""

import logging

import httpx

from errors import UpstreamError, UpstreamRateLimitedError

logger = logging.getLogger(__name__)


def _provider_message(resp: httpx.Response) -> str:
    """Pull a human-readable message out of a provider error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase

    if isinstance(body, dict):
        # OpenCage: {"status": {"code": 401, "message": "..."}}
        status = body.get("status")
        if isinstance(status, dict) and status.get("message"):
            return str(status["message"])
        # Unsplash: {"errors": ["..."]}
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        # Open-Meteo: {"error": true, "reason": "..."}
        if body.get("reason"):
            return str(body["reason"])
    return resp.reason_phrase


async def get_json(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    params: dict | None = None,
    headers: dict | None = None,
    rate_limit_statuses: tuple[int, ...] = (429,),
) -> dict:
    """GET ``url`` and return the decoded JSON body."""
    try:
        resp = await client.get(url, params=params, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("%s request failed: %s", provider, e)
        raise UpstreamError(provider, str(e) or type(e).__name__) from e

    if resp.status_code in rate_limit_statuses:
        message = _provider_message(resp)
        logger.warning("%s rate limited (HTTP %d): %s", provider, resp.status_code, message)
        raise UpstreamRateLimitedError(provider, message, upstream_status=resp.status_code)

    if resp.is_error:
        message = _provider_message(resp)
        logger.warning("%s returned HTTP %d: %s", provider, resp.status_code, message)
        raise UpstreamError(provider, message, upstream_status=resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamError(provider, "Unexpected response format") from e
