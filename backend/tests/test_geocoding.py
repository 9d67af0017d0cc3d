"""Tests for OpenCage result mapping and the geocoding client."""

import logging

import httpx
import pytest

from errors import ProviderNotConfiguredError, UpstreamError, UpstreamRateLimitedError
from services.geocoding import GeocodeResult, Geometry, dedupe_results, normalize_result, search


def make_raw(formatted, lat, lng, timezone="Europe/London", flag="🇫🇷", **components):
    annotations = {"flag": flag}
    if timezone is not None:
        annotations["timezone"] = {"name": timezone, "offset_sec": 0}
    return {
        "formatted": formatted,
        "geometry": {"lat": lat, "lng": lng},
        "components": components,
        "annotations": annotations,
    }


def test_normalize_result_maps_components_and_annotations():
    raw = make_raw("Paris, France", 48.8566, 2.3522, timezone="Europe/Paris", city="Paris", state="Île-de-France", country="France")
    result = normalize_result(raw)

    assert result.formatted == "Paris, France"
    assert result.city == "Paris"
    assert result.state == "Île-de-France"
    assert result.country == "France"
    assert result.county is None
    assert result.timezone == "Europe/Paris"
    assert result.geometry == Geometry(lat=48.8566, lng=2.3522)
    assert result.flag == "🇫🇷"


def test_normalize_result_falls_back_to_town():
    raw = make_raw("Hay-on-Wye, Wales", 52.07, -3.12, town="Hay-on-Wye")
    assert normalize_result(raw).city == "Hay-on-Wye"


def test_missing_timezone_becomes_empty_string(caplog):
    raw = make_raw("Null Island", 0.0, 0.0, timezone=None)
    with caplog.at_level(logging.WARNING, logger="services.geocoding"):
        result = normalize_result(raw)

    assert result.timezone == ""
    assert "No timezone annotation" in caplog.text


def test_dedupe_keeps_first_seen_order():
    a = GeocodeResult(formatted="A", geometry=Geometry(lat=1, lng=1), city="first")
    b = GeocodeResult(formatted="B", geometry=Geometry(lat=2, lng=2))
    a_again = GeocodeResult(formatted="A", geometry=Geometry(lat=1, lng=1), city="second")
    a_elsewhere = GeocodeResult(formatted="A", geometry=Geometry(lat=1, lng=1.5))

    unique = dedupe_results([a, b, a_again, a_elsewhere])

    assert [(r.formatted, r.geometry.lng) for r in unique] == [("A", 1), ("B", 2), ("A", 1.5)]
    assert unique[0].city == "first"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_sends_key_and_dedupes(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        raw = make_raw("Springfield, USA", 39.8, -89.6, timezone="America/Chicago")
        return httpx.Response(200, json={"results": [raw, raw]})

    async with _client(handler) as client:
        results = await search(client, settings, "Springfield")

    assert seen["params"]["q"] == "Springfield"
    assert seen["params"]["key"] == "test-opencage-key"
    assert len(results) == 1
    assert results[0].timezone == "America/Chicago"


@pytest.mark.asyncio
async def test_search_with_no_matches_returns_empty_list(settings):
    async with _client(lambda r: httpx.Response(200, json={"results": []})) as client:
        assert await search(client, settings, "zzzzqqq") == []


@pytest.mark.asyncio
async def test_search_without_api_key_fails_fast(settings):
    settings.opencage_api_key = None
    async with _client(lambda r: httpx.Response(200, json={"results": []})) as client:
        with pytest.raises(ProviderNotConfiguredError):
            await search(client, settings, "London")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [402, 429])
async def test_quota_exhaustion_is_rate_limited(settings, status):
    body = {"status": {"code": status, "message": "quota exceeded"}, "results": []}
    async with _client(lambda r: httpx.Response(status, json=body)) as client:
        with pytest.raises(UpstreamRateLimitedError) as exc_info:
            await search(client, settings, "London")

    assert exc_info.value.status_code == 429
    assert exc_info.value.details == "quota exceeded"


@pytest.mark.asyncio
async def test_invalid_key_is_upstream_error(settings):
    body = {"status": {"code": 401, "message": "invalid API key"}}
    async with _client(lambda r: httpx.Response(401, json=body)) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await search(client, settings, "London")

    assert exc_info.value.status_code == 500
    assert exc_info.value.upstream_status == 401
    assert exc_info.value.details == "invalid API key"
