"""Open-Meteo forecast lookup for a coordinate pair.

Free API, no key required. The payload is returned verbatim; only the
field selection and unit system are decided here.
"""

import logging

import httpx

from config import Settings
from services.upstream import get_json

logger = logging.getLogger(__name__)

PROVIDER = "Open-Meteo"

# Bump when the field lists change; reported by /api/health so clients can
# tell payload shapes apart
FORECAST_FIELDS_VERSION = 2

CURRENT_FIELDS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "is_day",
    "precipitation",
    "rain",
    "showers",
    "snowfall",
    "weather_code",
    "cloud_cover",
    "pressure_msl",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
]

HOURLY_FIELDS = [
    "temperature_2m",
    "relative_humidity_2m",
    "dew_point_2m",
    "apparent_temperature",
    "precipitation_probability",
    "precipitation",
    "rain",
    "showers",
    "snowfall",
    "weather_code",
    "pressure_msl",
    "surface_pressure",
    "cloud_cover",
    "visibility",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "uv_index",
    "is_day",
]

DAILY_FIELDS = [
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "apparent_temperature_max",
    "apparent_temperature_min",
    "sunrise",
    "sunset",
    "daylight_duration",
    "sunshine_duration",
    "uv_index_max",
    "precipitation_sum",
    "rain_sum",
    "showers_sum",
    "snowfall_sum",
    "precipitation_hours",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "wind_direction_10m_dominant",
]

IMPERIAL_UNITS = {
    "temperature_unit": "fahrenheit",
    "wind_speed_unit": "mph",
    "precipitation_unit": "inch",
}


def forecast_params(latitude: float, longitude: float, timezone: str, metric: bool = True) -> dict:
    """Query parameters for one forecast request."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "timezone": timezone,
        "current": ",".join(CURRENT_FIELDS),
        "hourly": ",".join(HOURLY_FIELDS),
        "daily": ",".join(DAILY_FIELDS),
        "forecast_days": 7,
    }
    if not metric:
        params.update(IMPERIAL_UNITS)
    return params


async def get_forecast(
    client: httpx.AsyncClient,
    settings: Settings,
    latitude: float,
    longitude: float,
    timezone: str,
) -> dict:
    """Fetch current/hourly/daily forecast for one location."""
    params = forecast_params(latitude, longitude, timezone, metric=settings.is_metric)
    data = await get_json(client, PROVIDER, settings.open_meteo_url, params=params)
    logger.info("Fetched forecast for %s,%s (%s, %s)", latitude, longitude, timezone, settings.weather_units)
    return data
