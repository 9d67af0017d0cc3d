"""Display helpers: unit conversion, weather code mapping, hourly windows.

Pure functions with no I/O. The ``convert_*`` helpers take metric input (the
Open-Meteo default) and produce imperial values; the ``*_to_metric`` helpers
go the other way for payloads fetched in imperial units.
"""

from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

# Conversion factors for metric to imperial units
KMH_PER_MPH = 1.60934
MM_PER_INCH = 25.4
INHG_PER_HPA = 0.02953
METRES_PER_MILE = 1609.344
METRES_PER_FOOT = 0.3048
FEET_PER_MILE = 5280

UNKNOWN_ICON = 999
UNKNOWN_DESCRIPTION = "Unknown"

HOUR_CHOICES = (12, 18, 24, 30, 36, 42, 48)
MIN_HOURS, MAX_HOURS = HOUR_CHOICES[0], HOUR_CHOICES[-1]

# WMO weather interpretation codes
WEATHER_DESCRIPTIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Drizzle: Light intensity",
    53: "Drizzle: Moderate intensity",
    55: "Drizzle: Dense intensity",
    56: "Freezing Drizzle: Light intensity",
    57: "Freezing Drizzle: Dense intensity",
    61: "Rain: Slight intensity",
    63: "Rain: Moderate intensity",
    65: "Rain: Heavy intensity",
    66: "Freezing Rain: Light intensity",
    67: "Freezing Rain: Heavy intensity",
    71: "Snow fall: Slight intensity",
    73: "Snow fall: Moderate intensity",
    75: "Snow fall: Heavy intensity",
    77: "Snow grains",
    80: "Rain showers: Slight intensity",
    81: "Rain showers: Moderate intensity",
    82: "Rain showers: Violent intensity",
    85: "Snow showers: Slight intensity",
    86: "Snow showers: Heavy intensity",
    95: "Thunderstorm: Slight or moderate",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

# WMO code -> QWeather icon (day, night)
WMO_TO_QWEATHER = {
    0: (100, 150),
    1: (101, 151),
    2: (103, 153),
    3: (104, 104),
    45: (501, 501),
    48: (501, 501),
    51: (305, 305),
    53: (306, 306),
    55: (307, 307),
    56: (310, 310),
    57: (311, 311),
    61: (305, 305),
    63: (306, 306),
    65: (307, 307),
    66: (310, 310),
    67: (311, 311),
    71: (400, 400),
    73: (401, 401),
    75: (402, 402),
    77: (403, 403),
    80: (300, 300),
    81: (301, 301),
    82: (302, 302),
    85: (404, 404),
    86: (405, 405),
    95: (302, 302),
    96: (308, 308),
    99: (308, 308),
}


def convert_temperature(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def convert_speed(kmh: float) -> float:
    return kmh / KMH_PER_MPH


def convert_precipitation(mm: float) -> float:
    return mm / MM_PER_INCH


def convert_pressure(hpa: float) -> float:
    return hpa * INHG_PER_HPA


def convert_visibility_to_km(metres: float) -> float:
    return metres / 1000


def convert_visibility_to_miles(metres: float) -> float:
    return metres / METRES_PER_MILE


def temperature_to_metric(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def speed_to_metric(mph: float) -> float:
    return mph * KMH_PER_MPH


def precipitation_to_metric(inches: float) -> float:
    return inches * MM_PER_INCH


def feet_to_km(feet: float) -> float:
    return feet * METRES_PER_FOOT / 1000


def feet_to_miles(feet: float) -> float:
    return feet / FEET_PER_MILE


@lru_cache(maxsize=None)
def get_weather_description(code: int) -> str:
    return WEATHER_DESCRIPTIONS.get(code, UNKNOWN_DESCRIPTION)


@lru_cache(maxsize=None)
def get_icon_code(code: int, is_day: int = 1) -> int:
    """QWeather icon for a WMO code; ``is_day`` is Open-Meteo's 1/0 flag."""
    icons = WMO_TO_QWEATHER.get(code)
    if icons is None:
        return UNKNOWN_ICON
    day, night = icons
    return day if is_day else night


def format_duration(seconds: float) -> str:
    """Format seconds as "Xh Ym Zs", leaving out zero components.

    >>> format_duration(3661)
    '1h 1m 1s'
    >>> format_duration(45)
    '45s'
    """
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0:
        parts.append(f"{secs}s")
    return " ".join(parts)


def first_future_index(times: list[str], timezone: str, now: datetime | None = None) -> int:
    """Index of the first hourly timestamp strictly after ``now`` in ``timezone``.

    Open-Meteo hourly times are naive local times ("2025-01-01T13:00").
    Returns 0 when every entry is already in the past.
    """
    tz = ZoneInfo(timezone)
    now = datetime.now(tz) if now is None else now.astimezone(tz)
    for i, value in enumerate(times):
        forecast = datetime.fromisoformat(value)
        if forecast.tzinfo is None:
            forecast = forecast.replace(tzinfo=tz)
        if forecast > now:
            return i
    return 0


def select_hourly_window(
    hourly: dict,
    timezone: str,
    hours: int = MIN_HOURS,
    now: datetime | None = None,
) -> list[dict]:
    """Rows for the ``hours`` forecast hours following the current local time.

    ``hourly`` is Open-Meteo's column layout: ``{"time": [...], field: [...]}``.
    Each row carries ``time`` plus every other column's value at that hour.
    """
    if not MIN_HOURS <= hours <= MAX_HOURS:
        raise ValueError(f"hours must be between {MIN_HOURS} and {MAX_HOURS}, got {hours}")

    times = hourly.get("time") or []
    start = first_future_index(times, timezone, now)
    columns = {name: values for name, values in hourly.items() if name != "time"}

    rows = []
    for i in range(start, min(start + hours, len(times))):
        row = {"time": times[i]}
        for name, values in columns.items():
            row[name] = values[i] if i < len(values) else None
        rows.append(row)
    return rows


def background_query(location: str, is_day: int, weather_code: int) -> str:
    """Search text for a background photo matching place, daylight and sky."""
    place = location.split(",")[0].strip()
    daylight = "day" if is_day else "night"
    description = get_weather_description(weather_code)
    if description == UNKNOWN_DESCRIPTION:
        return f"{place} {daylight}".strip()
    # "Rain: Slight intensity" -> "rain"
    sky = description.split(":")[0].lower()
    return f"{place} {daylight} {sky}".strip()


# Payload field -> metric-to-imperial conversion
IMPERIAL_CONVERSIONS = {
    "temperature_2m": convert_temperature,
    "apparent_temperature": convert_temperature,
    "dew_point_2m": convert_temperature,
    "temperature_2m_max": convert_temperature,
    "temperature_2m_min": convert_temperature,
    "apparent_temperature_max": convert_temperature,
    "apparent_temperature_min": convert_temperature,
    "wind_speed_10m": convert_speed,
    "wind_gusts_10m": convert_speed,
    "wind_speed_10m_max": convert_speed,
    "wind_gusts_10m_max": convert_speed,
    "precipitation": convert_precipitation,
    "rain": convert_precipitation,
    "showers": convert_precipitation,
    "snowfall": convert_precipitation,
    "precipitation_sum": convert_precipitation,
    "rain_sum": convert_precipitation,
    "showers_sum": convert_precipitation,
    "snowfall_sum": convert_precipitation,
    "pressure_msl": convert_pressure,
    "surface_pressure": convert_pressure,
    "visibility": convert_visibility_to_miles,
}


# Payload field -> imperial-to-metric conversion. Open-Meteo reports pressure
# in hPa whatever the unit system, and visibility in feet for imperial.
_TO_METRIC = {
    convert_temperature: temperature_to_metric,
    convert_speed: speed_to_metric,
    convert_precipitation: precipitation_to_metric,
}
METRIC_CONVERSIONS = {name: _TO_METRIC[fn] for name, fn in IMPERIAL_CONVERSIONS.items() if fn in _TO_METRIC}
METRIC_CONVERSIONS["visibility"] = feet_to_km

# (fetched in metric, display in metric) -> field conversions
DISPLAY_CONVERSIONS = {
    (True, True): {"visibility": convert_visibility_to_km},
    (True, False): IMPERIAL_CONVERSIONS,
    (False, True): METRIC_CONVERSIONS,
    (False, False): {
        "pressure_msl": convert_pressure,
        "surface_pressure": convert_pressure,
        "visibility": feet_to_miles,
    },
}


def _display_values(row: dict, metric: bool, fetched_metric: bool = True) -> dict:
    """Express the fields the dashboard shows in the requested unit system."""
    out = dict(row)
    for name, fn in DISPLAY_CONVERSIONS[fetched_metric, metric].items():
        if out.get(name) is not None:
            out[name] = round(fn(out[name]), 2)
    return out


def _describe(row: dict) -> dict:
    code = row.get("weather_code")
    if code is None:
        return row
    row["description"] = get_weather_description(code)
    row["icon"] = get_icon_code(code, row.get("is_day", 1))
    return row


def build_dashboard(
    payload: dict,
    location: str,
    metric: bool = True,
    hours: int = MIN_HOURS,
    now: datetime | None = None,
) -> dict:
    """Reshape a forecast payload into display-ready current/hourly/daily rows."""
    timezone = payload.get("timezone") or "UTC"
    fetched_metric = (payload.get("current_units") or {}).get("temperature_2m", "°C") == "°C"
    current = _describe(_display_values(payload.get("current") or {}, metric, fetched_metric))

    hourly = [
        _describe(_display_values(row, metric, fetched_metric))
        for row in select_hourly_window(payload.get("hourly") or {}, timezone, hours, now)
    ]

    daily_columns = payload.get("daily") or {}
    daily = []
    for i, day in enumerate(daily_columns.get("time") or []):
        row = {"time": day}
        for name, values in daily_columns.items():
            if name != "time" and i < len(values):
                row[name] = values[i]
        row = _describe(_display_values(row, metric, fetched_metric))
        for name in ("daylight_duration", "sunshine_duration"):
            if row.get(name) is not None:
                row[f"{name}_text"] = format_duration(row[name])
        daily.append(row)

    return {
        "location": location,
        "timezone": timezone,
        "units": "metric" if metric else "imperial",
        "current": current,
        "hourly": hourly,
        "daily": daily,
        "background_query": background_query(
            location, current.get("is_day", 1), current.get("weather_code", -1)
        ),
    }
