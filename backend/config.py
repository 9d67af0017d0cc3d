"""Settings for the weather API, read from the environment (and .env when present)."""

import os

from dotenv import load_dotenv

load_dotenv()

OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
UNSPLASH_URL = "https://api.unsplash.com/photos/random"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3001"))
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")

        # Upstream providers
        self.opencage_api_key: str | None = os.getenv("OPENCAGE_API_KEY")
        self.opencage_url: str = os.getenv("OPENCAGE_URL", OPENCAGE_URL)
        self.open_meteo_url: str = os.getenv("OPEN_METEO_URL", OPEN_METEO_URL)
        self.unsplash_access_key: str | None = os.getenv("UNSPLASH_ACCESS_KEY")
        self.unsplash_url: str = os.getenv("UNSPLASH_URL", UNSPLASH_URL)
        self.weather_units: str = os.getenv("WEATHER_UNITS", "metric").lower()
        self.http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        # Cache + rate limiting
        self.cache_ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "300"))
        self.cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "100"))
        self.rate_limit: str = os.getenv("RATE_LIMIT", "100/15 minutes")

        self.admin_token: str | None = os.getenv("ADMIN_TOKEN")

        # TLS
        self.https_enabled: bool = _env_bool("HTTPS_ENABLED")
        self.ssl_cert_path: str | None = os.getenv("SSL_CERT_PATH")
        self.ssl_key_path: str | None = os.getenv("SSL_KEY_PATH")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_metric(self) -> bool:
        return self.weather_units != "imperial"

    def validate(self) -> list[str]:
        """Return list of missing env vars required by the upstream providers."""
        required = ["OPENCAGE_API_KEY", "UNSPLASH_ACCESS_KEY"]
        if self.https_enabled:
            required += ["SSL_CERT_PATH", "SSL_KEY_PATH"]
        return [var for var in required if not getattr(self, var.lower())]


settings = Settings()
