"""Weather API exceptions and the handlers that turn them into JSON envelopes.

Every failure leaves the API as ``{"error": str, "details"?: str}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class WeatherAppError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ValidationFailedError(WeatherAppError):
    def __init__(self, fields: list[str], details: str | None = None):
        super().__init__(
            f"Invalid request parameters: {', '.join(fields)}",
            status_code=400,
            details=details,
        )
        self.fields = fields


class ProviderNotConfiguredError(WeatherAppError):
    def __init__(self, provider: str, env_var: str):
        super().__init__(
            f"{provider} provider is not configured",
            status_code=500,
            details=f"Set the {env_var} environment variable",
        )


class UpstreamError(WeatherAppError):
    """An upstream provider failed or returned an error object."""

    summary = "Failed to fetch data from {provider}"

    def __init__(self, provider: str, details: str, status_code: int = 500, upstream_status: int | None = None):
        super().__init__(self.summary.format(provider=provider), status_code=status_code, details=details)
        self.provider = provider
        self.upstream_status = upstream_status


class UpstreamRateLimitedError(UpstreamError):
    summary = "{provider} rate limit exceeded, please try again later"

    def __init__(self, provider: str, details: str, upstream_status: int | None = None):
        super().__init__(provider, details, status_code=429, upstream_status=upstream_status)


class AdminAuthError(WeatherAppError):
    pass


def error_envelope(message: str, status_code: int, details: str | None = None, *, expose: bool = True) -> JSONResponse:
    body = {"error": message}
    if details and expose:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


def rate_limited_response(limit: str, retry_after: int, *, production: bool = False) -> JSONResponse:
    response = error_envelope(
        "Too many requests, please try again later.",
        429,
        f"Limit: {limit}",
        expose=not production,
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


def _field_name(loc: tuple) -> str:
    # ("query", "latitude") -> "latitude"
    if len(loc) > 1 and loc[0] in ("query", "body", "path", "header"):
        loc = loc[1:]
    return ".".join(str(p) for p in loc)


def register_error_handlers(app: FastAPI, *, production: bool = False) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(WeatherAppError)
    async def handle_app_error(_request: Request, exc: WeatherAppError):
        if exc.status_code >= 500:
            logger.warning("%s: %s (%s)", type(exc).__name__, exc, exc.details)
        return error_envelope(
            str(exc),
            exc.status_code,
            exc.details,
            expose=exc.status_code < 500 or not production,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError):
        fields: list[str] = []
        messages: list[str] = []
        for err in exc.errors():
            name = _field_name(tuple(err.get("loc", ())))
            if name not in fields:
                fields.append(name)
            messages.append(f"{name}: {err.get('msg', 'invalid value')}")
        error = ValidationFailedError(fields, details="; ".join(messages))
        return error_envelope(str(error), 400, error.details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_request: Request, exc: StarletteHTTPException):
        return error_envelope(str(exc.detail), exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return error_envelope(str(exc), 400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return error_envelope(
            "Internal server error",
            500,
            f"{type(exc).__name__}: {exc}",
            expose=not production,
        )
