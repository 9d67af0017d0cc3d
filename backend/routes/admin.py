"""Operator routes."""

import hmac

from fastapi import APIRouter, Depends, Header

from config import Settings
from dependencies import get_cache, get_settings
from errors import AdminAuthError
from services.cache import ResponseCache

router = APIRouter(prefix="/api")


def require_admin(
    x_admin_token: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guard for operator routes.

    With ADMIN_TOKEN set, the X-Admin-Token header must match it. Without
    one the route is open locally and refused in production.
    """
    if not settings.admin_token:
        if settings.is_production:
            raise AdminAuthError("Admin routes are disabled: ADMIN_TOKEN is not configured", status_code=403)
        return
    if not x_admin_token:
        raise AdminAuthError("Admin token required. Pass X-Admin-Token header.", status_code=401)
    if not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise AdminAuthError("Invalid admin token", status_code=403)


@router.post("/cache/clear", dependencies=[Depends(require_admin)])
async def clear_cache(cache: ResponseCache = Depends(get_cache)) -> dict:
    """Flush every cached upstream response."""
    flushed = cache.clear()
    return {"message": f"Cache cleared ({flushed} entries removed)"}
