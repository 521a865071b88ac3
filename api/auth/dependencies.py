"""
Auth dependencies for admin-only FastAPI routes.
"""

from __future__ import annotations

from fastapi import Cookie, Header

from . import service

ADMIN_COOKIE = "admin"


def _extract_bearer_token(authorization: str | None) -> str | None:
    raw = (authorization or "").strip()
    if not raw:
        return None

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        return None

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        return None
    return token


async def require_admin(
    admin: str | None = Cookie(default=None, alias=ADMIN_COOKIE),
    x_admin_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> None:
    credentials = service.AdminCredentials(
        cookie=admin,
        header=x_admin_token,
        bearer=_extract_bearer_token(authorization),
    )
    await service.require_admin(credentials)
