"""
Admin gate: binary allow/deny on a presented credential.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool

from core.errors import AuthorizationError
from core.settings import Settings

from . import security

_verifier: security.CredentialVerifier | None = None


@dataclass(frozen=True)
class AdminCredentials:
    cookie: str | None = None
    header: str | None = None
    bearer: str | None = None

    def candidates(self) -> list[str]:
        values = (self.cookie, self.header, self.bearer)
        return [v.strip() for v in values if v and v.strip()]


def init_verifier(settings: Settings) -> None:
    global _verifier
    _verifier = security.build_verifier(
        secret_hashes=settings.admin_secret_hashes,
        plain_secret=settings.admin_secret,
        rounds=settings.admin_bcrypt_rounds,
    )


def set_verifier(verifier: security.CredentialVerifier | None) -> None:
    global _verifier
    _verifier = verifier


def verifier() -> security.CredentialVerifier:
    if _verifier is None:
        raise RuntimeError("Credential verifier is not initialized. Call init_verifier() on startup.")
    return _verifier


def authorize(credentials: AdminCredentials) -> bool:
    """
    Verify the first presented credential (cookie, then header, then bearer).

    Only one value is checked per request so an anonymous caller cannot
    queue several bcrypt rounds. Missing credentials deny.
    """
    candidates = credentials.candidates()
    if not candidates:
        return False
    return verifier().verify(candidates[0])


async def require_admin(credentials: AdminCredentials) -> None:
    # bcrypt is deliberately slow; keep it off the event loop.
    allowed = await run_in_threadpool(authorize, credentials)
    if not allowed:
        raise AuthorizationError("Admin authentication required")
