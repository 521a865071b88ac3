"""
Admin credential verification.

The shared admin secret is never compared in plaintext. The verifier keeps
bcrypt hashes only; several hashes may be active at once so a secret can be
rotated without downtime (publish the new hash, switch clients, drop the
old hash).
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
MAX_SECRET_BYTES = 72


class AuthSecurityError(RuntimeError):
    pass


class CredentialVerifier(Protocol):
    def verify(self, token: str) -> bool: ...


def hash_secret(plain_secret: str, *, rounds: int = 12) -> str:
    secret = (plain_secret or "").encode("utf-8")
    if not secret:
        raise AuthSecurityError("Secret is empty.")
    if len(secret) > MAX_SECRET_BYTES:
        raise AuthSecurityError(
            f"Admin secret is {len(secret)} bytes; bcrypt accepts at most {MAX_SECRET_BYTES}. Use a shorter secret."
        )
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def check_secret(plain_secret: str, secret_hash: str) -> bool:
    secret = (plain_secret or "").encode("utf-8")
    hashed = (secret_hash or "").encode("utf-8")
    if not secret or not hashed:
        return False
    try:
        return bcrypt.checkpw(secret, hashed)
    except ValueError:
        # Malformed hash in configuration.
        return False


class BcryptCredentialVerifier:
    def __init__(self, hashes: Iterable[str]) -> None:
        self._hashes = tuple(h.strip() for h in hashes if h and h.strip())

    @property
    def configured(self) -> bool:
        return bool(self._hashes)

    def verify(self, token: str) -> bool:
        if not token:
            return False
        return any(check_secret(token, h) for h in self._hashes)


def build_verifier(
    *,
    secret_hashes: Iterable[str] = (),
    plain_secret: str = "",
    rounds: int = 12,
) -> BcryptCredentialVerifier:
    """
    Build the verifier from configured hashes and/or a plaintext secret.

    A plaintext secret is hashed once here and then forgotten.
    """
    hashes = list(secret_hashes)
    if plain_secret:
        hashes.append(hash_secret(plain_secret, rounds=rounds))

    verifier = BcryptCredentialVerifier(hashes)
    if not verifier.configured:
        logger.warning("No admin secret configured; all admin operations will be denied.")
    return verifier
