"""
Error taxonomy shared by every feature package.

Services raise these; `main.py` maps them to HTTP responses in one place.
"""

from __future__ import annotations


class StorefrontError(RuntimeError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# Bad or missing admin credential.
class AuthorizationError(StorefrontError):
    status_code = 403


# Caller input is unacceptable; nothing was mutated.
class ValidationError(StorefrontError):
    status_code = 400


class PayloadTooLargeError(ValidationError):
    status_code = 413


class NotFoundError(StorefrontError):
    status_code = 404


# Decode, transcode or I/O failure on our side.
class ProcessingError(StorefrontError):
    status_code = 500
