"""The single configured administrator check."""
from __future__ import annotations

import hmac

from .. import config


def _matches(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def is_admin(email: str, password: str) -> bool:
    email_ok = _matches(email.strip().lower(), config.ADMIN_EMAIL.lower())
    password_ok = _matches(password, config.ADMIN_PASSWORD)
    return email_ok and password_ok


__all__ = ["is_admin"]
