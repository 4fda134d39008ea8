"""
Shared-secret admin checks.

There are no sessions or user accounts: the admin dashboard sends the
configured ``ADMIN_KEY`` with each request. With no key configured every
admin request is refused.
"""

from __future__ import annotations

import hmac
from typing import Optional

from checkin_backend.config import Settings


def _same_secret(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def check_admin_key(settings: Settings, candidate: Optional[str]) -> bool:
    if not settings.admin_key or not candidate:
        return False
    return _same_secret(str(candidate), settings.admin_key)


def check_login(settings: Settings, username: str, password: str) -> bool:
    # Evaluate both comparisons so timing does not reveal which one failed.
    user_ok = _same_secret(username, settings.admin_username)
    key_ok = check_admin_key(settings, password)
    return user_ok and key_ok
