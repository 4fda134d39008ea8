"""
Backend base URL candidates, in the order the client tries them.
"""

from __future__ import annotations

import os
from typing import Optional

DEFAULT_FALLBACK_URL = "http://localhost:5174"

OVERRIDE_ENV = "CHECKIN_API_OVERRIDE"
CONFIGURED_ENV = "CHECKIN_API_BASE"
SAME_ORIGIN_ENV = "CHECKIN_SAME_ORIGIN"


def resolve_candidates(
    *,
    override: Optional[str] = None,
    configured: Optional[str] = None,
    same_origin: Optional[str] = None,
    fallback: Optional[str] = DEFAULT_FALLBACK_URL,
) -> list[str]:
    """
    Explicit runtime override, build-time configured URL, same origin, then
    the hardcoded fallback. Blanks and repeats are dropped.
    """
    candidates: list[str] = []
    for url in (override, configured, same_origin, fallback):
        url = (url or "").strip().rstrip("/")
        if url and url not in candidates:
            candidates.append(url)
    return candidates


def candidates_from_env(fallback: Optional[str] = DEFAULT_FALLBACK_URL) -> list[str]:
    return resolve_candidates(
        override=os.environ.get(OVERRIDE_ENV),
        configured=os.environ.get(CONFIGURED_ENV),
        same_origin=os.environ.get(SAME_ORIGIN_ENV),
        fallback=fallback,
    )
