"""
Client for the weekly check-in API.
"""

from checkin_client.api import (
    ApiError,
    BackendUnavailable,
    CheckinApiClient,
    SubmitResult,
    SyncResult,
)
from checkin_client.candidates import candidates_from_env, resolve_candidates
from checkin_client.offline import OfflineQueue

__all__ = [
    "ApiError",
    "BackendUnavailable",
    "CheckinApiClient",
    "OfflineQueue",
    "SubmitResult",
    "SyncResult",
    "candidates_from_env",
    "resolve_candidates",
]
