"""
HTTP client for the check-in API with backend failover and offline fallback.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Union

import requests

from checkin_shared.filters import CheckinFilter
from checkin_shared.types import Checkin, Profile
from checkin_client.offline import OfflineQueue

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 8.0  # seconds

# Statuses that mean "this base URL is not the API", so the next one is tried.
NEXT_CANDIDATE_STATUSES = {404, 405}

DateParam = Union[str, date, datetime, None]


class ApiError(Exception):
    """The backend answered and refused the request."""

    def __init__(self, status_code: int, code: str, base_url: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {code}")
        self.status_code = status_code
        self.code = code
        self.base_url = base_url

    @classmethod
    def from_response(cls, response: requests.Response, base_url: str) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        code = body.get("error") if isinstance(body, dict) else None
        return cls(response.status_code, code or response.reason or "error", base_url)


class BackendUnavailable(Exception):
    """No candidate backend produced a usable response."""

    def __init__(self, attempts: list[tuple[str, str]]):
        details = "; ".join(f"{url}: {reason}" for url, reason in attempts) or "no candidates tried"
        super().__init__(f"All backends failed ({details})")
        self.attempts = attempts


@dataclass
class SubmitResult:
    checkin: Checkin
    queued: bool = False
    base_url: Optional[str] = None


@dataclass
class SyncResult:
    synced: int = 0
    remaining: int = 0
    errors: list[str] = field(default_factory=list)


def _date_param(value: DateParam) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class CheckinApiClient:
    def __init__(
        self,
        candidates: Iterable[str],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        offline_queue: Optional[OfflineQueue] = None,
    ):
        self.candidates = [url.rstrip("/") for url in candidates if url]
        if not self.candidates:
            raise ValueError("At least one backend base URL is required")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.offline_queue = offline_queue
        self.last_base_url: Optional[str] = None

    def _request(
        self,
        method: str,
        path: str,
        *,
        abort: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Try each candidate in order; the first 2xx response wins. Network
        errors, 5xx, 404 and 405 move on to the next candidate, any other 4xx
        is final.
        """
        attempts: list[tuple[str, str]] = []
        for base_url in self.candidates:
            if abort is not None and abort.is_set():
                attempts.append((base_url, "aborted"))
                break
            url = f"{base_url}{path}"
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as exc:
                logger.warning("%s %s failed: %s", method, url, exc)
                attempts.append((base_url, str(exc)))
                continue
            if response.status_code >= 500 or response.status_code in NEXT_CANDIDATE_STATUSES:
                logger.warning("%s %s returned HTTP %d", method, url, response.status_code)
                attempts.append((base_url, f"HTTP {response.status_code}"))
                continue
            if response.status_code >= 400:
                raise ApiError.from_response(response, base_url)
            self.last_base_url = base_url
            return response
        raise BackendUnavailable(attempts)

    def health(self) -> dict:
        return self._request("GET", "/health").json()

    def submit_checkin(
        self,
        checkin: Union[Checkin, dict],
        *,
        abort: Optional[threading.Event] = None,
    ) -> SubmitResult:
        """
        Send a check-in. When no backend is reachable and an offline queue is
        configured, the check-in is queued locally and reported as accepted.
        """
        if isinstance(checkin, dict):
            checkin = Checkin.from_wire(checkin)
        try:
            response = self._request(
                "POST",
                "/api/checkin",
                json=checkin.to_wire(include_created_at=False),
                abort=abort,
            )
        except BackendUnavailable:
            if self.offline_queue is None:
                raise
            queued = checkin.stamped(datetime.now(timezone.utc))
            self.offline_queue.push(queued)
            logger.warning("No backend reachable; queued check-in for %s locally", checkin.full_name)
            return SubmitResult(checkin=queued, queued=True)

        created_at = response.json().get("createdAt")
        if created_at:
            checkin = Checkin.from_wire({**checkin.to_wire(), "createdAt": created_at})
        return SubmitResult(checkin=checkin, base_url=self.last_base_url)

    def list_checkins(
        self,
        admin_key: str,
        *,
        name: Optional[str] = None,
        date_from: DateParam = None,
        date_to: DateParam = None,
        include_local: bool = True,
    ) -> list[Checkin]:
        params = {
            "adminKey": admin_key,
            "nome": name or None,
            "from": _date_param(date_from),
            "to": _date_param(date_to),
        }
        params = {key: value for key, value in params.items() if value is not None}
        try:
            response = self._request("GET", "/api/checkins", params=params)
        except BackendUnavailable:
            if not include_local or self.offline_queue is None:
                raise
            logger.warning("No backend reachable; listing locally queued check-ins")
            checkin_filter = CheckinFilter.from_params(name, date_from, date_to)
            return checkin_filter.apply(self.offline_queue.checkins())
        return [Checkin.from_wire(item) for item in response.json()]

    def clear_checkins(self, admin_key: str) -> int:
        response = self._request(
            "POST", "/api/admin/clear", params={"adminKey": admin_key}
        )
        return response.json().get("deleted", 0)

    def admin_login(self, username: str, password: str) -> bool:
        try:
            self._request(
                "POST",
                "/api/admin/login",
                json={"username": username, "password": password},
            )
        except ApiError as exc:
            if exc.status_code in (400, 401):
                return False
            raise
        return True

    def get_profile(self, *, abort: Optional[threading.Event] = None) -> Profile:
        return Profile.from_raw(self._request("GET", "/api/profile", abort=abort).json())

    def set_profile(self, patch: dict) -> Profile:
        return Profile.from_raw(self._request("POST", "/api/profile", json=patch).json())

    def admin_set_profile(self, admin_key: str, patch: dict) -> Profile:
        response = self._request(
            "POST", "/api/admin/profile", params={"adminKey": admin_key}, json=patch
        )
        return Profile.from_raw(response.json())

    def summary(
        self,
        admin_key: str,
        *,
        name: Optional[str] = None,
        date_from: DateParam = None,
        date_to: DateParam = None,
    ) -> dict:
        params = {
            "adminKey": admin_key,
            "nome": name or None,
            "from": _date_param(date_from),
            "to": _date_param(date_to),
        }
        params = {key: value for key, value in params.items() if value is not None}
        return self._request("GET", "/api/admin/summary", params=params).json()

    def generate_pdf_report(self, name: str, week_label: Optional[str] = None) -> bytes:
        response = self._request(
            "POST",
            "/api/report/pdf",
            json={"nome": name, "semanaTexto": week_label},
        )
        return response.content

    def send_report(self, payload: dict) -> dict:
        return self._request("POST", "/api/report/send", json=payload).json()

    def sync_pending(self) -> SyncResult:
        """
        Push locally queued check-ins, oldest first. Only confirmed entries
        are removed; the rest stay queued in their original order.
        """
        result = SyncResult()
        if self.offline_queue is None:
            return result
        for entry in reversed(self.offline_queue.entries()):
            try:
                self._request(
                    "POST",
                    "/api/checkin",
                    json=entry.checkin.to_wire(include_created_at=False),
                )
            except (BackendUnavailable, ApiError) as exc:
                logger.warning("Could not sync queued check-in %s: %s", entry.entry_id, exc)
                result.errors.append(str(exc))
                continue
            self.offline_queue.remove(entry.entry_id)
            result.synced += 1
        result.remaining = len(self.offline_queue)
        return result
