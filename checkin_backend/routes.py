"""
HTTP routes for the check-in API.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse, Response

from checkin_backend import analytics
from checkin_backend.auth import check_admin_key, check_login
from checkin_backend.config import Settings
from checkin_backend.db import CheckinStore
from checkin_backend.dependencies import get_app_settings, get_store
from checkin_backend.notifications import configured_channels, send_report
from checkin_backend.photos import normalize_photo
from checkin_backend.reports import build_weekly_report
from checkin_backend.schemas import (
    AdminKeyPayload,
    AdminLoginPayload,
    AdminProfilePayload,
    CheckinAccepted,
    ClearResponse,
    HealthResponse,
    OkResponse,
    ProfilePatch,
    ReportRequest,
    ReportSendResponse,
    SummaryResponse,
)
from checkin_shared.filters import CheckinFilter
from checkin_shared.types import Checkin, Profile

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


def _error(status_code: int, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code})


def _report_filename(name: Optional[str]) -> str:
    ascii_name = (
        unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", ascii_name).strip("-") or "geral"
    return f"relatorio-{slug}.pdf"


def _save_profile(patch: dict, store: CheckinStore, settings: Settings):
    if patch.get("photo"):
        try:
            patch["photo"] = normalize_photo(patch["photo"], settings.max_photo_size)
        except ValueError as exc:
            logger.warning("Rejected profile photo: %s", exc)
            return _error(400, "invalid_photo")
    try:
        return store.set_profile(patch)
    except Exception:
        logger.exception("Failed to save profile")
        return _error(500, "save_failed")


@router.post("/checkin", response_model=CheckinAccepted)
def submit_checkin(checkin: Checkin, store: CheckinStore = Depends(get_store)):
    try:
        record = store.insert_checkin(checkin)
    except Exception:
        logger.exception("Failed to save check-in for %s", checkin.full_name)
        return _error(500, "save_failed")
    return CheckinAccepted(created_at=record.created_at)


@router.post("/admin/login", response_model=OkResponse)
def admin_login(
    payload: AdminLoginPayload,
    settings: Settings = Depends(get_app_settings),
):
    if not payload.username or not payload.password:
        return _error(400, "missing_credentials")
    if not check_login(settings, payload.username, payload.password):
        return _error(401, "invalid_credentials")
    return OkResponse()


@router.get("/checkins")
def list_checkins(
    nome: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    admin_key: Optional[str] = Query(None, alias="adminKey"),
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    if not check_admin_key(settings, admin_key):
        return _error(401, "unauthorized")
    try:
        checkin_filter = CheckinFilter.from_params(nome, date_from, date_to)
    except ValueError:
        return _error(400, "invalid_date")
    try:
        checkins = store.list_checkins(checkin_filter)
    except Exception:
        logger.exception("Failed to list check-ins from %s store", store.kind)
        return []
    return [checkin.to_wire() for checkin in checkins]


@router.get("/admin/summary", response_model=SummaryResponse)
def checkin_summary(
    nome: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    admin_key: Optional[str] = Query(None, alias="adminKey"),
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    if not check_admin_key(settings, admin_key):
        return _error(401, "unauthorized")
    try:
        checkin_filter = CheckinFilter.from_params(nome, date_from, date_to)
    except ValueError:
        return _error(400, "invalid_date")
    try:
        checkins = store.list_checkins(checkin_filter)
        all_checkins = checkins if checkin_filter.is_empty else store.list_checkins()
    except Exception:
        logger.exception("Failed to list check-ins from %s store", store.kind)
        checkins = all_checkins = []
    return analytics.build_summary(checkins, all_checkins)


@router.post("/admin/clear", response_model=ClearResponse)
def clear_checkins(
    payload: Optional[AdminKeyPayload] = Body(None),
    admin_key: Optional[str] = Query(None, alias="adminKey"),
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    key = admin_key or (payload.admin_key if payload else None)
    if not check_admin_key(settings, key):
        return _error(401, "unauthorized")
    try:
        deleted = store.clear_checkins()
    except Exception:
        logger.exception("Failed to clear check-ins in %s store", store.kind)
        return _error(500, "clear_failed")
    logger.info("Cleared %d check-ins", deleted)
    return ClearResponse(deleted=deleted)


@router.get("/profile", response_model=Profile)
def get_profile(store: CheckinStore = Depends(get_store)):
    try:
        return store.get_profile()
    except Exception:
        logger.exception("Failed to read profile from %s store", store.kind)
        return Profile()


@router.post("/profile", response_model=Profile)
def update_profile(
    payload: ProfilePatch,
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    return _save_profile(payload.to_patch(), store, settings)


@router.post("/admin/profile", response_model=Profile)
def admin_update_profile(
    payload: AdminProfilePayload,
    admin_key: Optional[str] = Query(None, alias="adminKey"),
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    if not check_admin_key(settings, admin_key or payload.admin_key):
        return _error(401, "unauthorized")
    return _save_profile(payload.to_patch(), store, settings)


@router.post("/report/pdf")
def report_pdf(
    payload: ReportRequest,
    store: CheckinStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    try:
        pdf_bytes = build_weekly_report(
            store.list_checkins(),
            name=payload.name,
            week_label=payload.week_label,
            title=settings.report_title,
            generated_at=datetime.now(timezone.utc),
        )
    except Exception:
        logger.exception("Failed to build PDF report for %s", payload.name)
        return _error(500, "report_failed")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{_report_filename(payload.name)}"'
        },
    )


@router.post(
    "/report/send", response_model=ReportSendResponse, response_model_exclude_none=True
)
def report_send(
    payload: Optional[dict] = Body(None),
    settings: Settings = Depends(get_app_settings),
):
    payload = payload or {}
    if not configured_channels(payload, settings):
        return ReportSendResponse(note="no channels configured; simulated")
    return ReportSendResponse(channels=send_report(payload, settings))


@health_router.get("/health", response_model=HealthResponse)
def health(store: CheckinStore = Depends(get_store)):
    return HealthResponse(storage=store.kind)
