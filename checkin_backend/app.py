"""
FastAPI application entry point for the check-in backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from checkin_backend.config import Settings, get_settings
from checkin_backend.db import CheckinStore
from checkin_backend.dependencies import build_store
from checkin_backend.routes import health_router, router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, store: Optional[CheckinStore] = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Weekly Check-in API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    if not settings.admin_key:
        logger.warning("ADMIN_KEY is not set; every admin request will be refused")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(health_router)
    return app
