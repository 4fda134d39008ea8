"""
Store selection and dependency wiring for the FastAPI app.

The store is built once by ``create_app`` and kept on ``app.state``; handlers
receive it through ``get_store``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from checkin_backend.config import Settings
from checkin_backend.db import (
    CheckinStore,
    FileCheckinStore,
    InMemoryCheckinStore,
    SqlCheckinStore,
    sqlite_url,
)
from checkin_backend.seeding import seed_from_files

logger = logging.getLogger(__name__)

STORE_KINDS = ("filesystem", "sqlite", "postgres", "memory")


def open_store(
    kind: str,
    *,
    data_dir: str = "data",
    sqlite_path: str = "data/checkins.db",
    database_url: Optional[str] = None,
) -> CheckinStore:
    """Open one specific backend. Errors propagate to the caller."""
    if kind == "memory":
        return InMemoryCheckinStore()
    if kind == "filesystem":
        return FileCheckinStore(data_dir)
    if kind == "sqlite":
        return SqlCheckinStore(sqlite_url(sqlite_path), kind="sqlite")
    if kind == "postgres":
        if not database_url:
            raise ValueError("DATABASE_URL is required for the postgres store")
        return SqlCheckinStore(database_url, kind="postgres")
    raise ValueError(f"Unknown store kind: {kind!r}")


def select_store_kind(settings: Settings) -> str:
    if settings.use_in_memory_store:
        return "memory"
    if settings.database_url:
        return "postgres"
    if settings.use_sqlite:
        return "sqlite"
    return "filesystem"


def build_store(settings: Settings) -> CheckinStore:
    """
    Pick the authoritative backend for this process.

    A SQL backend that fails to come up is logged and replaced by the JSON
    file store instead of stopping the service.
    """
    kind = select_store_kind(settings)
    if kind in ("postgres", "sqlite"):
        try:
            store = open_store(
                kind,
                data_dir=settings.data_dir,
                sqlite_path=settings.sqlite_path,
                database_url=settings.database_url,
            )
        except Exception:
            logger.exception(
                "Failed to initialize %s store; falling back to JSON files in %s",
                kind,
                settings.data_dir,
            )
            return FileCheckinStore(settings.data_dir)
        try:
            seed_from_files(store, settings.data_dir)
        except Exception:
            logger.exception("Seeding %s store from %s failed (ignored)", kind, settings.data_dir)
        logger.info("Using %s store", kind)
        return store

    store = open_store(kind, data_dir=settings.data_dir)
    logger.info("Using %s store", kind)
    return store


def get_store(request: Request) -> CheckinStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
