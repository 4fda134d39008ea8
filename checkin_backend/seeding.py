"""
One-time seeding of a SQL store from the legacy JSON files.

Deployments that started on the filesystem backend keep ``profile.json`` and
``checkins.json`` under the data directory. The first time a SQL backend comes
up against them, the profile and check-ins are copied over so switching
backends loses nothing.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from checkin_backend.db import (
    CHECKINS_FILE,
    PROFILE_FILE,
    SqlCheckinStore,
    parse_checkin_records,
    utcnow,
)
from checkin_shared.types import Checkin, Profile

logger = logging.getLogger(__name__)

FILES_SEEDED_KEY = "files_seeded_at"


@dataclass
class SeedResult:
    profile_seeded: bool = False
    checkins_imported: int = 0


def load_profile_file(data_dir: str) -> Optional[Profile]:
    path = os.path.join(data_dir, PROFILE_FILE)
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return None
    if not isinstance(raw, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return None
    return Profile.from_raw(raw)


def load_checkins_file(data_dir: str) -> list[Checkin]:
    """
    Legacy check-ins, oldest first. Entries without ``createdAt`` get the
    file's modification time.
    """
    path = os.path.join(data_dir, CHECKINS_FILE)
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        mtime = datetime.fromtimestamp(os.path.getmtime(path), tz=timezone.utc)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return []
    if not isinstance(records, list):
        logger.warning("Ignoring %s: expected a JSON list", path)
        return []
    checkins = [
        c if c.created_at is not None else c.stamped(mtime)
        for c in parse_checkin_records(records, path)
    ]
    checkins.reverse()
    return checkins


def seed_from_files(store: SqlCheckinStore, data_dir: str) -> SeedResult:
    result = SeedResult()

    if not store.has_profile():
        profile = load_profile_file(data_dir) or Profile()
        store.set_profile(profile.model_dump())
        result.profile_seeded = True
        logger.info("Seeded %s profile (from file: %s)", store.kind, profile != Profile())

    if store.get_meta(FILES_SEEDED_KEY) is None:
        checkins = load_checkins_file(data_dir)
        if checkins:
            result.checkins_imported = store.import_checkins(checkins)
            logger.info(
                "Imported %d check-ins from %s into %s",
                result.checkins_imported,
                data_dir,
                store.kind,
            )
        store.set_meta(FILES_SEEDED_KEY, utcnow().isoformat())

    return result
