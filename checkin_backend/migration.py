"""
Copy check-ins and the profile from one store to another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from checkin_backend.db import CheckinStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    checkins: int
    profile: bool
    cleared: int = 0


def migrate(
    source: CheckinStore,
    target: CheckinStore,
    *,
    include_profile: bool = True,
    clear_target: bool = False,
) -> MigrationResult:
    """
    Creation timestamps are preserved. Check-ins are written oldest first so
    the target keeps newest-first order for equal timestamps.
    """
    checkins = source.list_checkins()
    cleared = target.clear_checkins() if clear_target else 0
    copied = target.import_checkins(reversed(checkins))
    if include_profile:
        target.set_profile(source.get_profile().model_dump())
    logger.info(
        "Migrated %d check-ins from %s to %s (profile: %s)",
        copied,
        source.kind,
        target.kind,
        include_profile,
    )
    return MigrationResult(checkins=copied, profile=include_profile, cleared=cleared)
