"""
On-device queue of check-ins that could not reach any backend.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from checkin_shared.types import Checkin

logger = logging.getLogger(__name__)

QUEUE_PATH_ENV = "CHECKIN_OFFLINE_QUEUE"


def default_queue_path() -> Path:
    configured = os.environ.get(QUEUE_PATH_ENV)
    if configured:
        return Path(configured)
    return Path.home() / ".weekly-checkin" / "pending_checkins.json"


@dataclass
class QueuedCheckin:
    entry_id: str
    checkin: Checkin
    queued_at: str


class OfflineQueue:
    """JSON file holding queued check-ins, newest at the head."""

    def __init__(self, path: Optional[os.PathLike] = None):
        self.path = Path(path) if path is not None else default_queue_path()

    def _load(self) -> list[dict]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Offline queue %s unreadable, treating as empty: %s", self.path, exc)
            return []
        return data if isinstance(data, list) else []

    def _save(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def push(self, checkin: Checkin) -> QueuedCheckin:
        entry = QueuedCheckin(
            entry_id=uuid.uuid4().hex,
            checkin=checkin,
            queued_at=datetime.now(timezone.utc).isoformat(),
        )
        records = self._load()
        records.insert(
            0,
            {
                "id": entry.entry_id,
                "queuedAt": entry.queued_at,
                "checkin": checkin.to_wire(),
            },
        )
        self._save(records)
        return entry

    def entries(self) -> list[QueuedCheckin]:
        """Queued entries, newest first."""
        entries = []
        for record in self._load():
            try:
                entries.append(
                    QueuedCheckin(
                        entry_id=record["id"],
                        checkin=Checkin.from_wire(record["checkin"]),
                        queued_at=record.get("queuedAt", ""),
                    )
                )
            except (KeyError, TypeError, ValidationError) as exc:
                logger.warning("Skipping broken offline entry: %s", exc)
        return entries

    def checkins(self) -> list[Checkin]:
        return [entry.checkin for entry in self.entries()]

    def remove(self, entry_id: str) -> bool:
        records = self._load()
        kept = [record for record in records if record.get("id") != entry_id]
        if len(kept) == len(records):
            return False
        self._save(kept)
        return True

    def clear(self) -> None:
        self._save([])

    def __len__(self) -> int:
        return len(self._load())
