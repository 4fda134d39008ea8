"""
Storage backends for check-ins and the trainer profile.

``CheckinStore`` is implemented by a SQLAlchemy store (Postgres or SQLite),
a flat JSON-file store and an in-memory store for tests.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    String,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from checkin_shared.filters import CheckinFilter
from checkin_shared.types import Checkin, Profile, as_utc

logger = logging.getLogger(__name__)

CHECKINS_FILE = "checkins.json"
PROFILE_FILE = "profile.json"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckinStore(Protocol):
    """Interface for check-in and profile persistence."""

    kind: str

    def list_checkins(
        self, checkin_filter: Optional[CheckinFilter] = None
    ) -> list[Checkin]:
        ...

    def insert_checkin(self, checkin: Checkin) -> Checkin:
        ...

    def clear_checkins(self) -> int:
        ...

    def get_profile(self) -> Profile:
        ...

    def set_profile(self, patch: dict) -> Profile:
        ...

    def import_checkins(self, checkins: Iterable[Checkin]) -> int:
        ...


def normalize_database_url(database_url: str) -> str:
    """Heroku-style ``postgres://`` URLs are rejected by SQLAlchemy."""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://") :]
    return database_url


def sqlite_url(path: str) -> str:
    return f"sqlite:///{os.path.abspath(path)}"


class InMemoryCheckinStore:
    """Simple in-memory store for development and tests."""

    kind = "memory"

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock
        self.checkins: list[Checkin] = []
        self.profile = Profile()
        self._lock = threading.Lock()

    def list_checkins(
        self, checkin_filter: Optional[CheckinFilter] = None
    ) -> list[Checkin]:
        with self._lock:
            checkins = list(self.checkins)
        return (checkin_filter or CheckinFilter()).apply(checkins)

    def insert_checkin(self, checkin: Checkin) -> Checkin:
        with self._lock:
            record = checkin.stamped(self.clock())
            self.checkins.insert(0, record)
        return record

    def import_checkins(self, checkins: Iterable[Checkin]) -> int:
        count = 0
        with self._lock:
            for checkin in checkins:
                if checkin.created_at is None:
                    checkin = checkin.stamped(self.clock())
                self.checkins.insert(0, checkin)
                count += 1
        return count

    def clear_checkins(self) -> int:
        with self._lock:
            count = len(self.checkins)
            self.checkins.clear()
        return count

    def get_profile(self) -> Profile:
        return self.profile

    def set_profile(self, patch: dict) -> Profile:
        with self._lock:
            self.profile = self.profile.patched(patch)
            return self.profile

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.checkins.clear()
            self.profile = Profile()


def parse_checkin_records(records: Iterable[dict], source: str) -> list[Checkin]:
    """Validate raw stored records, skipping (and logging) broken ones."""
    checkins: list[Checkin] = []
    for index, record in enumerate(records):
        try:
            checkins.append(Checkin.from_wire(record))
        except (ValidationError, TypeError) as exc:
            logger.warning("Skipping unreadable check-in #%d in %s: %s", index, source, exc)
    return checkins


class FileCheckinStore:
    """
    Flat JSON files under ``data_dir``: ``checkins.json`` (newest first) and
    ``profile.json``.

    Every read-modify-write holds ``_lock``, since handlers run in a thread
    pool. One store instance per data directory.
    """

    kind = "filesystem"

    def __init__(self, data_dir: str, clock: Clock = utcnow):
        self.data_dir = data_dir
        self.clock = clock
        self._lock = threading.Lock()
        os.makedirs(data_dir, exist_ok=True)
        self.checkins_path = os.path.join(data_dir, CHECKINS_FILE)
        self.profile_path = os.path.join(data_dir, PROFILE_FILE)
        if not os.path.exists(self.checkins_path):
            self._write_json(self.checkins_path, [])

    def _read_json(self, path: str, default):
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return default
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s, using defaults: %s", path, exc)
            return default

    def _write_json(self, path: str, payload) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def _read_records(self) -> list[dict]:
        records = self._read_json(self.checkins_path, [])
        if not isinstance(records, list):
            logger.warning("%s does not hold a list; ignoring it", self.checkins_path)
            return []
        return records

    def list_checkins(
        self, checkin_filter: Optional[CheckinFilter] = None
    ) -> list[Checkin]:
        checkins = parse_checkin_records(self._read_records(), self.checkins_path)
        return (checkin_filter or CheckinFilter()).apply(checkins)

    def insert_checkin(self, checkin: Checkin) -> Checkin:
        with self._lock:
            record = checkin.stamped(self.clock())
            records = self._read_records()
            records.insert(0, record.to_wire())
            self._write_json(self.checkins_path, records)
        return record

    def import_checkins(self, checkins: Iterable[Checkin]) -> int:
        count = 0
        with self._lock:
            records = self._read_records()
            for checkin in checkins:
                if checkin.created_at is None:
                    checkin = checkin.stamped(self.clock())
                records.insert(0, checkin.to_wire())
                count += 1
            self._write_json(self.checkins_path, records)
        return count

    def clear_checkins(self) -> int:
        with self._lock:
            count = len(self._read_records())
            self._write_json(self.checkins_path, [])
        return count

    def get_profile(self) -> Profile:
        raw = self._read_json(self.profile_path, {})
        return Profile.from_raw(raw if isinstance(raw, dict) else {})

    def set_profile(self, patch: dict) -> Profile:
        with self._lock:
            profile = self.get_profile().patched(patch)
            self._write_json(self.profile_path, profile.model_dump())
        return profile


class SqlCheckinStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL; used for
    Postgres in production and SQLite when enabled.
    """

    def __init__(self, database_url: str, *, kind: str = "postgres", clock: Clock = utcnow):
        if not database_url:
            raise ValueError("A database URL is required for SqlCheckinStore")
        self.kind = kind
        self.clock = clock
        self.engine = create_engine(
            normalize_database_url(database_url),
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def _to_checkin(self, row: "CheckinRow") -> Optional[Checkin]:
        try:
            checkin = Checkin.from_wire(row.payload or {})
        except (ValidationError, TypeError) as exc:
            logger.warning("Skipping unreadable check-in row %s: %s", row.id, exc)
            return None
        return checkin.stamped(as_utc(row.created_at))

    def list_checkins(
        self, checkin_filter: Optional[CheckinFilter] = None
    ) -> list[Checkin]:
        checkin_filter = checkin_filter or CheckinFilter()
        stmt = select(CheckinRow).order_by(
            CheckinRow.created_at.desc(), CheckinRow.id.desc()
        )
        if checkin_filter.date_from is not None:
            stmt = stmt.where(CheckinRow.created_at >= checkin_filter.date_from)
        if checkin_filter.date_to is not None:
            stmt = stmt.where(CheckinRow.created_at <= checkin_filter.date_to)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            checkins = [self._to_checkin(row) for row in rows]
        return checkin_filter.apply(c for c in checkins if c is not None)

    def insert_checkin(self, checkin: Checkin) -> Checkin:
        record = checkin.stamped(self.clock())
        with self.Session() as session:
            session.add(
                CheckinRow(payload=record.to_wire(), created_at=record.created_at)
            )
            session.commit()
        return record

    def import_checkins(self, checkins: Iterable[Checkin]) -> int:
        rows = []
        for checkin in checkins:
            if checkin.created_at is None:
                checkin = checkin.stamped(self.clock())
            rows.append(CheckinRow(payload=checkin.to_wire(), created_at=checkin.created_at))
        with self.Session() as session:
            session.add_all(rows)
            session.commit()
        return len(rows)

    def clear_checkins(self) -> int:
        with self.Session() as session:
            count = session.scalar(select(func.count()).select_from(CheckinRow)) or 0
            session.execute(delete(CheckinRow))
            session.commit()
        return count

    def has_profile(self) -> bool:
        with self.Session() as session:
            return session.get(ProfileRow, PROFILE_ROW_ID) is not None

    def get_profile(self) -> Profile:
        with self.Session() as session:
            row = session.get(ProfileRow, PROFILE_ROW_ID)
            return Profile.from_raw(row.payload if row else None)

    def set_profile(self, patch: dict) -> Profile:
        with self.Session() as session:
            row = session.get(ProfileRow, PROFILE_ROW_ID)
            current = Profile.from_raw(row.payload if row else None)
            profile = current.patched(patch)
            if row:
                row.payload = profile.model_dump()
                row.updated_at = self.clock()
            else:
                session.add(
                    ProfileRow(
                        id=PROFILE_ROW_ID,
                        payload=profile.model_dump(),
                        updated_at=self.clock(),
                    )
                )
            session.commit()
        return profile

    def get_meta(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(MetaRow, key)
            return row.value if row else None

    def set_meta(self, key: str, value: str) -> None:
        with self.Session() as session:
            row = session.get(MetaRow, key)
            if row:
                row.value = value
            else:
                session.add(MetaRow(key=key, value=value))
            session.commit()


Base = declarative_base()

PayloadType = JSON().with_variant(JSONB(), "postgresql")
PROFILE_ROW_ID = 1


class CheckinRow(Base):
    __tablename__ = "checkins_app"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payload = Column(PayloadType, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class ProfileRow(Base):
    __tablename__ = "profile_app"

    id = Column(Integer, primary_key=True, autoincrement=False, default=PROFILE_ROW_ID)
    payload = Column(PayloadType, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class MetaRow(Base):
    __tablename__ = "store_meta"

    key = Column(String(64), primary_key=True)
    value = Column(String(255), nullable=False)
