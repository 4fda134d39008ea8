"""
Copy check-ins and the trainer profile from one storage backend to another.

Example:
    python scripts/migrate_store.py --from filesystem --to postgres \
        --data-dir data --database-url postgresql://user:pw@host/db
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_backend.config import get_settings
from checkin_backend.dependencies import open_store
from checkin_backend.migration import migrate

logger = logging.getLogger(__name__)

BACKENDS = ("filesystem", "sqlite", "postgres")


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Migrate check-ins between storage backends")
    parser.add_argument("--from", dest="source", choices=BACKENDS, required=True)
    parser.add_argument("--to", dest="target", choices=BACKENDS, required=True)
    parser.add_argument(
        "--data-dir",
        default=settings.data_dir,
        help="Directory holding checkins.json and profile.json",
    )
    parser.add_argument("--sqlite-path", default=settings.sqlite_path)
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument(
        "--clear-target",
        action="store_true",
        help="Delete existing check-ins in the target first",
    )
    parser.add_argument(
        "--skip-profile",
        action="store_true",
        help="Leave the target profile untouched",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report what would be copied",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    if args.source == args.target:
        parser.error("--from and --to must differ")

    store_args = {
        "data_dir": args.data_dir,
        "sqlite_path": args.sqlite_path,
        "database_url": args.database_url,
    }
    try:
        source = open_store(args.source, **store_args)
        if args.dry_run:
            count = len(source.list_checkins())
            logger.info("Dry run: would copy %d check-ins from %s to %s", count, args.source, args.target)
            return 0
        target = open_store(args.target, **store_args)
        result = migrate(
            source,
            target,
            include_profile=not args.skip_profile,
            clear_target=args.clear_target,
        )
    except Exception as exc:
        logger.exception("Migration failed: %s", exc)
        return 1

    logger.info(
        "Done: %d check-ins copied, %d cleared, profile copied: %s",
        result.checkins,
        result.cleared,
        result.profile,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
