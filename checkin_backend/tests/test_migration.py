import os
import shutil
import tempfile
import unittest
from datetime import datetime, timezone

from checkin_backend.db import FileCheckinStore, InMemoryCheckinStore, SqlCheckinStore, sqlite_url
from checkin_backend.migration import migrate
from checkin_shared.types import Checkin


class MigrationTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.source = FileCheckinStore(self.tmpdir)
        self.source.import_checkins(
            [
                Checkin(full_name="Ana", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc)),
                Checkin(full_name="Bia", created_at=datetime(2024, 5, 2, tzinfo=timezone.utc)),
            ]
        )
        self.source.set_profile({"email": "coach@example.com"})
        self.target = SqlCheckinStore(
            sqlite_url(os.path.join(self.tmpdir, "target.db")), kind="sqlite"
        )

    def tearDown(self):
        self.target.close()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_copies_checkins_and_profile(self):
        result = migrate(self.source, self.target)
        self.assertEqual(result.checkins, 2)
        self.assertTrue(result.profile)
        migrated = self.target.list_checkins()
        self.assertEqual([c.full_name for c in migrated], ["Bia", "Ana"])
        self.assertEqual(migrated[1].created_at, datetime(2024, 5, 1, tzinfo=timezone.utc))
        self.assertEqual(self.target.get_profile().email, "coach@example.com")

    def test_clear_target_first(self):
        self.target.insert_checkin(Checkin(full_name="Stale"))
        result = migrate(self.source, self.target, clear_target=True, include_profile=False)
        self.assertEqual(result.cleared, 1)
        self.assertEqual(len(self.target.list_checkins()), 2)
        self.assertEqual(self.target.get_profile().email, "")

    def test_migrate_into_memory(self):
        target = InMemoryCheckinStore()
        migrate(self.source, target)
        self.assertEqual([c.full_name for c in target.list_checkins()], ["Bia", "Ana"])


if __name__ == "__main__":
    unittest.main()
