import os
import shutil
import unittest
from mocksy.database.db import Database
from mocksy.core.journal import RequestJournal
from mocksy.core.parser import HttpRequest


class TestRequestJournal(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.test_dir = "tests/db_journal"
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)
        self.db = Database(os.path.join(self.test_dir, "journal.sqlite"))
        await self.db.connect()
        self.journal = RequestJournal(self.db)

    async def asyncTearDown(self):
        await self.db.close()
        shutil.rmtree(self.test_dir)

    async def test_tables_created(self):
        rows = await self.db.fetch_all("SELECT name FROM sqlite_master WHERE type='table'")
        self.assertIn('requests', [row['name'] for row in rows])

    async def test_record_and_recent(self):
        req1 = HttpRequest(method="GET", path="/hello", headers={"Host": "localhost"}, client_ip="10.0.0.1")
        req2 = HttpRequest(method="POST", path="/missing", body=b"payload")

        first = await self.journal.record(req1, "hello", 200)
        second = await self.journal.record(req2, None, 404)
        self.assertGreater(first, 0)
        self.assertGreater(second, first)

        entries = await self.journal.recent()
        self.assertEqual(len(entries), 2)
        # новые сверху
        self.assertEqual(entries[0]['path'], "/missing")
        self.assertIsNone(entries[0]['response_id'])
        self.assertEqual(entries[0]['body'], "payload")
        self.assertEqual(entries[1]['headers'], {"Host": "localhost"})
        self.assertEqual(entries[1]['client_ip'], "10.0.0.1")

        entries = await self.journal.recent(limit=1)
        self.assertEqual(len(entries), 1)

    async def test_hits(self):
        req = HttpRequest(method="GET", path="/hello")
        for _ in range(3):
            await self.journal.record(req, "hello", 200)
        await self.journal.record(req, "other", 200)

        self.assertEqual(await self.journal.hits("hello"), 3)
        self.assertEqual(await self.journal.hits("nobody"), 0)

    async def test_record_failure_logged(self):
        class BrokenDatabase:
            async def execute(self, query, parameters=()):
                raise RuntimeError("database is locked")

        journal = RequestJournal(BrokenDatabase())
        req = HttpRequest(method="GET", path="/x")
        with self.assertLogs("mocksy.core.journal", level="ERROR"):
            self.assertEqual(await journal.record(req, "x", 200), -1)

if __name__ == "__main__":
    unittest.main()
