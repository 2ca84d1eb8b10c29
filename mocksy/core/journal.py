import json
import time
import logging
from typing import List, Optional
from mocksy.database.db import Database, db as default_db
from mocksy.core.parser import HttpRequest

logger = logging.getLogger(__name__)

class RequestJournal:
    """Keeps a record of every request the mock server answered."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or default_db

    async def record(self, req: HttpRequest, response_id: Optional[str], status_code: int) -> int:
        try:
            return await self.db.execute(
                """
                INSERT INTO requests (client_ip, method, path, response_id, status_code, headers, body, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (req.client_ip, req.method, req.path, response_id, status_code,
                 json.dumps(req.headers), req.body, time.time())
            )
        except Exception as e:
            logger.error(f"Failed to record request {req.method} {req.path}: {e}")
            return -1

    async def recent(self, limit: int = 50) -> List[dict]:
        rows = await self.db.fetch_all(
            "SELECT * FROM requests ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,)
        )
        entries = []
        for row in rows:
            entry = dict(row)
            entry['headers'] = json.loads(entry['headers'] or "{}")
            if isinstance(entry.get('body'), bytes):
                entry['body'] = entry['body'].decode('utf-8', errors='replace')
            entries.append(entry)
        return entries

    async def hits(self, response_id: str) -> int:
        rows = await self.db.fetch_all(
            "SELECT COUNT(*) AS hits FROM requests WHERE response_id = ?",
            (response_id,)
        )
        return rows[0]['hits'] if rows else 0
