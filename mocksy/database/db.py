import aiosqlite
import logging
import os
from config import config

logger = logging.getLogger(__name__)

class Database:
    def __init__(self, db_path: str = None):
        self.db_path = db_path or config.DB_PATH
        self._connection = None

    async def connect(self):
        if not self._connection:
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
            await self.init_db()
            logger.info(f"Database ready at {self.db_path}")

    async def close(self):
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def init_db(self):
        if not self._connection:
            return

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS requests (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_ip TEXT,
                method TEXT,
                path TEXT,
                response_id TEXT, -- NULL if nothing matched
                status_code INTEGER,
                headers TEXT, -- JSON string
                body BLOB,
                timestamp REAL
            )
        """)

        await self._connection.commit()

    async def execute(self, query: str, parameters: tuple = ()):
        if not self._connection:
            await self.connect()
        async with self._connection.execute(query, parameters) as cursor:
            await self._connection.commit()
            return cursor.lastrowid

    async def fetch_all(self, query: str, parameters: tuple = ()):
        if not self._connection:
            await self.connect()
        async with self._connection.execute(query, parameters) as cursor:
            return await cursor.fetchall()

db = Database()
