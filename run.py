import asyncio
import logging
import sys
import os
import uvicorn


sys.path.append(os.getcwd())

from config import config
from mocksy.core.server import MockServer
from mocksy.core.loader import ResponseLoader
from mocksy.core.journal import RequestJournal
from mocksy.database.db import db
from mocksy.web.app import app as web_app


logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logging.getLogger("aiosqlite").setLevel(logging.WARNING)

logger = logging.getLogger("Main")

async def run_mock(loader: ResponseLoader, journal: RequestJournal):
    server = MockServer(
        listen_host=config.MOCK_HOST,
        listen_port=config.MOCK_PORT,
        loader=loader,
        journal=journal
    )

    await db.connect()

    try:
        await server.start()
    except asyncio.CancelledError:
        pass

async def run_web():
    config_uvicorn = uvicorn.Config(web_app, host="0.0.0.0", port=config.WEB_PORT, log_level="info")
    server = uvicorn.Server(config_uvicorn)
    await server.serve()

async def main():
    loader = ResponseLoader(config.RESPONSES_DIR)
    journal = RequestJournal(db)

    web_app.state.loader = loader
    web_app.state.journal = journal

    print("="*60)
    print("Mocksy started")
    print(f"Mock server: {config.MOCK_HOST}:{config.MOCK_PORT} ({len(loader)} responses from {config.RESPONSES_DIR})")
    print(f"Admin panel: http://localhost:{config.WEB_PORT}")
    print("="*60)

    try:
        await asyncio.gather(
            run_mock(loader, journal),
            run_web()
        )
    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        await db.close()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
