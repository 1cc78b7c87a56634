"""
Create any missing tables in the connected database.

Run once after deploying (idempotent):
  python -m feedesk.db.schema_check
"""

import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import feedesk.auth.models  # noqa: F401  registers users/roles on Base.metadata
import feedesk.core.models  # noqa: F401
from feedesk.core.config import settings
from feedesk.core.logging_config import setup_logging
from feedesk.db.session import Base, engine

logger = logging.getLogger(__name__)


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create tables that do not exist yet; returns the names that were created."""
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        missing = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
        if missing:
            await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All required tables already exist in the database.")
    return missing


async def main() -> None:
    setup_logging(settings.log_level, settings.log_dir)
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
