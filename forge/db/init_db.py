"""
db/init_db.py
-------------
Create all database tables from the ORM metadata.
Quick setup for local development and the test suite; production schemas
are managed by the platform's migrations.

Usage:
    python -m forge.db.init_db
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from forge.core.config import settings
from forge.core.logging import configure_logging, get_logger
from forge.models import Base  # Imports all models so metadata is populated

logger = get_logger(__name__)


async def create_all_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created", count=len(Base.metadata.tables))


async def main() -> None:
    configure_logging()
    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    try:
        await create_all_tables(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
