"""
Operation-scoped database sessions.

Repositories acquire a session per operation and release it as soon as the
statement commits, so no connection is held while a request waits on the
payment provider.

Usage:
    async with get_session() as session:
        result = await session.execute(query)
    # Committed and released here
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger
from common.db.session import AsyncSessionLocal

logger = get_logger(__name__)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Acquire a session for a single unit of work.

    Commits on success, rolls back and re-raises on any exception.
    """
    start = time.perf_counter()
    async with AsyncSessionLocal() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(f"Operation session acquire: {acquire_time * 1000:.2f}ms")

        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug(f"Operation rollback due to: {e!r}")
            await session.rollback()
            raise
