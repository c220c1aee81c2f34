"""Request-scoped database sessions."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from rapport.infra.db.base import AsyncSessionLocal


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield one AsyncSession per request."""
    async with AsyncSessionLocal() as session:
        yield session
