from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from crm.db.session import AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped database session."""
    async with AsyncSessionLocal() as session:
        yield session
