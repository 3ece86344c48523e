import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.models import Base
from app.db.session import engine

logger = logging.getLogger(__name__)


async def init_models(db_engine: AsyncEngine) -> None:
    """Create the subscriptions and subscription_tokens tables."""

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_models(engine))
