import asyncio
from typing import List

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.celery import celery_app
from app.core.config import settings
from app.core.errors import DatabaseError
from app.core.storage import get_storage

logger = structlog.get_logger(__name__)


async def _run_cascade(user_id: str) -> List[str]:
    # Each task run gets its own engine: the worker's event loop is per-call
    from app.services.account import account_service

    engine = create_async_engine(settings.DATABASE_URL)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as db:
            return await account_service.run_data_cascade(db, get_storage(), user_id)
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=settings.CASCADE_MAX_RETRIES,
    default_retry_delay=settings.CASCADE_RETRY_DELAY_SECONDS,
)
def retry_account_cascade(self, user_id: str):
    """Re-run the data cascade for an account whose identity is already gone.

    Every step deletes by user id, so repeated runs are harmless.
    """
    failed = asyncio.run(_run_cascade(user_id))

    if failed:
        logger.warning(
            "Cascade retry incomplete",
            user_id=user_id,
            failed_steps=failed,
            attempt=self.request.retries,
        )
        raise self.retry(exc=DatabaseError("Cascade retry incomplete", failed))

    logger.info("Cascade retry completed", user_id=user_id)
    return {"user_id": user_id, "status": "completed"}
