from celery import Celery

from app.core.config import settings

ACCOUNTS_QUEUE = "accounts"

celery_app = Celery(
    "notes",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.services.tasks"],
)

# Cascade retries run long after the request that scheduled them, so results
# are kept for the whole retry window
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=settings.CASCADE_RETRY_DELAY_SECONDS
    * (settings.CASCADE_MAX_RETRIES + 1)
    + 3600,
    task_default_queue=ACCOUNTS_QUEUE,
    task_routes={"app.services.tasks.*": {"queue": ACCOUNTS_QUEUE}},
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_connection_retry_on_startup=True,
)
