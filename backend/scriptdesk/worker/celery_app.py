"""
Celery application for background metrics refresh.

Broker/backend: Redis (REDIS_URL env).
Beat refreshes YouTube stats of published scripts every
STATS_REFRESH_INTERVAL_MINUTES.
"""
from celery import Celery

from scriptdesk.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "scriptdesk",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    task_default_queue="metrics",
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)

if settings.celery_enabled:
    celery_app.conf.beat_schedule = {
        "refresh-published-stats": {
            "task": "metrics.refresh_published_stats",
            "schedule": settings.stats_refresh_interval_minutes * 60.0,
        },
    }

celery_app.autodiscover_tasks(["scriptdesk.worker"])
