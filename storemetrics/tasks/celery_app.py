import logging

from celery import Celery
from celery.schedules import crontab

from storemetrics.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Create Celery instance
celery_app = Celery(
    'storemetrics',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['storemetrics.tasks.store_sync']
)

# Celery configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    # The Shopify client session is process-global; one task per worker process at a time
    worker_prefetch_multiplier=1,
)

# Configure Celery Beat schedule
celery_app.conf.beat_schedule = {
    'schedule-periodic-store-resyncs': {
        'task': 'storemetrics.tasks.store_sync.schedule_periodic_resyncs',
        'schedule': crontab(minute=settings.PERIODIC_RESYNC_MINUTE),
    },
}

if __name__ == '__main__':
    celery_app.start()
