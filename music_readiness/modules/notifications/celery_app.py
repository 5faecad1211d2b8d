from __future__ import annotations

from celery import Celery

from music_readiness.core.config import settings

celery_app = Celery(
    'notifications',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['music_readiness.modules.notifications.tasks'],
)

celery_app.conf.update(
    task_default_queue='notifications',
    broker_connection_retry_on_startup=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
)

celery_app.conf.beat_schedule = {
    'partial-lead-digest': {
        'task': 'music_readiness.modules.notifications.tasks.send_partial_digest',
        'schedule': settings.PARTIAL_DIGEST_INTERVAL_SECONDS,
    }
}
