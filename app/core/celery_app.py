"""
Celery application configuration.

Redis is both the message broker and the result backend. Workers run the
evaluation finalize pipeline and AI analysis generation off the request path.
"""

from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "quality_eval_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_soft_time_limit=240,

    # Result backend
    result_expires=3600,

    # Worker behavior
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
)

# Auto-discover tasks from app.tasks package
celery_app.autodiscover_tasks(['app'])
