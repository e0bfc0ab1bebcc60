import logging
import os
from celery import Celery, signals
from grassroutes.core.config import settings

logger = logging.getLogger(__name__)

# Celery application
celery_app = Celery(
    "grassroutes",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "grassroutes.tasks.db_tasks",
    ]
)


@signals.worker_process_init.connect
def init_worker_process(sender=None, **kwargs):
    """
    Worker processes share nothing with the API process; make sure the
    tables exist before the first write lands.
    """
    from grassroutes.db.init_db import init_db

    logger.info(f"Initializing database for worker (PID: {os.getpid()})...")
    init_db()


celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    timezone="UTC",
    enable_utc=True,

    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,

    # Queues
    task_routes={
        'grassroutes.tasks.db_tasks.save_progress_task': {'queue': 'db_writer_queue'},
    },
    task_default_queue='default',
)
