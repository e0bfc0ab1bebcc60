import logging

from sqlalchemy.exc import SQLAlchemyError

from grassroutes.celery_app import celery_app
from grassroutes.core.config import settings
from grassroutes.db.database import SessionLocal
from grassroutes.crud.crud_progress import progress as crud_progress
from grassroutes.schemas.user_progress import UserProgressCreate

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name='grassroutes.tasks.db_tasks.save_progress_task',
    max_retries=settings.PROGRESS_WRITE_MAX_RETRIES,
)
def save_progress_task(self, progress_data: dict):
    """Upsert one lesson completion record; database errors are retried."""
    db = SessionLocal()
    try:
        progress_in = UserProgressCreate(**progress_data)
        crud_progress.upsert(db=db, obj_in=progress_in)
        logger.info(
            f"DB Task: Saved progress of lesson {progress_in.lesson_id} "
            f"for {progress_in.user_id} (complete={progress_in.is_complete})"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"DB Task: Error saving progress {progress_data}: {e}")
        raise self.retry(exc=e, countdown=settings.PROGRESS_WRITE_RETRY_DELAY_SECONDS)
    finally:
        db.close()
