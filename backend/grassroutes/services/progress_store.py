# backend/grassroutes/services/progress_store.py
import json
import logging
import re
import time
from datetime import datetime, UTC
from typing import Callable, List, Optional

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grassroutes.core.config import settings
from grassroutes.crud.crud_progress import progress as crud_progress
from grassroutes.db.database import SessionLocal
from grassroutes.schemas.user_progress import LessonCompletion, UserProgressCreate

logger = logging.getLogger(__name__)

LOCAL_KEY_PREFIX = "completedLesson_"


class RemoteStoreUnavailable(Exception):
    """The durable progress store could not be read."""


def _escape_glob(value: str) -> str:
    return re.sub(r"([*?\[\]\\])", r"\\\1", value)


class LocalProgressCache:
    """
    Fast per-user completion cache in Redis.

    One key per completed lesson, ``completedLesson_<uid>_<lessonId>``,
    holding ``{"lessonId", "isComplete", "timestamp"}`` (timestamp in
    epoch milliseconds). Writes are synchronous; Redis errors are logged
    and reported as a failed write or an empty read.
    """

    def __init__(self, redis_client: redis.Redis, ttl_seconds: Optional[int] = settings.LOCAL_PROGRESS_TTL_SECONDS):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(user_id: str, lesson_id) -> str:
        return f"{LOCAL_KEY_PREFIX}{user_id}_{lesson_id}"

    def set_status(self, user_id: str, lesson_id, is_complete: bool = True) -> bool:
        lesson_id = str(lesson_id)
        payload = json.dumps({
            "lessonId": lesson_id,
            "isComplete": is_complete,
            "timestamp": int(time.time() * 1000),
        })
        try:
            self.redis_client.set(self.key_for(user_id, lesson_id), payload, ex=self.ttl_seconds)
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to cache progress of lesson {lesson_id} for {user_id}: {e}")
            return False

    def get_records(self, user_id: str) -> List[LessonCompletion]:
        prefix = f"{LOCAL_KEY_PREFIX}{user_id}_"
        records = []
        try:
            keys = list(self.redis_client.scan_iter(match=f"{_escape_glob(prefix)}*"))
        except redis.RedisError as e:
            logger.error(f"Failed to list cached progress for {user_id}: {e}")
            return records

        for raw_key in keys:
            key = raw_key.decode("utf-8") if isinstance(raw_key, bytes) else raw_key
            try:
                raw = self.redis_client.get(raw_key)
                if raw is None:
                    continue
                data = json.loads(raw)
                lesson_id = str(data["lessonId"])
                # keys of a uid that merely starts with this uid carry another lesson id
                if key != prefix + lesson_id:
                    continue
                timestamp = data.get("timestamp")
                records.append(LessonCompletion(
                    lesson_id=lesson_id,
                    is_complete=bool(data.get("isComplete", True)),
                    updated_at=datetime.fromtimestamp(timestamp / 1000, UTC) if timestamp else None,
                ))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed cached progress entry {key}: {e}")
            except redis.RedisError as e:
                logger.error(f"Failed to read cached progress entry {key}: {e}")
        return records


def _to_completion(row) -> LessonCompletion:
    updated_at = row.updated_at
    if updated_at is not None and updated_at.tzinfo is None:
        # SQLite drops tzinfo; stored values are UTC
        updated_at = updated_at.replace(tzinfo=UTC)
    return LessonCompletion(lesson_id=str(row.lesson_id), is_complete=bool(row.is_complete), updated_at=updated_at)


class RemoteProgressStore:
    """
    Durable completion records in the ``user_progress`` table.

    Reads raise ``RemoteStoreUnavailable`` on database errors; writes return
    a success flag. ``schedule_update`` hands the write to the Celery
    ``db_writer_queue`` and returns immediately.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def get_lesson_records(self, user_id: str) -> List[LessonCompletion]:
        db = self.session_factory()
        try:
            return [_to_completion(row) for row in crud_progress.get_records_by_user(db, user_id=user_id)]
        except SQLAlchemyError as e:
            logger.error(f"Failed to read progress for {user_id}: {e}")
            raise RemoteStoreUnavailable(str(e)) from e
        finally:
            db.close()

    def update_lesson_progress(
        self, user_id: str, lesson_id, is_complete: bool, updated_at: Optional[datetime] = None
    ) -> bool:
        db = self.session_factory()
        try:
            crud_progress.upsert(db, obj_in=UserProgressCreate(
                user_id=user_id,
                lesson_id=str(lesson_id),
                is_complete=is_complete,
                updated_at=updated_at or datetime.now(UTC),
            ))
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to write progress of lesson {lesson_id} for {user_id}: {e}")
            return False
        finally:
            db.close()

    def schedule_update(
        self, user_id: str, lesson_id, is_complete: bool = True, updated_at: Optional[datetime] = None
    ) -> bool:
        """
        Queue the write on the background worker; failures to enqueue are logged only.

        The payload carries the time of the change so that a late or retried
        write cannot override a newer one.
        """
        from grassroutes.tasks.db_tasks import save_progress_task

        progress_data = {
            "user_id": user_id,
            "lesson_id": str(lesson_id),
            "is_complete": is_complete,
            "updated_at": (updated_at or datetime.now(UTC)).isoformat(),
        }
        try:
            save_progress_task.apply_async(args=[progress_data], queue="db_writer_queue")
            return True
        except Exception as e:
            logger.error(f"Failed to queue progress write of lesson {lesson_id} for {user_id}: {e}")
            return False
