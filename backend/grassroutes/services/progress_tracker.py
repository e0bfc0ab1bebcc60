# backend/grassroutes/services/progress_tracker.py
import logging
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional

from grassroutes.core.config import settings
from grassroutes.schemas.user_progress import LessonCompletion, ProgressStats
from grassroutes.services.progress_store import (
    LocalProgressCache,
    RemoteProgressStore,
    RemoteStoreUnavailable,
)

logger = logging.getLogger(__name__)

PREFER_REMOTE = "prefer_remote"
LATEST = "latest"


def _newer(local: LessonCompletion, remote: LessonCompletion) -> bool:
    if local.updated_at is None:
        return False
    if remote.updated_at is None:
        return True
    return local.updated_at > remote.updated_at


def merge_records(
    remote: Iterable[LessonCompletion],
    local: Iterable[LessonCompletion],
    strategy: str = PREFER_REMOTE,
) -> List[LessonCompletion]:
    """
    Union of remote and local records, one per lesson id.

    Lesson ids are compared as strings. With ``prefer_remote`` the remote
    record wins whenever both stores know the lesson; with ``latest`` the
    record with the newer timestamp wins and ties go to remote.
    """
    merged: Dict[str, LessonCompletion] = {}
    for record in remote:
        merged[str(record.lesson_id)] = record
    for record in local:
        lesson_id = str(record.lesson_id)
        existing = merged.get(lesson_id)
        if existing is None or (strategy == LATEST and _newer(record, existing)):
            merged[lesson_id] = record
    return list(merged.values())


class ProgressTracker:
    """
    Lesson completion state of one user.

    Reads merge the durable remote store with the local Redis cache. Marking
    a lesson complete writes the cache synchronously and leaves the remote
    write to the background worker; toggling waits for the remote write and
    reverts when it fails. Without a user every query answers False and
    every write returns False.

    Attributes:
        user_id: Firebase uid, or None for anonymous visitors
        local_cache: LocalProgressCache
        remote_store: RemoteProgressStore
        merge_strategy: 'prefer_remote' or 'latest'
    """

    def __init__(
        self,
        user_id: Optional[str],
        local_cache: LocalProgressCache,
        remote_store: RemoteProgressStore,
        merge_strategy: str = settings.PROGRESS_MERGE_STRATEGY,
    ):
        self.user_id = user_id
        self.local_cache = local_cache
        self.remote_store = remote_store
        self.merge_strategy = merge_strategy
        self._records: Dict[str, LessonCompletion] = {}
        self._loaded = False

    def load_progress(self) -> List[LessonCompletion]:
        """Merge remote and local records into memory; returns the completed ones."""
        self._loaded = True
        if not self.user_id:
            self._records = {}
            return []

        try:
            remote = self.remote_store.get_lesson_records(self.user_id)
        except RemoteStoreUnavailable:
            logger.warning(f"Remote progress unavailable for {self.user_id}, using cached progress only")
            remote = []

        local = self.local_cache.get_records(self.user_id)
        merged = merge_records(remote, local, self.merge_strategy)
        self._records = {record.lesson_id: record for record in merged}
        return self.completed_lessons()

    def reload_progress(self) -> List[LessonCompletion]:
        """Replace in-memory state with the remote records; keeps the current state if the read fails."""
        if not self.user_id:
            return []
        try:
            remote = self.remote_store.get_lesson_records(self.user_id)
        except RemoteStoreUnavailable:
            logger.warning(f"Reload of remote progress failed for {self.user_id}")
            return self.completed_lessons()
        self._records = {record.lesson_id: record for record in remote}
        self._loaded = True
        return self.completed_lessons()

    def _ensure_loaded(self):
        if not self._loaded:
            self.load_progress()

    def completed_lessons(self) -> List[LessonCompletion]:
        return [record for record in self._records.values() if record.is_complete]

    def completed_lesson_ids(self) -> List[str]:
        self._ensure_loaded()
        return [record.lesson_id for record in self.completed_lessons()]

    def is_lesson_completed(self, lesson_id) -> bool:
        if not self.user_id:
            return False
        self._ensure_loaded()
        record = self._records.get(str(lesson_id))
        return bool(record and record.is_complete)

    def mark_lesson_complete(self, lesson_id) -> bool:
        """
        Record a completed lesson.

        Marking an already completed lesson again changes nothing in memory;
        the cache and the remote store are still refreshed.
        """
        if not self.user_id:
            return False
        self._ensure_loaded()
        lesson_id = str(lesson_id)
        changed_at = datetime.now(UTC)

        self.local_cache.set_status(self.user_id, lesson_id, True)
        if not self.is_lesson_completed(lesson_id):
            self._records[lesson_id] = LessonCompletion(lesson_id=lesson_id, is_complete=True, updated_at=changed_at)
        self.remote_store.schedule_update(self.user_id, lesson_id, True, updated_at=changed_at)
        logger.info(f"Lesson {lesson_id} marked complete for {self.user_id}")
        return True

    def toggle_lesson_completion(self, lesson_id) -> bool:
        """
        Flip the completion state of a lesson.

        The in-memory state flips first; it is reverted when the remote write
        fails. After a successful write the cache gets the new state too.
        """
        if not self.user_id:
            return False
        self._ensure_loaded()
        lesson_id = str(lesson_id)

        previous = self._records.get(lesson_id)
        new_status = not self.is_lesson_completed(lesson_id)
        changed_at = datetime.now(UTC)
        if new_status:
            self._records[lesson_id] = LessonCompletion(lesson_id=lesson_id, is_complete=True, updated_at=changed_at)
        else:
            self._records.pop(lesson_id, None)

        if not self.remote_store.update_lesson_progress(self.user_id, lesson_id, new_status, updated_at=changed_at):
            if previous is None:
                self._records.pop(lesson_id, None)
            else:
                self._records[lesson_id] = previous
            logger.warning(f"Toggle of lesson {lesson_id} for {self.user_id} reverted")
            return False

        self.local_cache.set_status(self.user_id, lesson_id, new_status)
        return True

    def get_progress_stats(self) -> ProgressStats:
        if not self.user_id:
            return ProgressStats()
        ids = self.completed_lesson_ids()
        return ProgressStats(total_completed=len(ids), completed_lesson_ids=ids)
