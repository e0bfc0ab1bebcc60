#!/usr/bin/env python3
"""
Progress tracker tests

Merging of remote and cached records, write-through marking, toggles with
rollback, and the Redis-backed local cache.
"""

import json
import pytest
from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

from grassroutes.schemas.user_progress import LessonCompletion
from grassroutes.services.progress_store import LocalProgressCache, RemoteStoreUnavailable
from grassroutes.services.progress_tracker import ProgressTracker, merge_records


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def remote_store() -> MagicMock:
    store = MagicMock()
    store.get_lesson_records.return_value = []
    store.update_lesson_progress.return_value = True
    store.schedule_update.return_value = True
    return store


def make_tracker(local_cache, remote_store, user_id="user-1", strategy="prefer_remote") -> ProgressTracker:
    return ProgressTracker(user_id=user_id, local_cache=local_cache, remote_store=remote_store, merge_strategy=strategy)


class TestMergeRecords:
    """Union of remote and local records"""

    def test_union_deduplicates_by_string_id(self):
        remote = [LessonCompletion(lesson_id="1"), LessonCompletion(lesson_id="2")]
        local = [LessonCompletion(lesson_id="2"), LessonCompletion(lesson_id="3")]
        merged = merge_records(remote, local)
        assert sorted(r.lesson_id for r in merged) == ["1", "2", "3"]

    def test_prefer_remote_keeps_remote_record(self):
        remote = [LessonCompletion(lesson_id="4", is_complete=False, updated_at=NOW - timedelta(days=1))]
        local = [LessonCompletion(lesson_id="4", is_complete=True, updated_at=NOW)]
        merged = merge_records(remote, local, "prefer_remote")
        assert merged[0].is_complete is False

    def test_latest_keeps_newer_record(self):
        remote = [LessonCompletion(lesson_id="4", is_complete=False, updated_at=NOW - timedelta(days=1))]
        local = [LessonCompletion(lesson_id="4", is_complete=True, updated_at=NOW)]
        merged = merge_records(remote, local, "latest")
        assert merged[0].is_complete is True

    def test_latest_tie_goes_to_remote(self):
        remote = [LessonCompletion(lesson_id="4", is_complete=False, updated_at=NOW)]
        local = [LessonCompletion(lesson_id="4", is_complete=True, updated_at=NOW)]
        assert merge_records(remote, local, "latest")[0].is_complete is False


class TestProgressTracker:
    """Tracker behaviour with a mocked remote store"""

    def test_load_merges_remote_and_cache(self, local_cache, remote_store):
        remote_store.get_lesson_records.return_value = [LessonCompletion(lesson_id="1")]
        local_cache.set_status("user-1", 2, True)

        tracker = make_tracker(local_cache, remote_store)
        completed = tracker.load_progress()

        assert sorted(r.lesson_id for r in completed) == ["1", "2"]
        assert tracker.is_lesson_completed(1) is True
        assert tracker.is_lesson_completed("2") is True
        assert tracker.is_lesson_completed(3) is False

    def test_remote_failure_falls_back_to_cache(self, local_cache, remote_store):
        remote_store.get_lesson_records.side_effect = RemoteStoreUnavailable("down")
        local_cache.set_status("user-1", 5, True)

        tracker = make_tracker(local_cache, remote_store)
        assert [r.lesson_id for r in tracker.load_progress()] == ["5"]

    def test_mark_complete_is_idempotent(self, local_cache, remote_store):
        tracker = make_tracker(local_cache, remote_store)
        assert tracker.mark_lesson_complete(7) is True
        first = tracker.get_progress_stats()
        assert tracker.mark_lesson_complete(7) is True
        second = tracker.get_progress_stats()

        assert first == second
        assert second.total_completed == 1
        assert second.completed_lesson_ids == ["7"]

    def test_mark_complete_writes_cache_and_queues_remote(self, local_cache, remote_store, fake_redis):
        tracker = make_tracker(local_cache, remote_store)
        tracker.mark_lesson_complete(3)

        cached = json.loads(fake_redis.get("completedLesson_user-1_3"))
        assert cached["lessonId"] == "3"
        assert cached["isComplete"] is True
        assert isinstance(cached["timestamp"], int)
        remote_store.schedule_update.assert_called_once()
        args, kwargs = remote_store.schedule_update.call_args
        assert args == ("user-1", "3", True)
        assert kwargs["updated_at"].tzinfo is not None

    def test_mark_complete_ignores_queue_failure(self, local_cache, remote_store):
        remote_store.schedule_update.return_value = False
        tracker = make_tracker(local_cache, remote_store)
        assert tracker.mark_lesson_complete(3) is True
        assert tracker.is_lesson_completed(3) is True

    def test_toggle_flips_and_updates_cache(self, local_cache, remote_store, fake_redis):
        tracker = make_tracker(local_cache, remote_store)
        assert tracker.toggle_lesson_completion(9) is True
        assert tracker.is_lesson_completed(9) is True
        assert remote_store.update_lesson_progress.call_args.args == ("user-1", "9", True)

        assert tracker.toggle_lesson_completion(9) is True
        assert tracker.is_lesson_completed(9) is False
        assert json.loads(fake_redis.get("completedLesson_user-1_9"))["isComplete"] is False

    def test_toggle_off_survives_reload(self, local_cache, remote_store):
        tracker = make_tracker(local_cache, remote_store)
        tracker.mark_lesson_complete(9)
        tracker.toggle_lesson_completion(9)

        # remote never saw the completion; the cache now says incomplete
        remote_store.get_lesson_records.return_value = []
        fresh = make_tracker(local_cache, remote_store)
        assert fresh.is_lesson_completed(9) is False

    def test_toggle_rolls_back_on_remote_failure(self, local_cache, remote_store):
        remote_store.get_lesson_records.return_value = [LessonCompletion(lesson_id="9")]
        remote_store.update_lesson_progress.return_value = False
        tracker = make_tracker(local_cache, remote_store)

        assert tracker.toggle_lesson_completion(9) is False
        assert tracker.is_lesson_completed(9) is True
        assert local_cache.get_records("user-1") == []

    def test_reload_uses_remote_only(self, local_cache, remote_store):
        local_cache.set_status("user-1", 1, True)
        remote_store.get_lesson_records.return_value = [LessonCompletion(lesson_id="2")]
        tracker = make_tracker(local_cache, remote_store)
        tracker.load_progress()

        reloaded = tracker.reload_progress()
        assert [r.lesson_id for r in reloaded] == ["2"]

    def test_without_user_everything_is_false(self, local_cache, remote_store):
        tracker = make_tracker(local_cache, remote_store, user_id=None)
        assert tracker.load_progress() == []
        assert tracker.is_lesson_completed(1) is False
        assert tracker.mark_lesson_complete(1) is False
        assert tracker.toggle_lesson_completion(1) is False
        assert tracker.get_progress_stats().total_completed == 0
        remote_store.schedule_update.assert_not_called()
        remote_store.update_lesson_progress.assert_not_called()


class TestLocalProgressCache:
    """Redis-backed cache"""

    def test_malformed_entries_are_skipped(self, local_cache, fake_redis):
        local_cache.set_status("user-1", 1, True)
        fake_redis.set("completedLesson_user-1_2", "not json")
        fake_redis.set("completedLesson_user-1_3", json.dumps({"isComplete": True}))

        records = local_cache.get_records("user-1")
        assert [r.lesson_id for r in records] == ["1"]

    def test_other_users_with_same_prefix_are_ignored(self, local_cache):
        local_cache.set_status("user-1", 1, True)
        local_cache.set_status("user-1_extra", 2, True)

        assert [r.lesson_id for r in local_cache.get_records("user-1")] == ["1"]
        assert [r.lesson_id for r in local_cache.get_records("user-1_extra")] == ["2"]

    def test_timestamp_becomes_updated_at(self, local_cache, fake_redis):
        fake_redis.set("completedLesson_u_4", json.dumps({"lessonId": 4, "isComplete": True, "timestamp": 1714564800000}))
        record = local_cache.get_records("u")[0]
        assert record.lesson_id == "4"
        assert record.updated_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
