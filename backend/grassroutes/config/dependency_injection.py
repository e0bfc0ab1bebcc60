from typing import Optional

import redis
from fastapi import Depends

from grassroutes.core.auth import AuthenticatedUser, optional_user, require_user
from grassroutes.core.config import settings
from grassroutes.db.database import get_db  # noqa: F401  re-exported for the endpoints
from grassroutes.services.donation_service import DonationService, donation_service
from grassroutes.services.progress_store import LocalProgressCache, RemoteProgressStore
from grassroutes.services.progress_tracker import ProgressTracker
from grassroutes.services.quiz_engine import QuizSessionManager


_redis_client_instance = None

def get_redis_client() -> redis.Redis:
    """
    Redis client singleton
    """
    global _redis_client_instance
    if _redis_client_instance is None:
        _redis_client_instance = redis.from_url(
            settings.REDIS_URL,
            decode_responses=False
        )
    return _redis_client_instance


def get_local_progress_cache() -> LocalProgressCache:
    return LocalProgressCache(redis_client=get_redis_client())


def get_remote_progress_store() -> RemoteProgressStore:
    return RemoteProgressStore()


def create_progress_tracker(
    user_id: Optional[str],
    local_cache: LocalProgressCache,
    remote_store: RemoteProgressStore,
) -> ProgressTracker:
    """
    Build a ProgressTracker with its collaborators injected
    """
    return ProgressTracker(
        user_id=user_id,
        local_cache=local_cache,
        remote_store=remote_store,
        merge_strategy=settings.PROGRESS_MERGE_STRATEGY,
    )


def get_progress_tracker(
    user: AuthenticatedUser = Depends(require_user),
    local_cache: LocalProgressCache = Depends(get_local_progress_cache),
    remote_store: RemoteProgressStore = Depends(get_remote_progress_store),
) -> ProgressTracker:
    """Tracker of the signed-in user; the route answers 401 without a token."""
    return create_progress_tracker(user.uid, local_cache, remote_store)


def get_optional_progress_tracker(
    user: Optional[AuthenticatedUser] = Depends(optional_user),
    local_cache: LocalProgressCache = Depends(get_local_progress_cache),
    remote_store: RemoteProgressStore = Depends(get_remote_progress_store),
) -> ProgressTracker:
    """Tracker of the visitor; anonymous visitors get a tracker without a user."""
    return create_progress_tracker(user.uid if user else None, local_cache, remote_store)


# Quiz sessions live in this process only
_quiz_session_manager_instance = None

def get_quiz_session_manager() -> QuizSessionManager:
    global _quiz_session_manager_instance
    if _quiz_session_manager_instance is None:
        _quiz_session_manager_instance = QuizSessionManager(
            timeout_minutes=settings.QUIZ_SESSION_TIMEOUT_MINUTES
        )
    return _quiz_session_manager_instance


def get_donation_service() -> DonationService:
    return donation_service
