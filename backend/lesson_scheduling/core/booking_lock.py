from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Iterable, Iterator, List, Optional

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _lock_key(resource_id: str, lesson_date: date) -> str:
    return f"resource:{resource_id}:{lesson_date.isoformat()}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.booking_lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if settings.redis_url is None:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("booking_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_resource_lock(
    resource_id: str, lesson_date: date, ttl_s: Optional[int] = None
) -> bool:
    """
    Try to take one resource's per-date booking mutex.

    Returns True when the lock is held or when Redis is not configured or
    unreachable (the database row lock still serializes commits).
    Returns False only when another holder has the lock.
    """
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("acquire", "redis_unavailable")
        if settings.redis_url is not None:
            logger.warning(
                "booking_lock_redis_unavailable",
                extra={"resource_id": resource_id, "lesson_date": str(lesson_date)},
            )
        return True
    try:
        acquired = bool(
            client.set(
                _namespaced_key(_lock_key(resource_id, lesson_date)),
                str(time.time()),
                nx=True,
                ex=ttl_s or settings.booking_lock_ttl_seconds,
            )
        )
        if acquired:
            prometheus_metrics.record_booking_lock("acquire", "success")
        else:
            prometheus_metrics.record_booking_lock("acquire", "blocked")
        return acquired
    except RedisError as exc:
        prometheus_metrics.record_booking_lock("acquire", "error")
        logger.warning(
            "booking_lock_acquire_failed",
            extra={
                "resource_id": resource_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return True


def release_resource_lock(resource_id: str, lesson_date: date) -> None:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("release", "redis_unavailable")
        return
    try:
        deleted = client.delete(_namespaced_key(_lock_key(resource_id, lesson_date)))
        if deleted:
            prometheus_metrics.record_booking_lock("release", "success")
        else:
            prometheus_metrics.record_booking_lock("release", "not_found")
    except RedisError as exc:
        prometheus_metrics.record_booking_lock("release", "error")
        logger.warning(
            "booking_lock_release_failed",
            extra={
                "resource_id": resource_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


def booking_resource_ids(
    instructor_id: str, student_id: str, vehicle_id: Optional[str] = None
) -> List[str]:
    """Mutex names covering everything a lesson occupies."""
    resource_ids = [f"instructor:{instructor_id}", f"student:{student_id}"]
    if vehicle_id:
        resource_ids.append(f"vehicle:{vehicle_id}")
    return resource_ids


@contextmanager
def resource_locks(
    resource_ids: Iterable[str], lesson_date: date, ttl_s: Optional[int] = None
) -> Iterator[bool]:
    """
    Take the mutex for every resource, in sorted order, or none of them.

    Yields False when any one is held elsewhere; the ones already taken are
    released before the caller sees that result.
    """
    ordered = sorted(set(resource_ids))
    held: List[str] = []
    for resource_id in ordered:
        if not acquire_resource_lock(resource_id, lesson_date, ttl_s=ttl_s):
            break
        held.append(resource_id)

    acquired = len(held) == len(ordered)
    if not acquired:
        for resource_id in reversed(held):
            release_resource_lock(resource_id, lesson_date)
        held = []

    try:
        yield acquired
    finally:
        for resource_id in reversed(held):
            release_resource_lock(resource_id, lesson_date)
