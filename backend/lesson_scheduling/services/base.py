# backend/lesson_scheduling/services/base.py
"""
Shared base for scheduling services.

Every service gets:
- the caller's Session (services own commit and rollback, repositories only flush)
- a per-class logger
- @measure_operation timing, exported to Prometheus and kept in-process
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_EMPTY_STATS = {
    "count": 0,
    "total_time": 0.0,
    "success_count": 0,
    "failure_count": 0,
    "min_time": float("inf"),
    "max_time": 0.0,
}


class BaseService:
    """
    Base class for scheduling services.

    Subclasses call super().__init__(db) and then build their repositories
    through RepositoryFactory on the same session.
    """

    # service name -> operation -> running stats
    _class_metrics: Dict[str, Dict[str, Dict[str, float]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Database errors surface as ServiceException; domain exceptions
        (conflicts, not-found, validation) propagate unchanged after the
        rollback.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception as e:
            self.logger.debug(f"Rolling back after {type(e).__name__}: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record the outcome.

        Usage:
            @BaseService.measure_operation("generate_lessons")
            def generate_lessons(self, tenant_id, pattern_id):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                started = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - started
                    self._record_metric(operation_name, elapsed, success)

                    if elapsed > settings.slow_operation_threshold_seconds:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        metrics = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        stats = metrics.setdefault(operation, dict(_EMPTY_STATS))
        stats["count"] += 1
        stats["total_time"] += elapsed
        stats["min_time"] = min(stats["min_time"], elapsed)
        stats["max_time"] = max(stats["max_time"], elapsed)
        if success:
            stats["success_count"] += 1
        else:
            stats["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Per-operation count, timings and success rate for this service class."""
        result = {}
        for operation, stats in BaseService._class_metrics.get(self.__class__.__name__, {}).items():
            count = stats["count"]
            if not count:
                continue
            result[operation] = {
                "count": count,
                "avg_time": stats["total_time"] / count,
                "min_time": stats["min_time"],
                "max_time": stats["max_time"],
                "success_rate": stats["success_count"] / count,
            }
        return result
