# backend/carenow/services/base.py
"""
Common plumbing for CareNow services.

Every service owns a SQLAlchemy session and commits through
``transaction()``. Public operations are wrapped with
``BaseService.measure_operation`` so their timings and outcomes are kept
in process and slow calls are logged.
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, ServiceException

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 1.0

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class OperationStats:
    count: int = 0
    failures: int = 0
    total_time: float = 0.0
    min_time: float = float("inf")
    max_time: float = 0.0

    def record(self, elapsed: float, success: bool) -> None:
        self.count += 1
        self.total_time += elapsed
        self.min_time = min(self.min_time, elapsed)
        self.max_time = max(self.max_time, elapsed)
        if not success:
            self.failures += 1

    def summary(self) -> Dict[str, Any]:
        successes = self.count - self.failures
        return {
            "count": self.count,
            "avg_time": self.total_time / self.count,
            "min_time": self.min_time,
            "max_time": self.max_time,
            "total_time": self.total_time,
            "success_rate": successes / self.count,
            "success_count": successes,
            "failure_count": self.failures,
        }


class BaseService:
    """Base class for catalog, availability, booking, review, notification and user services."""

    # service class name -> operation name -> stats
    _class_metrics: Dict[str, Dict[str, OperationStats]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Storage failures are re-raised as ``ServiceException``; domain
        exceptions raised inside the block propagate unchanged.
        """
        try:
            yield self.db
            self.db.commit()
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            self.logger.error("Transaction rolled back: %s", exc)
            raise ServiceException(f"Database operation failed: {exc}") from exc
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """Record timing and outcome of a sync or async service method."""

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                    started = time.perf_counter()
                    success = False
                    try:
                        result = await func(self, *args, **kwargs)
                        success = True
                        return result
                    finally:
                        self._observe(operation_name, time.perf_counter() - started, success)

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                success = False
                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                finally:
                    self._observe(operation_name, time.perf_counter() - started, success)

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _observe(self, operation: str, elapsed: float, success: bool) -> None:
        stats = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        stats.setdefault(operation, OperationStats()).record(elapsed, success)
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")

    def get_metrics(self) -> Dict[str, Any]:
        """Summary per measured operation of this service class."""
        stats = BaseService._class_metrics.get(self.__class__.__name__, {})
        return {name: entry.summary() for name, entry in stats.items() if entry.count}

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
