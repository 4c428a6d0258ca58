# backend/carenow/core/executors.py
"""
Dedicated executor for blocking store work.

Every service built by the container shares one SQLAlchemy session, and a
session must only be used by one thread at a time. Flows therefore run
their service calls through a StoreExecutor, which owns a single worker
thread, instead of the default asyncio thread pool.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
import logging
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")


class StoreExecutor:
    """Serialises calls onto one worker thread."""

    def __init__(self, thread_name_prefix: str = "carenow-store"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=thread_name_prefix)
        logger.info(f"[EXECUTORS] Created store executor {thread_name_prefix}")

    async def run(self, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args, **kwargs))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


async def run_blocking(
    store: Optional[StoreExecutor], func: Callable[..., R], *args: Any, **kwargs: Any
) -> R:
    """Run ``func`` on ``store`` when given, else on the default thread pool."""
    if store is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    return await store.run(func, *args, **kwargs)
