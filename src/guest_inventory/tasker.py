"""
Background task queue.

Tasks run one at a time, in submission order, on a single worker thread.
Submission is fire-and-forget: results and errors only reach the logs.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_executor: ThreadPoolExecutor | None = None


def _run(name: str, fn: Callable[[], None]) -> None:
    logger.debug(f"Task started: {name}")
    try:
        fn()
    except Exception as e:
        logger.error(f"Task '{name}' failed: {e}", exc_info=True)
    else:
        logger.debug(f"Task finished: {name}")


def enqueue(name: str, fn: Callable[[], None]) -> Future:
    """
    Queue fn to run on the task worker.

    The returned future only lets a host process wait for the queue; it
    never carries fn's result or exception.
    """
    global _executor
    with _lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tasker")
        logger.debug(f"Task queued: {name}")
        return _executor.submit(_run, name, fn)


def close(wait: bool = True) -> None:
    """Stop the worker, optionally waiting for queued tasks to finish."""
    global _executor
    with _lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)
