"""Bounded parallel map/for-each with fail-fast cancellation."""

import concurrent.futures
import logging
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

DEFAULT_MAX_WORKERS = 4

class CancelledError(Exception):
    """The batch was cancelled from outside before every task ran."""

class _FirstError:
    """Records the first failure and trips the shared cancel event."""
    def __init__(self, cancel: threading.Event):
        self.cancel = cancel
        self.error: Optional[BaseException] = None
        self.lock = threading.Lock()

    def record(self, index: int, error: BaseException) -> None:
        with self.lock:
            if self.error is None:
                logger.debug(f"Task {index} failed, cancelling remaining tasks: {error}")
                self.error = error
        self.cancel.set()

def map_concurrently(items: Sequence[T], fn: Callable[[T], R],
                     max_workers: int = DEFAULT_MAX_WORKERS,
                     cancel: Optional[threading.Event] = None) -> List[R]:
    """Run fn over items on a bounded thread pool, keeping input order.

    The first failure sets `cancel`; tasks that have not started yet are
    skipped, tasks already running finish normally. The first recorded
    failure is re-raised once every started task is done. Passing a shared
    `cancel` event lets the caller abort the batch too.
    """
    if not items:
        return []
    if cancel is None:
        cancel = threading.Event()

    results: List[Optional[R]] = [None] * len(items)
    first_error = _FirstError(cancel)
    skipped = threading.Event()

    def run(index: int, item: T) -> None:
        if cancel.is_set():
            skipped.set()
            return
        try:
            results[index] = fn(item)
        except Exception as e:
            first_error.record(index, e)

    workers = max(1, min(max_workers, len(items)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures: Sequence[Future[None]] = [
            executor.submit(run, index, item) for index, item in enumerate(items)
        ]
        try:
            concurrent.futures.wait(futures)
        except BaseException:
            # Interrupted while waiting: let running tasks finish, skip the rest
            cancel.set()
            raise

    if first_error.error is not None:
        raise first_error.error
    if skipped.is_set():
        raise CancelledError("cancelled before all tasks ran")
    return results  # type: ignore[return-value]

def for_each_concurrently(items: Sequence[T], fn: Callable[[T], object],
                          max_workers: int = DEFAULT_MAX_WORKERS,
                          cancel: Optional[threading.Event] = None) -> None:
    """Like map_concurrently, discarding results."""
    map_concurrently(items, fn, max_workers=max_workers, cancel=cancel)

__all__ = ['map_concurrently', 'for_each_concurrently', 'CancelledError', 'DEFAULT_MAX_WORKERS']
