"""
Parallel batch execution with failure accumulation.

Every item runs to completion on a worker thread. A failing item is
recorded by its key and never stops its siblings, so the caller always gets
back the full picture of what worked and what did not.
"""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Optional, Set, TypeVar

from .logger import setup_logger

_logger = setup_logger()

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchOutcome(Generic[R]):
    successes: List[R] = field(default_factory=list)
    failures: List[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_names(self) -> Set[Any]:
        return set(self.failures)

    def __len__(self) -> int:
        return len(self.successes) + len(self.failures)


def default_workers() -> int:
    return os.cpu_count() or 1


def _attempt(operation: Callable[[T], R], item: T, retries: int, backoff: float) -> R:
    attempt = 0
    while True:
        try:
            return operation(item)
        except Exception as e:
            if attempt >= retries:
                raise
            delay = backoff * (2 ** attempt)
            _logger.debug("Retrying %s in %.1fs after error: %s", item, delay, e)
            time.sleep(delay)
            attempt += 1


def run_batch(
    items: Iterable[T],
    operation: Callable[[T], R],
    key: Optional[Callable[[T], Any]] = None,
    max_workers: Optional[int] = None,
    retries: int = 0,
    backoff: float = 0.5,
    timeout: Optional[float] = None,
) -> BatchOutcome[R]:
    """
    Run ``operation`` over ``items`` on a thread pool.

    Args:
        items: Work items. Consumed once.
        operation: Called once per item (plus retries). Its return value is a success.
        key: Maps a failed item to its failure token. Defaults to the item itself.
        max_workers: Pool size; defaults to the CPU count.
        retries: Extra attempts per failing item, with exponential backoff.
        backoff: Base delay in seconds between retries.
        timeout: Seconds to wait for the whole batch. Unfinished items count as failures.

    Returns:
        BatchOutcome whose successes and failures together cover every item.
        Their order depends on completion order.
    """
    work = list(items)
    outcome: BatchOutcome[R] = BatchOutcome()
    if not work:
        return outcome

    token = key or (lambda item: item)
    workers = max(1, min(max_workers or default_workers(), len(work)))

    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = {executor.submit(_attempt, operation, item, retries, backoff): item for item in work}
        pending = set(futures)
        try:
            for fut in as_completed(futures, timeout=timeout):
                pending.discard(fut)
                item = futures[fut]
                try:
                    outcome.successes.append(fut.result())
                except Exception as e:
                    _logger.debug("Batch item %s failed: %s", item, e)
                    outcome.failures.append(token(item))
        except FuturesTimeout:
            _logger.warning("Batch timed out after %ss with %d item(s) unfinished.", timeout, len(pending))
            for fut in pending:
                fut.cancel()
                outcome.failures.append(token(futures[fut]))
    finally:
        # Running workers cannot be interrupted; only the wait is skipped on timeout.
        executor.shutdown(wait=timeout is None, cancel_futures=True)

    return outcome
