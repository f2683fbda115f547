"""Parallel layer processing with input-ordered results.

Each layer is rendered as an independent task on a thread pool. Tasks
share no mutable state; each allocates its own bitmap. Results are written
into a slot list indexed by input position, so the output order always
matches the input order regardless of which task finishes first.
"""

import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable, TypeVar

from .errors import RenderCancelled

T = TypeVar("T")
R = TypeVar("R")


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelled("Render batch was cancelled")


def map_parallel(
    items: Iterable[T],
    transform: Callable[[T], R],
    max_workers: int | None = None,
    cancel_event: threading.Event | None = None,
) -> list[R]:
    """Apply transform to every item concurrently, keeping input order.

    The first failing task fails the whole batch: tasks that have not
    started yet are cancelled, tasks already running are allowed to finish,
    and the original exception is re-raised. Partial results are dropped.

    Args:
        items: Inputs to transform.
        transform: Function run once per item on a worker thread.
        max_workers: Pool size. None uses ThreadPoolExecutor's bounded
            default; 1 runs the batch inline on the calling thread.
        cancel_event: When set, tasks that have not started raise
            RenderCancelled instead of running.

    Returns:
        List of results, result[i] = transform(items[i]).

    Raises:
        RenderCancelled: cancel_event was set before the batch finished.
    """
    items = list(items)
    _check_cancelled(cancel_event)
    if not items:
        return []

    def _run(item: T) -> R:
        _check_cancelled(cancel_event)
        return transform(item)

    # Sequential path: one item or one worker gains nothing from a pool.
    if len(items) == 1 or max_workers == 1:
        return [_run(item) for item in items]

    results: list = [None] * len(items)
    # None keeps the executor's own bounded default.
    effective_workers = min(max_workers, len(items)) if max_workers else None

    with ThreadPoolExecutor(max_workers=effective_workers) as pool:
        futures = {pool.submit(_run, item): i for i, item in enumerate(items)}
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in done if f.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            # Report the failure of the earliest layer among those that failed.
            first = min(failed, key=lambda f: futures[f])
            raise first.exception()

        for future, index in futures.items():
            results[index] = future.result()

    return results
