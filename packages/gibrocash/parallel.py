"""Fan out a handful of independent blocking calls and join them.

Screens issue at most two requests at once (the admin summary pair), so this
is a thin wrapper over ``ThreadPoolExecutor``:

- results come back in argument order;
- the first failure propagates immediately and calls that have not started
  yet are cancelled; calls already in flight are left to finish, and their
  results are discarded.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any


def run_concurrently(*calls: Callable[[], Any]) -> tuple[Any, ...]:
    """Run ``calls`` concurrently; return their results in order or raise."""

    if not calls:
        return ()
    pool = ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="gibrocash-fetch")
    try:
        futures: list[Future] = [pool.submit(call) for call in calls]
        done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
        for fut in futures:
            if fut not in done:
                continue
            exc = fut.exception()
            if exc is not None:
                raise exc
        return tuple(fut.result() for fut in futures)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


__all__ = ["run_concurrently"]
