"""
Fan-out/join primitive for independent external calls.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence, Tuple

from opodatkuvayco.core.config import get_settings


def fan_out(
    calls: Sequence[Tuple[Callable[..., Any], tuple]],
    max_workers: Optional[int] = None
) -> List[Any]:
    """
    Run independent calls concurrently and wait for all of them.

    Results come back in submission order. If any call fails, the first
    failure (in submission order) is re-raised once every call has finished;
    no partial results are returned. In-flight siblings are not cancelled.

    Args:
        calls: Sequence of (function, args) pairs
        max_workers: Thread pool size (defaults to RATE_WORKERS)

    Returns:
        List of results, one per call
    """
    if not calls:
        return []

    workers = min(max_workers or get_settings().rate_workers, len(calls))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(func, *args) for func, args in calls]

    # Executor shutdown waited for every future
    return [future.result() for future in futures]
