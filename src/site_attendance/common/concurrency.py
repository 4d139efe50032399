from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class FanOutResult(Generic[T, R]):
    """Outcome of running one callable per item, awaited as a group."""

    succeeded: List[Tuple[T, R]] = field(default_factory=list)
    failed: List[Tuple[T, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def fan_out(
    fn: Callable[[T], R],
    items: Iterable[T],
    *,
    max_workers: int,
    timeout: Optional[float] = None,
) -> FanOutResult[T, R]:
    """Run ``fn`` for each item on a thread pool and collect every outcome.

    One item's exception never cancels the others. Items still running when
    ``timeout`` expires are reported as failed with ``TimeoutError``; work they
    already committed stays committed.
    """

    items = list(items)
    result: FanOutResult[T, R] = FanOutResult()
    if not items:
        return result

    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items))))
    try:
        future_to_item = {executor.submit(fn, item): item for item in items}
        done, not_done = wait(future_to_item, timeout=timeout)

        for future, item in future_to_item.items():
            if future in not_done:
                future.cancel()
                result.failed.append((item, TimeoutError("step budget exceeded")))
                continue
            exc = future.exception()
            if exc is not None:
                result.failed.append((item, exc))
            else:
                result.succeeded.append((item, future.result()))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if result.failed:
        logger.debug("fan-out finished with %d/%d failures", len(result.failed), len(items))
    return result
