"""Settle-all fan-out over a bounded thread pool.

Every remote call in the agents is I/O bound, so per-participant and
per-grant queries are issued on a thread pool and collected as outcomes.
A failing branch yields a ``Failure``; it never cancels its siblings.
"""

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_WORKERS = 10


@dataclass(frozen=True)
class Success(Generic[R]):
    """Branch completed with a value."""

    value: R
    ok: bool = True


@dataclass(frozen=True)
class Failure:
    """Branch raised an exception."""

    error: Exception
    ok: bool = False

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


Outcome = Union[Success[R], Failure]


def settle_all(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[Outcome]:
    """
    Run ``fn`` over every item concurrently and collect per-item outcomes.

    Args:
        fn: Callable applied to each item
        items: Inputs; the returned list follows their order
        max_workers: Upper bound on concurrent calls

    Returns:
        One Success or Failure per input item, in input order
    """
    items = list(items)
    if not items:
        return []

    workers = max(1, min(max_workers, len(items)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(fn, item) for item in items]

        outcomes: list[Outcome] = []
        for future in futures:
            try:
                outcomes.append(Success(future.result()))
            except Exception as e:
                logger.debug(f"Fan-out branch failed: {e}")
                outcomes.append(Failure(e))
        return outcomes


def successes(outcomes: Iterable[Outcome]) -> list:
    """Values of the successful outcomes, in order."""
    return [o.value for o in outcomes if o.ok]


def failures(outcomes: Iterable[Outcome]) -> list[Failure]:
    """The failed outcomes, in order."""
    return [o for o in outcomes if not o.ok]


def raise_first(outcomes: Iterable[Outcome], error_types: tuple[type[Exception], ...]) -> None:
    """Re-raise the first failure whose error is one of ``error_types``."""
    for failure in failures(outcomes):
        if isinstance(failure.error, error_types):
            raise failure.error
