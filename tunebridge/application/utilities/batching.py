"""Bounded fan-out/fan-in helpers for per-item external work.

Workers share nothing: each returns its own result and the pool folds them
into a single PoolResult once every worker has finished.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence

from attrs import define, field, validators
from toolz import partition_all

from tunebridge.config import get_logger

logger = get_logger(__name__)


class _Skipped:
    """Marker for items never started because the pool was cancelled."""


_SKIPPED = _Skipped()


@define(frozen=True)
class PoolResult[R]:
    """Outcome of running one function over many items, in input order.

    ``values[i]`` is None when item i failed or was skipped; the failure is in
    ``failures[i]`` and skipped indices are listed in ``skipped``.
    """

    values: list[R | None] = field(factory=list)
    failures: dict[int, Exception] = field(factory=dict)
    skipped: list[int] = field(factory=list)

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped)

    @property
    def success_count(self) -> int:
        return len(self.values) - len(self.failures) - len(self.skipped)


@define(slots=True)
class BoundedTaskPool:
    """Run an async function over items with at most N in flight.

    Setting ``cancel_event`` stops new items from starting; work already in
    flight is allowed to finish.
    """

    concurrency_limit: int = field(default=5, validator=validators.ge(1))
    cancel_event: asyncio.Event | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def run[T, R](
        self,
        items: Sequence[T],
        process_func: Callable[[T], Awaitable[R]],
    ) -> PoolResult[R]:
        """Process every item and collect results in input order.

        Args:
            items: Items to process
            process_func: Async function that processes a single item

        Returns:
            PoolResult with per-item values, failures and skipped indices
        """
        if not items:
            return PoolResult()

        semaphore = asyncio.Semaphore(self.concurrency_limit)

        async def worker(item: T) -> R | _Skipped:
            async with semaphore:
                if self.is_cancelled:
                    return _SKIPPED
                return await process_func(item)

        outcomes = await asyncio.gather(
            *(worker(item) for item in items), return_exceptions=True
        )

        # Single-writer fold over the gathered outcomes
        values: list[R | None] = []
        failures: dict[int, Exception] = {}
        skipped: list[int] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, _Skipped):
                skipped.append(index)
                values.append(None)
            elif isinstance(outcome, Exception):
                logger.error(
                    "Item processing failed",
                    index=index,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                failures[index] = outcome
                values.append(None)
            elif isinstance(outcome, BaseException):
                # Cancellation and interpreter exits must propagate
                raise outcome
            else:
                values.append(outcome)

        if skipped:
            logger.info(
                "Pool cancelled before all items started",
                skipped=len(skipped),
                total=len(items),
            )
        return PoolResult(values=values, failures=failures, skipped=skipped)


def chunked[T](items: Iterable[T], size: int) -> list[list[T]]:
    """Split items into consecutive chunks of at most ``size``."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(chunk) for chunk in partition_all(size, items)]
