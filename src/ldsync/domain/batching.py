"""Sequential fixed-size chunking for bulk backing-store calls."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator, Sequence

log = getLogger(__name__)


def chunked[T](items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def execute_in_batches[T, R](
    items: Sequence[T],
    task: Callable[[Sequence[T]], Awaitable[Sequence[R] | None]],
    batch_size: int,
) -> list[R]:
    """Await ``task`` once per batch, in order; the first failure stops the rest.

    Results returned by ``task`` are concatenated in batch order.
    """

    results: list[R] = []
    for index, batch in enumerate(chunked(items, batch_size)):
        log.debug("Running batch %d with %d item(s)", index, len(batch))
        outcome = await task(batch)
        if outcome is not None:
            results.extend(outcome)
    return results
