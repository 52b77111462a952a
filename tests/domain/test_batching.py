from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from ldsync.domain.batching import chunked, execute_in_batches

if TYPE_CHECKING:
    from collections.abc import Sequence


def test_chunked_splits_in_order() -> None:
    assert [list(batch) for batch in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]


def test_chunked_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="positive"):
        list(chunked([1], 0))


def test_execute_in_batches_concatenates_results() -> None:
    calls: list[list[int]] = []

    async def task(batch: Sequence[int]) -> list[int]:
        calls.append(list(batch))
        return [item * 10 for item in batch]

    results = asyncio.run(execute_in_batches([1, 2, 3], task, 2))

    assert calls == [[1, 2], [3]]
    assert results == [10, 20, 30]


def test_execute_in_batches_stops_at_first_failure() -> None:
    calls: list[list[int]] = []

    async def task(batch: Sequence[int]) -> None:
        calls.append(list(batch))
        if len(calls) == 2:
            raise RuntimeError("backing store unavailable")

    with pytest.raises(RuntimeError, match="unavailable"):
        asyncio.run(execute_in_batches([1, 2, 3, 4, 5], task, 2))

    assert calls == [[1, 2], [3, 4]]
