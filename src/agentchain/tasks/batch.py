"""Join-barrier batch execution for concurrently launched executors."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence


class BatchPolicy(str, Enum):
    """How a batch reports failing members once every member has settled."""

    COLLECT_ALL = "collect_all"
    FAIL_FAST = "fail_fast"


class BatchFailedError(RuntimeError):
    """Raised under FAIL_FAST after the batch settled with at least one failure."""

    def __init__(self, outcomes: List[Any], failed_index: int) -> None:
        self.outcomes = outcomes
        self.failed_index = failed_index
        super().__init__(f"Batch member {failed_index} failed: {outcomes[failed_index]!r}")


async def run_batch(
    members: Sequence[Awaitable[Any]],
    *,
    policy: BatchPolicy = BatchPolicy.COLLECT_ALL,
    is_failure: Optional[Callable[[Any], bool]] = None,
) -> List[Any]:
    """Run every member concurrently and wait until all of them settle.

    Issued members are never cancelled: a raising member does not stop its
    siblings. Outcomes are returned in member order, with exceptions in place
    of values. Under ``FAIL_FAST`` the first failing outcome (an exception, or
    a value for which ``is_failure`` is true) raises ``BatchFailedError``
    carrying every outcome, so the caller can stop scheduling further work.
    """
    if not members:
        return []
    outcomes = list(await asyncio.gather(*members, return_exceptions=True))
    if policy is BatchPolicy.FAIL_FAST:
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException) or (is_failure is not None and is_failure(outcome)):
                raise BatchFailedError(outcomes, index)
    return outcomes
