from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from mailinchat.core.models import FanOutOutcome, FanOutResult

T = TypeVar("T")


async def fan_out(recipient_ids: list[str], call: Callable[[str], Awaitable[T]]) -> FanOutResult[T]:
    """Run ``call`` for every recipient concurrently and keep every outcome."""
    results = await asyncio.gather(*(call(recipient_id) for recipient_id in recipient_ids), return_exceptions=True)

    outcomes: list[FanOutOutcome[T]] = []
    for recipient_id, result in zip(recipient_ids, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(FanOutOutcome(recipient_id=recipient_id, error=result))
        else:
            outcomes.append(FanOutOutcome(recipient_id=recipient_id, value=result))
    return FanOutResult(outcomes=outcomes)
