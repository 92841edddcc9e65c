"""Fan-out helpers for concurrent store writes."""

import asyncio
from typing import Any, Awaitable, Iterable, List


async def gather_first_error(
    aws: Iterable[Awaitable[Any]], fail_fast: bool = False
) -> List[Any]:
    """Run awaitables concurrently and raise the first error once joined.

    Every awaitable is scheduled before anything is awaited. Without
    ``fail_fast`` all tasks run to completion and the first failure in launch
    order is raised afterwards. With ``fail_fast`` the first failure cancels
    the siblings still in flight; they are awaited before the error is raised.

    Args:
        aws: Coroutines or futures to run
        fail_fast: Cancel pending siblings on the first failure

    Returns:
        Results in launch order

    Raises:
        Exception: The first error raised by any awaitable
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    if not fail_fast:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if task in done and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]
