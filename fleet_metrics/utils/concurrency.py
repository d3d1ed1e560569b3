import asyncio
from typing import Any, Callable, Coroutine, Dict, Hashable, Mapping, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


async def run_blocking(func: Callable[..., T], *args, **kwargs) -> T:
    """Run blocking function in default executor.

    Central helper so the store clients never block the event loop directly.
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def gather_or_cancel(aws: Mapping[K, Coroutine[Any, Any, T]]) -> Dict[K, T]:
    """Await every awaitable concurrently; all succeed or none do.

    The first failure is re-raised after the remaining tasks are cancelled.
    Cancelling the caller cancels every task as well.
    """
    tasks = {key: asyncio.create_task(aw) for key, aw in aws.items()}
    if not tasks:
        return {}
    try:
        done, _ = await asyncio.wait(
            tasks.values(), return_when=asyncio.FIRST_EXCEPTION
        )
        for task in done:
            if task.cancelled():
                raise asyncio.CancelledError()
            exc = task.exception()
            if exc is not None:
                raise exc
        return {key: task.result() for key, task in tasks.items()}
    finally:
        pending = [t for t in tasks.values() if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
