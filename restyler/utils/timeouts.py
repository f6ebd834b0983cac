"""Deadline wrapper for blocking remote calls"""
import asyncio
from typing import Any, Callable


async def call_with_timeout(func: Callable[..., Any], *args, timeout: float, label: str, **kwargs) -> Any:
    """Run a blocking call in a worker thread and give up after `timeout` seconds.

    The worker thread is not interrupted. If it finishes after the deadline
    its result is dropped together with the abandoned future.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise TimeoutError(f"{label} timed out after {timeout:g}s") from e
