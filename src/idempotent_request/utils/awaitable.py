"""Helpers for collaborators that may be synchronous or asynchronous.

Server specifications, storage drivers, hooks and activation predicates may
return plain values or awaitables. The engine awaits through ``resolve`` so
both styles work.

Example:
    >>> async def main():
    ...     assert await resolve(1) == 1
    ...     assert await resolve(asyncio.sleep(0, result=2)) == 2
"""

import inspect
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
