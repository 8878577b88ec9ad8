"""Scatter-gather reads over resources the backend only exposes per scope."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TypeVar

S = TypeVar("S")
R = TypeVar("R")
T = TypeVar("T")


async def scatter_gather(
    scopes: Sequence[S],
    scope_key: Callable[[S], str],
    fetch: Callable[[S], Awaitable[R]],
    merge: Callable[[Sequence[S], Mapping[str, R]], T],
) -> T:
    """Fetch every scope concurrently and merge the results in scope order.

    The merge receives the results keyed by scope, so its output does not
    depend on which request finished first. Any failed fetch propagates.
    """
    results = await asyncio.gather(*(fetch(scope) for scope in scopes))
    by_scope = {scope_key(scope): result for scope, result in zip(scopes, results)}
    return merge(scopes, by_scope)
