"""Invoke helpers: call sync or async callables uniformly.

Roost handlers, hooks and configuration callbacks can be ``def`` or
``async def``. Any code that calls user-provided code goes through
``invoke`` so the sync/async check lives in exactly one place::

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
