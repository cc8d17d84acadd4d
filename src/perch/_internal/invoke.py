"""``invoke``: one call path for sync and async user code.

Controllers, middleware, pipeline stages and error handlers may each be
plain or ``async`` functions.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func*, awaiting the result when it is awaitable."""
    result = func(*args, **kwargs)
    return await result if inspect.isawaitable(result) else result
