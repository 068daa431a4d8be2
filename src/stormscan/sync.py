"""
Blocking entry points for stormscan's coroutines.

Scripts and notebooks that do not run an event loop can call
``scan_bounds.sync(bbox)`` instead of awaiting ``scan_bounds``. When the
``client`` argument is left out, an ``OpenMeteoClient`` is opened for that one
call and closed before ``.sync`` returns, so nothing leaks between calls.

    flagged = scan_bounds.sync(BoundingBox(north=45, south=40, east=-5, west=-10))
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union, get_args, get_origin

R = TypeVar("R")


class AsyncSyncBridge:
    """Runs a stormscan coroutine to completion from synchronous code."""

    @staticmethod
    def run_async(
        async_fn: Callable[..., Awaitable[R]],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        client_class: Optional[type] = None,
    ) -> R:
        """
        Drive ``async_fn(*args, **kwargs)`` on a fresh event loop.

        Args:
            async_fn: Coroutine function to call
            args: Positional arguments
            kwargs: Keyword arguments
            client_class: If given, an instance is passed as ``client`` and
                closed once the call finishes, whether or not it raised

        Raises:
            RuntimeError: When a loop is already running in this thread
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                f"{async_fn.__name__}.sync() cannot run inside an existing asyncio "
                f"event loop; await {async_fn.__name__}() instead"
            )

        call_kwargs = dict(kwargs or {})

        async def _run() -> R:
            if client_class is None:
                return await async_fn(*args, **call_kwargs)

            # Opened here so its connection pool belongs to this loop.
            bound = inspect.signature(async_fn).bind_partial(*args, **call_kwargs)
            owned = client_class()
            bound.arguments["client"] = owned
            try:
                return await async_fn(*bound.args, **bound.kwargs)
            finally:
                await owned.close()

        return asyncio.run(_run())

    @staticmethod
    def extract_client_class(annotation: Any) -> Optional[type]:
        """
        Class named by a ``client`` annotation.

        ``Optional[OpenMeteoClient]`` and ``OpenMeteoClient`` both give
        ``OpenMeteoClient``. String (forward-reference) annotations and
        missing annotations give None.
        """
        if annotation is None or annotation is inspect.Parameter.empty:
            return None

        if get_origin(annotation) is Union:
            candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
            annotation = candidates[0] if candidates else None

        return annotation if isinstance(annotation, type) else None
