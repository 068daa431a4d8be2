"""
Value coercion and formatting helpers shared by the scan and analysis code.
"""

import inspect
import math
from typing import Any, Awaitable, Callable, Optional, TypeVar

R = TypeVar("R")


def to_float(value: Any) -> Optional[float]:
    """Coerce a provider value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_int(value: Any) -> Optional[int]:
    number = to_float(value)
    return int(number) if number is not None else None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves away from zero."""
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def format_number(value: float) -> str:
    """Shortest exact form of a number: 12.0 -> '12', 10.1234567 -> '10.1234567'."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def add_sync_version(
    async_fn: Callable[..., Awaitable[R]],
) -> Callable[..., Awaitable[R]]:
    """
    Give a coroutine function a blocking ``.sync`` twin.

    ``fn.sync(*args, **kwargs)`` runs ``fn`` on its own event loop and returns
    the result. A ``client`` parameter that is not supplied (or is None) is
    filled with a temporary instance of its annotated class.

        >>> flagged = scan_bounds.sync(bbox)
        >>> analysis = analyze_location.sync(41.5, -70.2)
    """
    from .sync import AsyncSyncBridge

    signature = inspect.signature(async_fn)
    client_param = signature.parameters.get("client")
    client_class = (
        AsyncSyncBridge.extract_client_class(client_param.annotation)
        if client_param is not None
        else None
    )

    def sync_wrapper(*args: Any, **kwargs: Any) -> R:
        needs_client = (
            client_class is not None
            and signature.bind_partial(*args, **kwargs).arguments.get("client") is None
        )
        return AsyncSyncBridge.run_async(
            async_fn,
            args=args,
            kwargs=kwargs,
            client_class=client_class if needs_client else None,
        )

    sync_wrapper.__name__ = f"{async_fn.__name__}_sync"
    sync_wrapper.__doc__ = f"Blocking version of {async_fn.__qualname__}."
    async_fn.sync = sync_wrapper  # type: ignore
    return async_fn
