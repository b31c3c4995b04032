from __future__ import annotations

import base64
import inspect
import time
from typing import Any, Awaitable, Callable, Union
from urllib.parse import urlsplit, urlunsplit


def decode_base64_to_bytes(data: str) -> bytes:
    """Decode a base64 string sent by the browser into raw bytes."""
    return base64.b64decode(data.encode('ascii'))


async def call_handler(handler: Callable[..., Union[Any, Awaitable[Any]]], *args: Any) -> Any:
    """Call a sync or async handler and return its (awaited) result."""
    result = handler(*args)
    if inspect.isawaitable(result):
        return await result
    return result


def tick() -> float:
    return time.perf_counter()


def elapsed_ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000


def normalize_url(url: str) -> str:
    """
    Put ``url`` in the form the browser reports it in.

    Scheme and host are lowercased and an empty path on a URL with a host
    becomes ``/``, so ``https://Example.com`` matches ``https://example.com/``.
    """
    parts = urlsplit(url)
    if not parts.netloc:
        return urlunsplit(parts)
    return urlunsplit(parts._replace(netloc=parts.netloc.lower(), path=parts.path or '/'))
