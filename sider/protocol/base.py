"""Wire-level message shapes shared by every CDP domain."""

from __future__ import annotations

from typing import Any

from typing_extensions import NotRequired, TypedDict


class Command(TypedDict):
    """Outbound command. ``id`` and ``sessionId`` are filled in on send."""

    method: str
    params: NotRequired[dict[str, Any]]
    id: NotRequired[int]
    sessionId: NotRequired[str]


class ErrorPayload(TypedDict):
    code: int
    message: str
    data: NotRequired[str]


class CommandResponse(TypedDict):
    """Reply correlated to a command by ``id``."""

    id: int
    result: NotRequired[dict[str, Any]]
    error: NotRequired[ErrorPayload]
    sessionId: NotRequired[str]


class Event(TypedDict):
    """Unsolicited message, routed by ``sessionId`` (absent for the root session)."""

    method: str
    params: NotRequired[dict[str, Any]]
    sessionId: NotRequired[str]
