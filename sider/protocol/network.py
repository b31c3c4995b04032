from __future__ import annotations

from enum import Enum
from typing import Any

from typing_extensions import NotRequired, TypedDict


class NetworkDomainEvent(str, Enum):
    WEB_SOCKET_CREATED = 'Network.webSocketCreated'
    WEB_SOCKET_CLOSED = 'Network.webSocketClosed'
    WEB_SOCKET_FRAME_SENT = 'Network.webSocketFrameSent'
    WEB_SOCKET_FRAME_RECEIVED = 'Network.webSocketFrameReceived'


WEB_SOCKET_TEXT_OPCODE = 1


class WebSocketFrame(TypedDict):
    """
    A single websocket frame.

    ``payloadData`` is UTF-8 text when ``opcode`` is 1, base64 otherwise.
    """

    opcode: int
    mask: bool
    payloadData: str


class WebSocketCreatedParams(TypedDict):
    requestId: str
    url: str
    initiator: NotRequired[dict[str, Any]]


class WebSocketClosedParams(TypedDict):
    requestId: str
    timestamp: float


class WebSocketFrameParams(TypedDict):
    requestId: str
    timestamp: float
    response: WebSocketFrame


class Cookie(TypedDict):
    name: str
    value: str
    domain: str
    path: str
    expires: float
    size: int
    httpOnly: bool
    secure: bool
    session: bool
    sameSite: NotRequired[str]
