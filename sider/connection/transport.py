"""Duplex message channels the connection handler runs on."""

from __future__ import annotations

import abc
import logging
from typing import AsyncIterator, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from sider.exceptions import TransportClosed

logger = logging.getLogger(__name__)


class Transport(abc.ABC):
    """
    An already-connected channel carrying one JSON text message per frame.

    Iterating the transport yields inbound messages until the channel
    closes; iteration then simply stops.
    """

    @abc.abstractmethod
    async def send(self, message: str):
        """Write one message. Raises ``TransportClosed`` if the channel is gone."""

    @abc.abstractmethod
    def __aiter__(self) -> AsyncIterator[str]: ...

    @abc.abstractmethod
    async def close(self): ...


class WebSocketTransport(Transport):
    """Transport over the browser's DevTools websocket endpoint."""

    def __init__(self, ws_connection: ClientConnection):
        self._ws_connection = ws_connection

    @classmethod
    async def connect(cls, ws_address: str, open_timeout: Optional[float] = 10) -> WebSocketTransport:
        """
        Open a websocket to ``ws_address``.

        Args:
            ws_address: ``ws://`` endpoint printed by the browser on start.
            open_timeout: Seconds to wait for the opening handshake.
        """
        logger.info(f'Connecting to {ws_address}')
        ws_connection = await connect(ws_address, max_size=None, open_timeout=open_timeout)
        logger.debug('WebSocket connection established')
        return cls(ws_connection)

    async def send(self, message: str):
        try:
            await self._ws_connection.send(message)
        except ConnectionClosed as exc:
            raise TransportClosed(str(exc)) from exc

    async def __aiter__(self) -> AsyncIterator[str]:
        try:
            async for message in self._ws_connection:
                yield message if isinstance(message, str) else message.decode('utf-8')
        except ConnectionClosed as exc:
            logger.debug(f'WebSocket closed: {exc}')

    async def close(self):
        await self._ws_connection.close()
