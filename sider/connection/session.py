from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from sider.connection.managers import EventsManager
from sider.exceptions import SessionDetached

if TYPE_CHECKING:
    from sider.connection.connection_handler import ConnectionHandler
    from sider.connection.managers.events_manager import ErrorHandler
    from sider.protocol.base import Command

logger = logging.getLogger(__name__)


class Session:
    """
    A logical command/event channel multiplexed over one connection.

    The root session has no id and addresses the browser itself; child
    sessions are created when a target is attached and carry the id the
    browser assigned.
    """

    def __init__(
        self,
        connection: ConnectionHandler,
        session_id: Optional[str] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._connection = connection
        self._session_id = session_id
        self._events = EventsManager(error_handler=error_handler)
        self._detached = False

    def __repr__(self) -> str:
        return f'Session(session_id={self._session_id!r}, detached={self._detached})'

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_root(self) -> bool:
        return self._session_id is None

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def connection(self) -> ConnectionHandler:
        return self._connection

    async def send(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Send a command on this session and wait for its result.

        Raises:
            SessionDetached: If the session was detached from its target.
            ProtocolError: If the browser reports a failure.
            TransportClosed: If the connection closes first.
        """
        if self._detached:
            raise SessionDetached(f'Session {self._session_id} is detached ({method})')
        return await self._connection.send(self, method, params)

    async def execute_command(self, command: Command) -> dict[str, Any]:
        return await self.send(command['method'], command.get('params'))

    def on(self, event_name: str, callback: Callable[..., Any], temporary: bool = False) -> int:
        """Subscribe to an event on this session; returns the callback id."""
        return self._events.register_callback(event_name, callback, temporary)

    def off(self, callback_id: int) -> bool:
        return self._events.remove_callback(callback_id)

    def clear_callbacks(self):
        self._events.clear_callbacks()

    def dispatch(self, event_name: str, params: dict[str, Any]):
        self._events.emit(event_name, params)

    async def wait_for_callbacks(self):
        """Wait for callback tasks started by dispatched events to finish."""
        await self._events.wait_for_tasks()

    def mark_detached(self):
        self._detached = True
        self._events.clear_callbacks()
        logger.debug(f'Session detached: {self._session_id}')
