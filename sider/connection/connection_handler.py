from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from sider.connection.managers import CommandsManager, EventsManager
from sider.connection.session import Session
from sider.constants import ROOT_SESSION_ID, ConnectionEvent
from sider.exceptions import (
    CommandExecutionTimeout,
    ProtocolError,
    SessionAlreadyAttached,
    SessionDetached,
    TransportClosed,
)
from sider.protocol.base import Command

if TYPE_CHECKING:
    from sider.connection.managers.events_manager import ErrorHandler
    from sider.connection.transport import Transport

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Multiplexes a tree of logical sessions over one transport.

    Every command gets a connection-wide unique id; replies are matched to
    their command by id alone, events are routed to the session named by
    their ``sessionId`` (the root session when absent). All table mutation
    happens on the event loop running the receive task.
    """

    def __init__(
        self,
        transport: Transport,
        command_timeout: Optional[float] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Args:
            transport: Connected channel to the browser.
            command_timeout: Seconds to wait for any reply; ``None`` waits
                until the reply arrives or the connection closes.
            error_handler: Receives exceptions raised by event callbacks of
                every session on this connection.
        """
        self._transport = transport
        self._command_timeout = command_timeout
        self._error_handler = error_handler
        self._command_manager = CommandsManager()
        self._events = EventsManager(error_handler=error_handler)
        self._root_session = Session(self, ROOT_SESSION_ID, error_handler)
        self._sessions: dict[Optional[str], Session] = {ROOT_SESSION_ID: self._root_session}
        self._receive_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def root_session(self) -> Session:
        return self._root_session

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_commands(self) -> int:
        return self._command_manager.pending_count

    async def start(self):
        """Start delivering inbound messages."""
        if self._receive_task is None:
            self._receive_task = asyncio.create_task(self._receive_events())
            logger.debug('Receive task started')

    def create_session(self, session_id: str) -> Session:
        if session_id in self._sessions:
            raise SessionAlreadyAttached(f'Session {session_id} is already registered')
        session = Session(self, session_id, self._error_handler)
        self._sessions[session_id] = session
        logger.debug(f'Session created: {session_id}')
        return session

    def remove_session(self, session_id: str) -> Optional[Session]:
        """Forget ``session_id`` and fail the commands still waiting on it."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.mark_detached()
        self._command_manager.fail_session(
            session_id, SessionDetached(f'Session {session_id} detached before replying')
        )
        return session

    def get_session(self, session_id: Optional[str]) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def send(
        self,
        session: Session,
        method: str,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Send a command on ``session`` and wait for the correlated reply.

        Args:
            session: Session the command is addressed to.
            method: CDP method name.
            params: Command parameters.

        Returns:
            The ``result`` payload of the reply.

        Raises:
            ProtocolError: The browser reported a failure.
            TransportClosed: The connection closed before the reply.
            CommandExecutionTimeout: No reply within ``command_timeout``.
        """
        if self._closed:
            raise TransportClosed(f'Connection is closed ({method})')

        command = Command(method=method, params=params or {})
        if not session.is_root:
            command['sessionId'] = session.session_id

        future = self._command_manager.create_command_future(command)
        command_id = command['id']
        try:
            await self._transport.send(json.dumps(command))
        except TransportClosed:
            self._command_manager.remove_pending_command(command_id)
            raise

        try:
            response = await asyncio.wait_for(future, self._command_timeout)
        except asyncio.TimeoutError as exc:
            self._command_manager.remove_pending_command(command_id)
            raise CommandExecutionTimeout(f'{method} timed out after {self._command_timeout}s') from exc

        if 'error' in response:
            raise ProtocolError(method=method, params=params, error=response['error'])
        return response.get('result', {})

    def on(self, session: Session, event_name: str, callback: Callable[..., Any]) -> int:
        return session.on(event_name, callback)

    def off(self, session: Session, callback_id: int) -> bool:
        return session.off(callback_id)

    def on_closed(self, callback: Callable[[], Any]) -> int:
        return self._events.register_callback(ConnectionEvent.CLOSED, callback, temporary=True)

    async def dispatch_inbound(self, raw_message: str):
        """
        Route one inbound message.

        Replies resolve their pending command, events fan out to the session
        they name. Anything that cannot be routed is logged and dropped.
        """
        message = self._parse_message(raw_message)
        if message is None:
            return

        if 'id' in message:
            if not self._command_manager.resolve_command(message['id'], message):
                logger.warning(f'Dropping reply for unknown command id={message["id"]}')
            return

        event_name = message.get('method')
        if not event_name:
            logger.warning(f'Dropping unroutable message: {raw_message[:200]}')
            return

        session_id = message.get('sessionId', ROOT_SESSION_ID)
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug(f'Dropping {event_name} for unknown session {session_id}')
            return

        session.dispatch(event_name, message.get('params', {}))

    async def close(self):
        """Close the transport and fail everything still waiting on it."""
        if self._closed:
            return
        logger.info('Closing connection')
        await self._transport.close()
        self._handle_closed()
        if self._receive_task is not None and self._receive_task is not asyncio.current_task():
            await asyncio.gather(self._receive_task, return_exceptions=True)

    async def _receive_events(self):
        try:
            async for raw_message in self._transport:
                await self.dispatch_inbound(raw_message)
        finally:
            self._handle_closed()

    def _handle_closed(self):
        if self._closed:
            return
        self._closed = True
        self._command_manager.fail_all(TransportClosed())
        for session_id in [sid for sid in self._sessions if sid is not ROOT_SESSION_ID]:
            self.remove_session(session_id)
        self._root_session.mark_detached()
        logger.info('Connection closed')
        self._events.emit(ConnectionEvent.CLOSED)

    @staticmethod
    def _parse_message(raw_message: str) -> Optional[dict[str, Any]]:
        try:
            message = json.loads(raw_message)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f'Dropping undecodable message: {str(raw_message)[:200]}')
            return None
        if not isinstance(message, dict):
            logger.warning(f'Dropping non-object message: {str(raw_message)[:200]}')
            return None
        return message
