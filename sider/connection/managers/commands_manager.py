from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from sider.protocol.base import Command

logger = logging.getLogger(__name__)


class CommandsManager:
    """
    Correlates outbound commands with their replies.

    Owns the connection-wide id counter and the table of in-flight commands.
    Ids start at 1, increase monotonically and are never reused for the
    lifetime of the manager, whatever session the command targets.
    """

    def __init__(self):
        self._pending_commands: dict[int, asyncio.Future] = {}
        self._command_sessions: dict[int, Optional[str]] = {}
        self._id = 1

    @property
    def pending_count(self) -> int:
        return len(self._pending_commands)

    def create_command_future(self, command: Command) -> asyncio.Future:
        """
        Assign the next id to ``command`` and register a future for its reply.

        The entry exists before the command is written, so a reply can never
        arrive ahead of its waiter.

        Args:
            command: Command to stamp; its ``id`` key is set in place.

        Returns:
            Future resolved with the raw reply message.
        """
        command['id'] = self._id
        future = asyncio.get_running_loop().create_future()
        self._pending_commands[self._id] = future
        self._command_sessions[self._id] = command.get('sessionId')
        logger.debug(f'Registered pending command: id={self._id}, method={command["method"]}')
        self._id += 1
        return future

    def resolve_command(self, command_id: int, response: dict[str, Any]) -> bool:
        """
        Resolve the pending entry for ``command_id`` and remove it.

        Returns:
            False if no entry matched (unknown or already resolved id).
        """
        future = self._pending_commands.pop(command_id, None)
        self._command_sessions.pop(command_id, None)
        if future is None:
            return False
        if not future.done():
            future.set_result(response)
        return True

    def remove_pending_command(self, command_id: int):
        """Drop an entry without resolving it (timeout or failed write)."""
        future = self._pending_commands.pop(command_id, None)
        self._command_sessions.pop(command_id, None)
        if future is not None and not future.done():
            future.cancel()

    def fail_all(self, exception: BaseException):
        """Fail every in-flight command, used when the connection goes away."""
        pending = self._pending_commands
        self._pending_commands = {}
        self._command_sessions = {}
        for future in pending.values():
            if not future.done():
                future.set_exception(exception)
        if pending:
            logger.debug(f'Failed {len(pending)} pending commands: {exception!r}')

    def fail_session(self, session_id: str, exception: BaseException):
        """Fail the in-flight commands addressed to ``session_id``, used on detach."""
        command_ids = [
            command_id
            for command_id, owner in self._command_sessions.items()
            if owner == session_id
        ]
        for command_id in command_ids:
            del self._command_sessions[command_id]
            future = self._pending_commands.pop(command_id)
            if not future.done():
                future.set_exception(exception)
        if command_ids:
            logger.debug(f'Failed {len(command_ids)} commands of {session_id}: {exception!r}')
