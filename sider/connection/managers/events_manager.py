from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException], Any]


class EventsManager:
    """
    Ordered table of event callbacks.

    Callbacks for one event name fire in the order they were registered.
    Synchronous callbacks run inline. Coroutine callbacks are started as
    tasks, in registration order, so a callback that awaits a command reply
    never blocks the loop that delivers that reply.

    Exceptions raised by callbacks, inline or in tasks, are handed to
    ``error_handler``.
    """

    def __init__(self, error_handler: Optional[ErrorHandler] = None):
        self._event_callbacks: dict[int, dict[str, Any]] = {}
        self._callback_id = 0
        self._tasks: set[asyncio.Task] = set()
        self._error_handler = error_handler

    @property
    def error_handler(self) -> Optional[ErrorHandler]:
        return self._error_handler

    @error_handler.setter
    def error_handler(self, handler: Optional[ErrorHandler]):
        self._error_handler = handler

    def register_callback(
        self, event_name: str, callback: Callable[..., Any], temporary: bool = False
    ) -> int:
        """
        Register a callback for an event.

        Args:
            event_name: Name the callback listens to.
            callback: Sync function or coroutine function.
            temporary: Remove the callback after its first invocation.

        Returns:
            Callback id usable with ``remove_callback``.
        """
        if not callable(callback):
            raise TypeError('Callback must be a callable function')

        self._callback_id += 1
        self._event_callbacks[self._callback_id] = {
            'event': event_name,
            'callback': callback,
            'temporary': temporary,
        }
        logger.debug(
            f'Registered callback: id={self._callback_id}, event={event_name}, '
            f'temporary={temporary}'
        )
        return self._callback_id

    def remove_callback(self, callback_id: int) -> bool:
        if callback_id not in self._event_callbacks:
            logger.debug(f'Callback not found: id={callback_id}')
            return False
        del self._event_callbacks[callback_id]
        return True

    def clear_callbacks(self):
        self._event_callbacks.clear()

    def has_callbacks(self, event_name: str) -> bool:
        return any(data['event'] == event_name for data in self._event_callbacks.values())

    def emit(self, event_name: str, *args: Any):
        """Invoke every callback registered for ``event_name``."""
        for callback_id, data in list(self._event_callbacks.items()):
            if data['event'] != event_name:
                continue

            if data['temporary']:
                self._event_callbacks.pop(callback_id, None)

            try:
                result = data['callback'](*args)
            except Exception as exc:
                self._report(exc, event_name)
                continue

            if inspect.isawaitable(result):
                self._track(asyncio.ensure_future(result), event_name)

    async def wait_for_tasks(self):
        """Wait until every callback task started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _track(self, task: asyncio.Future, event_name: str):
        self._tasks.add(task)

        def on_done(finished: asyncio.Future):
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                self._report(exc, event_name)

        task.add_done_callback(on_done)

    def _report(self, exc: BaseException, event_name: str):
        if self._error_handler is None:
            logger.error(f'Error in callback for {event_name}: {exc!r}', exc_info=exc)
            return
        self._error_handler(exc)
