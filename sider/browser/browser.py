from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Optional

from sider.browser.options import BrowserOptions
from sider.browser.page import Page
from sider.browser.service_worker import ServiceWorker
from sider.browser.target import Target
from sider.commands import TargetCommands
from sider.connection import ConnectionHandler, WebSocketTransport
from sider.connection.managers import EventsManager
from sider.constants import BrowserEvent, OpenCloseReason, TargetType
from sider.exceptions import (
    BrowserNotConnected,
    DuplicateTarget,
    SessionAlreadyAttached,
    SiderException,
    TargetNotAttached,
    UnknownTarget,
)
from sider.protocol.target import TargetDomainEvent

if TYPE_CHECKING:
    from sider.connection.session import Session
    from sider.connection.transport import Transport
    from sider.protocol.target import (
        AttachedToTargetParams,
        DetachedFromTargetParams,
        TargetCreatedParams,
        TargetDestroyedParams,
        TargetInfoChangedParams,
    )

logger = logging.getLogger(__name__)


class Browser:
    """
    Tracks the pages and service workers of one browser.

    Targets are discovered through the root session. Every page is attached,
    initialized with interception enabled, and only then announced with
    ``BrowserEvent.PAGE_ADDED``. Pages opened or closed through this object
    are reported as ``OpenCloseReason.PROGRAM``, everything else as
    ``OpenCloseReason.USER``.

    Errors raised by protocol event handlers (consistency faults, failed
    interception commands, ...) are logged and re-emitted as
    ``BrowserEvent.ERROR``.
    """

    def __init__(self, options: Optional[BrowserOptions] = None):
        """
        Args:
            options: Behaviour switches; defaults to ``BrowserOptions()``.
        """
        self.options = options or BrowserOptions()
        self._connection_handler: Optional[ConnectionHandler] = None
        self._process: Optional[Any] = None
        self._events = EventsManager()
        self._tasks: set[asyncio.Task] = set()

        self._targets: dict[str, Target] = {}
        self._pages: dict[str, Page] = {}
        self._service_workers: dict[str, ServiceWorker] = {}

        self._program_opened_pages = 0
        self._program_closed_pages = 0
        self._close_requested = False
        self._closed = False

    @property
    def connection_handler(self) -> ConnectionHandler:
        if self._connection_handler is None:
            raise BrowserNotConnected()
        return self._connection_handler

    @property
    def root_session(self) -> Session:
        return self.connection_handler.root_session

    @property
    def pages(self) -> list[Page]:
        return list(self._pages.values())

    @property
    def service_workers(self) -> list[ServiceWorker]:
        return list(self._service_workers.values())

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(
        self,
        ws_address: Optional[str] = None,
        transport: Optional[Transport] = None,
        process: Optional[Any] = None,
    ):
        """
        Open the connection to the browser.

        Args:
            ws_address: DevTools websocket URL, used when ``transport`` is None.
            transport: Already connected transport.
            process: Handle of a browser process this object launched and
                owns. Its first window is then attributed to the program,
                and ``close()`` terminates it.

        Raises:
            ValueError: If neither ``ws_address`` nor ``transport`` is given.
        """
        if transport is None:
            if ws_address is None:
                raise ValueError('Either ws_address or transport must be provided')
            transport = await WebSocketTransport.connect(ws_address)

        self._process = process
        if process is not None:
            self._program_opened_pages = 1

        self._connection_handler = ConnectionHandler(
            transport,
            command_timeout=self.options.command_timeout,
            error_handler=self.report_error,
        )
        await self._connection_handler.start()
        logger.info('Browser connected')

    async def initialize(self):
        """Subscribe to target lifecycle events and turn on target discovery."""
        root = self.root_session
        root.on(TargetDomainEvent.TARGET_CREATED, self._on_target_created)
        root.on(TargetDomainEvent.TARGET_DESTROYED, self._on_target_destroyed)
        root.on(TargetDomainEvent.TARGET_INFO_CHANGED, self._on_target_info_changed)
        root.on(TargetDomainEvent.ATTACHED_TO_TARGET, self._on_attached_to_target)
        root.on(TargetDomainEvent.DETACHED_FROM_TARGET, self._on_detached_from_target)
        self.connection_handler.on_closed(self.process_closed)

        await root.execute_command(TargetCommands.set_discover_targets(True))
        logger.info('Target discovery enabled')

    async def open_page(self, url: str = '') -> str:
        """
        Open a new page.

        The page is announced through ``BrowserEvent.PAGE_ADDED`` with
        ``OpenCloseReason.PROGRAM`` once it is initialized.

        Returns:
            The new target id.
        """
        self._program_opened_pages += 1
        try:
            response = await self.root_session.execute_command(TargetCommands.create_target(url))
        except SiderException:
            self._program_opened_pages -= 1
            raise
        logger.info(f'Page opened: target_id={response["targetId"]}, url={url!r}')
        return response['targetId']

    async def close_page(self, page: Page):
        self._program_closed_pages += 1
        try:
            await self.root_session.execute_command(TargetCommands.close_target(page.target_id))
        except SiderException:
            self._program_closed_pages -= 1
            raise

    def find_page(self, predicate: Callable[[Page], bool]) -> Optional[Page]:
        return next((page for page in self._pages.values() if predicate(page)), None)

    def get_page(self, target_id: str) -> Optional[Page]:
        return self._pages.get(target_id)

    def on(self, event_name: BrowserEvent, callback: Callable[..., Any], temporary: bool = False) -> int:
        """
        Register a listener for a ``BrowserEvent``.

        ``PAGE_ADDED``/``PAGE_REMOVED`` receive ``(page, reason)``, the service
        worker events receive the worker, ``CLOSED`` the reason and ``ERROR``
        the exception.
        """
        return self._events.register_callback(event_name, callback, temporary)

    def remove_callback(self, callback_id: int) -> bool:
        return self._events.remove_callback(callback_id)

    async def close(self):
        """Close the browser; the resulting ``CLOSED`` event is program-initiated."""
        self._close_requested = True
        if self._process is not None:
            logger.info('Terminating browser process')
            self._process.terminate()
            return
        if self._connection_handler is not None:
            await self._connection_handler.close()

    def process_closed(self, reason: Optional[OpenCloseReason] = None):
        """
        Forget every target and emit ``BrowserEvent.CLOSED`` once.

        Called when the connection goes away; later calls do nothing.
        """
        if self._closed:
            return
        self._closed = True
        if reason is None:
            reason = OpenCloseReason.PROGRAM if self._close_requested else OpenCloseReason.USER

        for owner in [*self._pages.values(), *self._service_workers.values()]:
            owner.removed_from_browser = True
        self._pages.clear()
        self._service_workers.clear()
        self._targets.clear()

        logger.info(f'Browser closed: reason={reason.value}')
        self._events.emit(BrowserEvent.CLOSED, reason)

    def report_error(self, exc: BaseException):
        """Log an error raised by an event handler and emit ``BrowserEvent.ERROR``."""
        logger.error(f'Error in event handler: {exc!r}', exc_info=exc)
        self._events.emit(BrowserEvent.ERROR, exc)

    async def attach_to_target(self, target: Target) -> Session:
        """
        Attach a flattened session to ``target``.

        The attached event usually arrives before the command reply and binds
        the session first; the reply then finds it already bound.

        Raises:
            TargetNotAttached: If the target was destroyed meanwhile.
        """
        response = await self.root_session.execute_command(
            TargetCommands.attach_to_target(target.target_id)
        )
        if self._targets.get(target.target_id) is not target:
            raise TargetNotAttached(f'Target {target.target_id} was destroyed while attaching')
        return self._bind_session(target, response['sessionId'])

    async def wait_for_tasks(self):
        """Wait for pending page and service worker initializations."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _bind_session(self, target: Target, session_id: str) -> Session:
        current = target.session
        if current is not None:
            if current.session_id == session_id:
                return current
            raise SessionAlreadyAttached(
                f'Target {target.target_id} already has session {current.session_id}, '
                f'got {session_id}'
            )
        session = self.connection_handler.create_session(session_id)
        target.handle_attached(session)
        return session

    def _on_target_created(self, params: TargetCreatedParams):
        target_info = params['targetInfo']
        target_id = target_info['targetId']
        if target_id in self._targets:
            raise DuplicateTarget(f'Target already tracked: {target_id}')

        target = Target(target_info)
        self._targets[target_id] = target

        if target.type == TargetType.PAGE:
            page = Page(self, target)
            self._pages[target_id] = page
            self._track(self._add_page(page))
        elif target.type == TargetType.SERVICE_WORKER and self.options.handle_service_workers:
            worker = ServiceWorker(self, target)
            self._service_workers[target_id] = worker
            self._track(self._add_service_worker(worker))
        else:
            logger.debug(f'Ignoring target {target_id} of type {target.type}')

    async def _add_page(self, page: Page):
        try:
            await page.initialize()
        finally:
            reason = self._take_open_reason()
        if page.removed_from_browser:
            return
        page.added_to_browser = True
        logger.info(f'Page added: target_id={page.target_id}, reason={reason.value}')
        self._events.emit(BrowserEvent.PAGE_ADDED, page, reason)

    async def _add_service_worker(self, worker: ServiceWorker):
        await worker.initialize()
        if worker.removed_from_browser:
            return
        worker.added_to_browser = True
        self._events.emit(BrowserEvent.SERVICE_WORKER_ADDED, worker)

    def _on_target_destroyed(self, params: TargetDestroyedParams):
        target_id = params['targetId']
        target = self._targets.pop(target_id, None)
        if target is None:
            raise UnknownTarget(f'Destroyed target was never created: {target_id}')

        if target.session is not None:
            self.connection_handler.remove_session(target.session.session_id)
            target.handle_detached()

        page = self._pages.pop(target_id, None)
        if page is not None:
            reason = self._take_close_reason()
            page.removed_from_browser = True
            if page.added_to_browser:
                logger.info(f'Page removed: target_id={target_id}, reason={reason.value}')
                self._events.emit(BrowserEvent.PAGE_REMOVED, page, reason)
            return

        worker = self._service_workers.pop(target_id, None)
        if worker is not None:
            worker.removed_from_browser = True
            if worker.added_to_browser:
                self._events.emit(BrowserEvent.SERVICE_WORKER_REMOVED, worker)

    def _on_target_info_changed(self, params: TargetInfoChangedParams):
        target_info = params['targetInfo']
        target = self._targets.get(target_info['targetId'])
        if target is None:
            logger.debug(f'Info changed for untracked target {target_info["targetId"]}')
            return
        target.update_info(target_info)

    def _on_attached_to_target(self, params: AttachedToTargetParams):
        target_id = params['targetInfo']['targetId']
        if target_id not in self._pages and target_id not in self._service_workers:
            logger.debug(f'Ignoring attach to untracked target {target_id}')
            return
        self._bind_session(self._targets[target_id], params['sessionId'])

    def _on_detached_from_target(self, params: DetachedFromTargetParams):
        session_id = params['sessionId']
        self.connection_handler.remove_session(session_id)

        target = next(
            (
                target
                for target in self._targets.values()
                if target.session is not None and target.session.session_id == session_id
            ),
            None,
        )
        if target is None:
            logger.debug(f'Ignoring detach of untracked session {session_id}')
            return
        target.handle_detached()

    def _take_open_reason(self) -> OpenCloseReason:
        if self._program_opened_pages > 0:
            self._program_opened_pages -= 1
            return OpenCloseReason.PROGRAM
        return OpenCloseReason.USER

    def _take_close_reason(self) -> OpenCloseReason:
        if self._program_closed_pages > 0:
            self._program_closed_pages -= 1
            return OpenCloseReason.PROGRAM
        return OpenCloseReason.USER

    def _track(self, coroutine: Coroutine[Any, Any, Any]):
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)

        def on_done(finished: asyncio.Task):
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                self.report_error(finished.exception())

        task.add_done_callback(on_done)

