from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncGenerator, Callable, Iterable, Optional, Union

import aiofiles

from sider.browser.frame import Frame
from sider.browser.network import Network
from sider.commands import NetworkCommands, PageCommands, RuntimeCommands
from sider.constants import PageEvent, TargetLifecycleEvent
from sider.connection.managers import EventsManager
from sider.exceptions import (
    NavigationFailed,
    NavigationTimeout,
    NoExecutionContext,
    NoFrame,
    ProtocolError,
    ScriptEvaluationError,
    TargetNotAttached,
    TransportClosed,
)
from sider.protocol.page import PageDomainEvent
from sider.protocol.runtime import RuntimeDomainEvent
from sider.utils import call_handler, decode_base64_to_bytes, elapsed_ms, normalize_url, tick

if TYPE_CHECKING:
    from sider.browser.browser import Browser
    from sider.browser.target import Target
    from sider.connection.session import Session
    from sider.protocol.fetch import RequestPausedParams
    from sider.protocol.network import Cookie
    from sider.protocol.page import (
        FrameAttachedParams,
        FrameDetachedParams,
        FrameNavigatedParams,
        NavigatedWithinDocumentParams,
    )
    from sider.protocol.runtime import (
        CallFunctionOnResult,
        ExecutionContextCreatedParams,
        ExecutionContextDescription,
        ExecutionContextDestroyedParams,
    )

logger = logging.getLogger(__name__)


class Page:
    """
    Controls a browser page through its attached session.

    Tracks the page's frame tree and execution contexts so scripts always
    run in the right isolated context, and owns the page's request
    interception (``page.network``).
    """

    def __init__(self, browser: Browser, target: Target):
        """
        Args:
            browser: Browser that discovered the page.
            target: The page's target; its id is also the main frame id.
        """
        self._browser = browser
        self._target = target
        self._events = EventsManager(error_handler=browser.report_error)

        self.initialized = False
        self.added_to_browser = False
        self.removed_from_browser = False
        self.loading = False
        self.loaded = False
        self.last_evaluate_time_ms: Optional[float] = None

        self._frames: dict[str, Frame] = {}
        self._execution_contexts: dict[int, ExecutionContextDescription] = {}
        self._execution_contexts_by_frame_id: dict[str, ExecutionContextDescription] = {}
        self.main_frame = Frame(self, target.target_id)
        self._frames[target.target_id] = self.main_frame

        self._target.on(TargetLifecycleEvent.ATTACHED, self._on_attached)
        self._target.on(TargetLifecycleEvent.DETACHED, self._on_detached)
        self.network = Network(browser, self)
        logger.debug(f'Page created: target_id={target.target_id}')

    def __repr__(self) -> str:
        return f'Page(target_id={self.target_id!r})'

    @property
    def target(self) -> Target:
        return self._target

    @property
    def target_id(self) -> str:
        return self._target.target_id

    @property
    def session(self) -> Optional[Session]:
        return self._target.session

    @property
    def url(self) -> str:
        return self.main_frame.url or self._target.url

    @property
    def frames(self) -> dict[str, Frame]:
        return dict(self._frames)

    @property
    def execution_contexts(self) -> dict[int, ExecutionContextDescription]:
        return dict(self._execution_contexts)

    async def initialize(self):
        """
        Attach to the page and enable the domains it needs.

        Page events come first, then Runtime (when enabled) and interception,
        which must be active before the page navigates. If the page is
        destroyed while this runs, initialization stops quietly.
        """
        try:
            await self._browser.attach_to_target(self._target)
            await self._execute_command(PageCommands.enable())
            if self._browser.options.enable_runtime:
                await self._execute_command(RuntimeCommands.enable())
            await self.network.initialize()
        except (ProtocolError, TransportClosed, TargetNotAttached) as exc:
            if self.removed_from_browser:
                logger.debug(f'Page {self.target_id} removed during initialization: {exc}')
                return
            raise

        self.initialized = True
        logger.info(f'Page initialized: target_id={self.target_id}')

    def on(self, event_name: PageEvent, callback: Callable[..., Any], temporary: bool = False) -> int:
        """Register a page event listener (``PageEvent``); returns the callback id."""
        return self._events.register_callback(event_name, callback, temporary)

    def remove_callback(self, callback_id: int) -> bool:
        return self._events.remove_callback(callback_id)

    async def navigate(self, url: str):
        """Start navigating the main frame to ``url`` without waiting for it."""
        logger.info(f'Navigating to URL: {url}')
        await self._execute_command(PageCommands.navigate(url))

    async def reload(self, ignore_cache: Optional[bool] = None):
        logger.info('Reloading page')
        await self._execute_command(PageCommands.reload(ignore_cache))

    async def go_to(self, url: str, timeout: Optional[float] = 300):
        """
        Navigate to ``url`` and wait until the main frame has navigated.

        Args:
            url: Target URL.
            timeout: Seconds to wait, ``None`` for no limit.

        Raises:
            NavigationFailed: The document response carried an error reason.
            NavigationTimeout: The main frame did not navigate in time.
        """
        async with self.expect_navigation(url, timeout=timeout):
            await self.navigate(url)

    @asynccontextmanager
    async def expect_navigation(
        self, url: Optional[str] = None, timeout: Optional[float] = 300
    ) -> AsyncGenerator[None, None]:
        """
        Wait for the main frame to navigate.

        The listeners are in place before the body runs, so the navigation
        command can be issued inside the ``async with`` block. While waiting,
        a response-stage pause for ``url`` carrying an error reason fails the
        wait; the network's own response handler keeps running.

        Raises:
            NavigationFailed: The response for ``url`` carried an error reason.
            NavigationTimeout: Nothing happened within ``timeout`` seconds.
        """
        outcome: asyncio.Future = asyncio.get_running_loop().create_future()
        expected_url = normalize_url(url) if url else None
        original_response_handler = self.network.response_handler

        def on_navigated():
            if not outcome.done():
                outcome.set_result(None)

        async def response_handler(params: RequestPausedParams):
            error_reason = params.get('responseErrorReason')
            if (
                error_reason
                and expected_url
                and normalize_url(params['request']['url']) == expected_url
                and not outcome.done()
            ):
                outcome.set_exception(
                    NavigationFailed(f'Navigation to {url} failed: {error_reason}')
                )
            if original_response_handler is not None:
                await call_handler(original_response_handler, params)

        callback_id = self.on(PageEvent.NAVIGATED, on_navigated)
        self.network.response_handler = response_handler
        try:
            yield
            try:
                await asyncio.wait_for(outcome, timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise NavigationTimeout(f'Main frame did not navigate within {timeout}s') from exc
        finally:
            # a failure recorded while the body raised is never awaited
            if outcome.done() and not outcome.cancelled():
                outcome.exception()
            outcome.cancel()
            self.remove_callback(callback_id)
            self.network.response_handler = original_response_handler

    async def close(self):
        """Close the page from inside; the browser reports it as user-initiated."""
        logger.info(f'Closing page: target_id={self.target_id}')
        await self._execute_command(PageCommands.close())

    def get_frames(self, predicate: Optional[Callable[[Frame], bool]] = None) -> list[Frame]:
        frames = list(self._frames.values())
        return [frame for frame in frames if predicate(frame)] if predicate else frames

    def find_frame(self, predicate: Callable[[Frame], bool]) -> Optional[Frame]:
        return next((frame for frame in self._frames.values() if predicate(frame)), None)

    def get_default_execution_context(self, frame_id: str) -> Optional[ExecutionContextDescription]:
        return self._execution_contexts_by_frame_id.get(frame_id)

    async def bring_to_front(self):
        await self._execute_command(PageCommands.bring_to_front())

    async def evaluate_on_new_document(self, source: str):
        """Run ``source`` in every new document before its own scripts."""
        await self._execute_command(PageCommands.add_script_to_evaluate_on_new_document(source))

    async def evaluate_in_frame(
        self,
        frame: Optional[Frame],
        function_declaration: str,
        args: Iterable[Any] = (),
        return_by_value: bool = True,
    ) -> Any:
        """
        Call a JavaScript function in a frame's default execution context.

        Args:
            frame: Frame to run in, e.g. ``page.main_frame``.
            function_declaration: Function source, e.g. ``'(a, b) => a + b'``.
            args: Arguments passed to the function by value.
            return_by_value: Return the JSON value instead of the remote object.

        Returns:
            The function's (awaited) return value.

        Raises:
            NoFrame: If ``frame`` is None.
            NoExecutionContext: If the frame has no default context yet.
            ScriptEvaluationError: If the function throws.
        """
        if frame is None:
            raise NoFrame()

        execution_context = frame.execution_context
        if execution_context is None:
            raise NoExecutionContext(f'No execution context for frame {frame.id}')

        return await self.evaluate_in_execution_context(
            execution_context['id'],
            function_declaration,
            args=args,
            return_by_value=return_by_value,
        )

    async def evaluate_in_execution_context(
        self,
        execution_context_id: int,
        function_declaration: str,
        args: Iterable[Any] = (),
        return_by_value: bool = True,
    ) -> Any:
        """Call a JavaScript function in a specific execution context."""
        args = list(args)
        logger.debug(
            f'Evaluating in context {execution_context_id}: '
            f'length={len(function_declaration)}, args={len(args)}'
        )
        started = tick()
        response: CallFunctionOnResult = await self._execute_command(
            RuntimeCommands.call_function_on(
                execution_context_id,
                function_declaration,
                args=args,
                return_by_value=return_by_value,
            )
        )
        self.last_evaluate_time_ms = elapsed_ms(started)

        remote_object = response.get('result', {})
        exception_details = response.get('exceptionDetails')
        if remote_object.get('subtype') == 'error' or exception_details:
            description = remote_object.get('description')
            if description is None and exception_details:
                description = exception_details.get('exception', {}).get(
                    'description', exception_details.get('text')
                )
            raise ScriptEvaluationError(description)

        return remote_object.get('value') if return_by_value else remote_object

    async def get_cookies(self) -> list[Cookie]:
        response = await self._execute_command(NetworkCommands.get_cookies())
        return response.get('cookies', [])

    async def get_screenshot(self) -> str:
        """Capture the viewport as a base64 PNG."""
        response = await self._execute_command(PageCommands.capture_screenshot())
        return response['data']

    async def take_screenshot(self, path: Union[str, Path]):
        """Capture the viewport and write it to ``path`` as PNG."""
        data = await self.get_screenshot()
        async with aiofiles.open(str(path), 'wb') as file:
            await file.write(decode_base64_to_bytes(data))
        logger.info(f'Screenshot saved to: {path}')

    async def get_snapshot(self) -> str:
        """Capture the page as an MHTML document."""
        response = await self._execute_command(PageCommands.capture_snapshot())
        return response['data']

    async def _execute_command(self, command) -> dict[str, Any]:
        session = self.session
        if session is None:
            raise TargetNotAttached(f'Page {self.target_id} has no attached session')
        return await session.execute_command(command)

    def _on_attached(self, session: Session):
        session.on(PageDomainEvent.FRAME_ATTACHED, self._on_frame_attached)
        session.on(PageDomainEvent.FRAME_DETACHED, self._on_frame_detached)
        session.on(PageDomainEvent.FRAME_NAVIGATED, self._on_frame_navigated)
        session.on(PageDomainEvent.NAVIGATED_WITHIN_DOCUMENT, self._on_navigated_within_document)
        session.on(PageDomainEvent.FRAME_STARTED_LOADING, self._on_frame_started_loading)
        session.on(PageDomainEvent.LOAD_EVENT_FIRED, self._on_load_event_fired)
        session.on(RuntimeDomainEvent.EXECUTION_CONTEXT_CREATED, self._on_execution_context_created)
        session.on(
            RuntimeDomainEvent.EXECUTION_CONTEXT_DESTROYED, self._on_execution_context_destroyed
        )
        session.on(RuntimeDomainEvent.EXECUTION_CONTEXTS_CLEARED, self._on_execution_contexts_cleared)

    def _on_detached(self, session: Session):
        self._execution_contexts.clear()
        self._execution_contexts_by_frame_id.clear()
        self.loading = False
        logger.debug(f'Page {self.target_id} detached from session {session.session_id}')

    def _on_frame_attached(self, params: FrameAttachedParams):
        frame_id = params['frameId']
        self._frames[frame_id] = Frame(self, frame_id, params.get('parentFrameId'))

    def _on_frame_detached(self, params: FrameDetachedParams):
        self._frames.pop(params['frameId'], None)

    def _on_frame_navigated(self, params: FrameNavigatedParams):
        frame_info = params['frame']
        frame = self._frames.get(frame_info['id'])
        # frameNavigated can arrive before frameAttached for the same frame
        if frame is None:
            logger.debug(f'Navigation for untracked frame {frame_info["id"]} skipped')
            return

        frame.handle_navigated(frame_info)
        if frame is self.main_frame:
            self._events.emit(PageEvent.NAVIGATED)

    def _on_navigated_within_document(self, params: NavigatedWithinDocumentParams):
        frame = self._frames.get(params['frameId'])
        if frame is not None:
            frame.handle_navigated_within_document(params['url'])

    def _on_frame_started_loading(self, params: dict):
        if params['frameId'] == self.main_frame.id:
            self.loading = True
            self.loaded = False
            self._events.emit(PageEvent.STARTED_LOADING)

    def _on_load_event_fired(self, params: dict):
        if self.loading:
            self.loading = False
            self.loaded = True
            self._events.emit(PageEvent.LOADED)

    def _on_execution_context_created(self, params: ExecutionContextCreatedParams):
        context = params['context']
        aux_data = context.get('auxData', {})
        if aux_data.get('isDefault') and aux_data.get('frameId'):
            self._execution_contexts_by_frame_id[aux_data['frameId']] = context
        self._execution_contexts[context['id']] = context

    def _on_execution_context_destroyed(self, params: ExecutionContextDestroyedParams):
        context = self._execution_contexts.pop(params['executionContextId'], None)
        if context is None:
            logger.debug(f'Unknown execution context destroyed: {params["executionContextId"]}')
            return

        aux_data = context.get('auxData', {})
        frame_id = aux_data.get('frameId')
        if aux_data.get('isDefault') and self._execution_contexts_by_frame_id.get(frame_id) is context:
            del self._execution_contexts_by_frame_id[frame_id]

    def _on_execution_contexts_cleared(self, params: dict):
        self._execution_contexts.clear()
        self._execution_contexts_by_frame_id.clear()
