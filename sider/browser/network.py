from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from sider.commands import FetchCommands, NetworkCommands
from sider.constants import TOLERATED_RACE_MESSAGES, InterceptionStage
from sider.exceptions import (
    DuplicatePausedRequest,
    DuplicateWebSocketSession,
    ProtocolError,
    SessionDetached,
    TargetNotAttached,
    UnknownWebSocketSession,
)
from sider.protocol.fetch import (
    RESPONSE_STAGE_FIELDS,
    AuthChallengeResponseType,
    FetchDomainEvent,
)
from sider.protocol.network import WEB_SOCKET_TEXT_OPCODE, NetworkDomainEvent
from sider.utils import call_handler, decode_base64_to_bytes

if TYPE_CHECKING:
    from sider.browser.browser import Browser
    from sider.browser.page import Page
    from sider.browser.service_worker import ServiceWorker
    from sider.connection.session import Session
    from sider.protocol.base import Command
    from sider.protocol.fetch import (
        AuthRequiredParams,
        Credentials,
        GetResponseBodyResult,
        Request,
        RequestPausedParams,
    )
    from sider.protocol.network import (
        WebSocketClosedParams,
        WebSocketCreatedParams,
        WebSocketFrame,
        WebSocketFrameParams,
    )

logger = logging.getLogger(__name__)

PausedHandler = Callable[['RequestPausedParams'], Union[Any, Awaitable[Any]]]
RequestFilter = Callable[['Request'], bool]
WebSocketMessageHandler = Callable[[str, Union[str, bytes]], Union[Any, Awaitable[Any]]]


class Network:
    """
    Request interception for one page or service worker.

    Every request is paused twice by the browser: once before it is sent
    (request stage) and once when its response headers arrive (response
    stage). Each pause runs through the configured handlers and is then
    continued or failed. Resolution commands may race with the frame
    navigating away; the known benign failures of that race are absorbed.

    Attributes:
        request_handler: Called with the pause payload at the request stage.
        response_handler: Called with the pause payload at the response stage,
            while the exchange is still paused, so it may fetch the body.
        request_filter: Predicate over the request; a rejected request is
            failed instead of continued.
        credentials: ``username``/``password`` sent on auth challenges.
        web_socket_message_sent_handler: Called with ``(url, payload)`` for
            every frame the page sends on a websocket.
        web_socket_message_received_handler: Same, for received frames.
    """

    def __init__(self, browser: Browser, owner: Union[Page, ServiceWorker]):
        self._browser = browser
        self._owner = owner
        self._paused: dict[str, InterceptionStage] = {}
        self._web_socket_sessions: dict[str, dict[str, Any]] = {}
        self._reported_races: set[str] = set()
        self._network_enabled = False

        self.request_handler: Optional[PausedHandler] = None
        self.response_handler: Optional[PausedHandler] = None
        self.request_filter: Optional[RequestFilter] = None
        self.credentials: Optional[Credentials] = None
        self.web_socket_message_sent_handler: Optional[WebSocketMessageHandler] = None
        self.web_socket_message_received_handler: Optional[WebSocketMessageHandler] = None

    @property
    def session(self) -> Session:
        session = self._owner.session
        if session is None:
            raise TargetNotAttached(f'{self._owner!r} has no attached session')
        return session

    @property
    def network_enabled(self) -> bool:
        return self._network_enabled

    @property
    def paused_requests(self) -> dict[str, InterceptionStage]:
        return dict(self._paused)

    @property
    def web_socket_sessions(self) -> dict[str, dict[str, Any]]:
        return dict(self._web_socket_sessions)

    async def initialize(self):
        """Subscribe to interception events and enable both interception stages."""
        options = self._browser.options
        session = self.session

        if options.handle_web_socket_requests:
            await self.subscribe_to_web_socket_requests()

        session.on(FetchDomainEvent.REQUEST_PAUSED, self._on_request_paused)
        if options.handle_auth_requests:
            session.on(FetchDomainEvent.AUTH_REQUIRED, self._on_auth_required)

        await session.execute_command(
            FetchCommands.enable(handle_auth_requests=options.handle_auth_requests)
        )
        logger.debug(f'Interception enabled for {self._owner!r}')

    async def subscribe_to_web_socket_requests(self):
        await self.set_network_enabled(True)

        session = self.session
        session.on(NetworkDomainEvent.WEB_SOCKET_CREATED, self._on_web_socket_created)
        session.on(NetworkDomainEvent.WEB_SOCKET_CLOSED, self._on_web_socket_closed)
        session.on(NetworkDomainEvent.WEB_SOCKET_FRAME_SENT, self._on_web_socket_frame_sent)
        session.on(
            NetworkDomainEvent.WEB_SOCKET_FRAME_RECEIVED, self._on_web_socket_frame_received
        )

    async def set_network_enabled(self, value: bool):
        """Enable or disable the Network domain; repeated calls are no-ops."""
        if self._network_enabled == value:
            return
        self._network_enabled = value
        command = NetworkCommands.enable() if value else NetworkCommands.disable()
        await self.session.execute_command(command)

    async def get_response_body(self, request_id: str) -> bytes:
        """
        Fetch the body of a response paused at the response stage.

        Args:
            request_id: Id of the paused exchange.

        Returns:
            The raw body, base64-decoded when the browser flagged it so.
        """
        result: GetResponseBodyResult = await self.session.execute_command(
            FetchCommands.get_response_body(request_id)
        )
        body = result.get('body', '')
        if result.get('base64Encoded'):
            return decode_base64_to_bytes(body)
        return body.encode('utf-8')

    async def get_response_json(self, request_id: str) -> Any:
        """Fetch a paused response body and parse it as JSON; an empty body gives ``{}``."""
        body = await self.get_response_body(request_id)
        return json.loads(body.decode('utf-8') or '{}')

    @staticmethod
    def get_stage(params: RequestPausedParams) -> InterceptionStage:
        """Classify a pause by the presence of response-only fields."""
        if any(field in params for field in RESPONSE_STAGE_FIELDS):
            return InterceptionStage.RESPONSE
        return InterceptionStage.REQUEST

    async def _on_request_paused(self, params: RequestPausedParams):
        request_id = params['requestId']
        stage = self.get_stage(params)
        if request_id in self._paused:
            raise DuplicatePausedRequest(
                f'Request {request_id} paused at {stage.value} while still paused at '
                f'{self._paused[request_id].value}'
            )
        self._paused[request_id] = stage
        logger.debug(f'Request paused: id={request_id}, stage={stage.value}')

        if stage is InterceptionStage.RESPONSE:
            await self._handle_response_stage(params)
        else:
            await self._handle_request_stage(params)

    async def _handle_response_stage(self, params: RequestPausedParams):
        request_id = params['requestId']
        try:
            if self.response_handler is not None:
                await call_handler(self.response_handler, params)
        finally:
            # Fetch.continueResponse breaks in incognito contexts, continueRequest
            # resumes a response-stage pause just as well.
            await self._resolve(FetchCommands.continue_request(request_id), request_id)

    async def _handle_request_stage(self, params: RequestPausedParams):
        request_id = params['requestId']
        try:
            if self.request_handler is not None:
                await call_handler(self.request_handler, params)
            passed = self.request_filter(params['request']) if self.request_filter else True
        except Exception:
            await self._resolve(FetchCommands.fail_request(request_id), request_id)
            raise

        if passed:
            await self._resolve(FetchCommands.continue_request(request_id), request_id)
        else:
            logger.debug(f'Request rejected by filter: {params["request"].get("url")}')
            await self._resolve(FetchCommands.fail_request(request_id), request_id)

    async def _on_auth_required(self, params: AuthRequiredParams):
        request_id = params['requestId']
        logger.debug(f'Auth required: id={request_id}, credentials_set={bool(self.credentials)}')
        await self._send_absorbing_races(
            FetchCommands.continue_with_auth(
                request_id,
                AuthChallengeResponseType.PROVIDE_CREDENTIALS,
                self.credentials,
            )
        )

    async def _resolve(self, command: Command, request_id: str):
        self._paused.pop(request_id, None)
        await self._send_absorbing_races(command)

    async def _send_absorbing_races(self, command: Command):
        try:
            session = self.session
            await session.execute_command(command)
        except (ProtocolError, SessionDetached, TargetNotAttached) as exc:
            self._absorb_race(exc, command)

    def _absorb_race(self, exc: Exception, command: Command):
        """Swallow the known navigation/close races, re-raise everything else."""
        if isinstance(exc, (SessionDetached, TargetNotAttached)):
            cause = 'Session with given id not found'
        else:
            cause = next((msg for msg in TOLERATED_RACE_MESSAGES if msg in exc.message), None)
            if cause is None:
                raise exc

        if cause not in self._reported_races:
            self._reported_races.add(cause)
            request_id = command.get('params', {}).get('requestId')
            logger.debug(f'{cause} on {command["method"]} for request {request_id}; ignoring')

    def _on_web_socket_created(self, params: WebSocketCreatedParams):
        request_id = params['requestId']
        if request_id in self._web_socket_sessions:
            raise DuplicateWebSocketSession(
                f'WebSocket session already exists: {request_id} {params.get("url")}'
            )
        self._web_socket_sessions[request_id] = {
            'url': params['url'],
            'initiator': params.get('initiator'),
        }

    def _on_web_socket_closed(self, params: WebSocketClosedParams):
        request_id = params['requestId']
        if self._web_socket_sessions.pop(request_id, None) is None:
            raise UnknownWebSocketSession(f'No websocket session: {request_id}')

    async def _on_web_socket_frame_sent(self, params: WebSocketFrameParams):
        await self._dispatch_web_socket_frame(params, self.web_socket_message_sent_handler)

    async def _on_web_socket_frame_received(self, params: WebSocketFrameParams):
        await self._dispatch_web_socket_frame(params, self.web_socket_message_received_handler)

    async def _dispatch_web_socket_frame(
        self, params: WebSocketFrameParams, handler: Optional[WebSocketMessageHandler]
    ):
        request_id = params['requestId']
        web_socket_session = self._web_socket_sessions.get(request_id)
        if web_socket_session is None:
            raise UnknownWebSocketSession(f'No websocket session: {request_id}')
        if handler is not None:
            payload = self.get_web_socket_payload(params['response'])
            await call_handler(handler, web_socket_session['url'], payload)

    @staticmethod
    def get_web_socket_payload(frame: WebSocketFrame) -> Union[str, bytes]:
        """Text frames carry UTF-8 text, every other opcode carries base64 data."""
        if frame['opcode'] == WEB_SOCKET_TEXT_OPCODE:
            return frame['payloadData']
        return decode_base64_to_bytes(frame['payloadData'])
