"""Shared fixtures: an in-memory transport scripted per test."""

import asyncio
import json
from typing import Any, Callable, Optional, Union

import pytest_asyncio

from sider.browser.browser import Browser
from sider.browser.options import BrowserOptions
from sider.connection.connection_handler import ConnectionHandler
from sider.connection.transport import Transport
from sider.exceptions import TransportClosed

Result = Union[dict[str, Any], Callable[[dict[str, Any]], dict[str, Any]]]


class FakeTransport(Transport):
    """
    Transport that records outbound commands and answers them from tables.

    ``results`` maps a method to a result dict, or to a callable receiving
    the command and returning one (it may push events first, which are then
    delivered before the reply). ``errors`` maps a method to an error payload.
    With ``auto_reply`` off nothing is answered and tests push replies
    themselves.
    """

    def __init__(self, auto_reply: bool = True):
        self.auto_reply = auto_reply
        self.results: dict[str, Result] = {}
        self.errors: dict[str, dict[str, Any]] = {}
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str):
        if self.closed:
            raise TransportClosed()
        command = json.loads(message)
        self.sent.append(command)
        if self.auto_reply:
            self._reply(command)

    async def __aiter__(self):
        while True:
            message = await self._inbound.get()
            if message is None:
                return
            yield message

    async def close(self):
        if not self.closed:
            self.closed = True
            self._inbound.put_nowait(None)

    def push(self, message: dict[str, Any]):
        self._inbound.put_nowait(json.dumps(message))

    def push_raw(self, message: str):
        self._inbound.put_nowait(message)

    def push_event(self, method: str, params: dict[str, Any], session_id: Optional[str] = None):
        message: dict[str, Any] = {'method': method, 'params': params}
        if session_id is not None:
            message['sessionId'] = session_id
        self.push(message)

    def commands(self, method: Optional[str] = None) -> list[dict[str, Any]]:
        return [command for command in self.sent if method is None or command['method'] == method]

    def methods(self) -> list[str]:
        return [command['method'] for command in self.sent]

    def _reply(self, command: dict[str, Any]):
        method = command['method']
        reply: dict[str, Any] = {'id': command['id']}
        if 'sessionId' in command:
            reply['sessionId'] = command['sessionId']
        if method in self.errors:
            reply['error'] = self.errors[method]
        else:
            result = self.results.get(method, {})
            reply['result'] = result(command) if callable(result) else result
        self.push(reply)


async def _settle(rounds: int = 30):
    """Let the receive task and callback tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def _make_target_info(target_id: str, target_type: str = 'page', url: str = 'about:blank') -> dict:
    return {
        'targetId': target_id,
        'type': target_type,
        'title': '',
        'url': url,
        'attached': False,
    }


def _attach_result(command: dict[str, Any]) -> dict[str, Any]:
    return {'sessionId': f'session-{command["params"]["targetId"]}'}


@pytest_asyncio.fixture
async def settle():
    """Coroutine function that yields to the loop until queued work has run."""
    return _settle


@pytest_asyncio.fixture
async def target_info():
    """Factory for `TargetInfo` payloads."""
    return _make_target_info


@pytest_asyncio.fixture
async def transport():
    """Transport answering every command with an empty result."""
    return FakeTransport()


@pytest_asyncio.fixture
async def connection(transport):
    """Started connection handler over the fake transport."""
    handler = ConnectionHandler(transport)
    await handler.start()
    yield handler
    await handler.close()


@pytest_asyncio.fixture
async def browser_options():
    return BrowserOptions()


@pytest_asyncio.fixture
async def browser(transport, browser_options):
    """Connected and initialized browser; attaches answer with ``session-<targetId>``."""
    transport.results['Target.attachToTarget'] = _attach_result
    browser = Browser(browser_options)
    await browser.connect(transport=transport)
    await browser.initialize()
    yield browser
    await browser.close()


@pytest_asyncio.fixture
async def create_target(browser, transport):
    """Push a targetCreated event and wait until the target is initialized."""

    async def create(target_id, target_type='page', url='about:blank'):
        transport.push_event(
            'Target.targetCreated',
            {'targetInfo': _make_target_info(target_id, target_type, url)},
        )
        await _settle()
        await browser.wait_for_tasks()

    return create


@pytest_asyncio.fixture
async def destroy_target(browser, transport):
    async def destroy(target_id):
        transport.push_event('Target.targetDestroyed', {'targetId': target_id})
        await _settle()

    return destroy
