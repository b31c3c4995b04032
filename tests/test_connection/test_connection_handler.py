"""Tests for sider.connection.connection_handler module."""

import asyncio

import pytest
import pytest_asyncio
from unittest.mock import MagicMock

from sider.connection.connection_handler import ConnectionHandler
from sider.exceptions import (
    CommandExecutionTimeout,
    ProtocolError,
    SessionAlreadyAttached,
    SessionDetached,
    TransportClosed,
)


class TestCommandCorrelation:
    """Test id assignment and reply matching."""

    @pytest.mark.asyncio
    async def test_ids_start_at_one_and_increase(self, connection, transport):
        await connection.root_session.send('Browser.getVersion')
        await connection.root_session.send('Browser.getVersion')
        assert [command['id'] for command in transport.sent] == [1, 2]

    @pytest.mark.asyncio
    async def test_ids_are_shared_across_sessions(self, connection, transport):
        child = connection.create_session('session-1')
        await connection.root_session.send('Target.getTargets')
        await child.send('Page.enable')
        await connection.root_session.send('Target.getTargets')
        assert [command['id'] for command in transport.sent] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_send_returns_result_payload(self, connection, transport):
        transport.results['Browser.getVersion'] = {'product': 'Chrome/120'}
        result = await connection.root_session.send('Browser.getVersion')
        assert result == {'product': 'Chrome/120'}

    @pytest.mark.asyncio
    async def test_root_commands_have_no_session_id(self, connection, transport):
        await connection.root_session.send('Target.setDiscoverTargets', {'discover': True})
        assert 'sessionId' not in transport.sent[0]
        assert transport.sent[0]['params'] == {'discover': True}

    @pytest.mark.asyncio
    async def test_child_commands_carry_session_id(self, connection, transport):
        child = connection.create_session('session-1')
        await child.send('Page.enable')
        assert transport.sent[0]['sessionId'] == 'session-1'

    @pytest.mark.asyncio
    async def test_error_reply_raises_protocol_error(self, connection, transport):
        transport.errors['Page.navigate'] = {'code': -32000, 'message': 'Cannot navigate'}
        with pytest.raises(ProtocolError) as exc_info:
            await connection.root_session.send('Page.navigate', {'url': 'x'})
        assert exc_info.value.code == -32000
        assert exc_info.value.message == 'Cannot navigate'
        assert exc_info.value.method == 'Page.navigate'
        assert exc_info.value.params == {'url': 'x'}

    @pytest.mark.asyncio
    async def test_out_of_order_replies_resolve_their_own_command(
        self, connection, transport, settle
    ):
        transport.auto_reply = False
        first = asyncio.create_task(connection.root_session.send('First.method'))
        second = asyncio.create_task(connection.root_session.send('Second.method'))
        await settle()

        transport.push({'id': 2, 'result': {'value': 'second'}})
        transport.push({'id': 1, 'result': {'value': 'first'}})

        assert await first == {'value': 'first'}
        assert await second == {'value': 'second'}
        assert connection.pending_commands == 0

    @pytest.mark.asyncio
    async def test_unknown_reply_id_is_dropped(self, connection, transport, settle):
        transport.push({'id': 99, 'result': {}})
        await settle()
        assert not connection.closed
        assert await connection.root_session.send('Browser.getVersion') == {}

    @pytest.mark.asyncio
    async def test_undecodable_message_is_dropped(self, connection, transport, settle):
        transport.push_raw('not json')
        transport.push_raw('[1, 2]')
        await settle()
        assert not connection.closed
        assert await connection.root_session.send('Browser.getVersion') == {}


class TestTimeouts:
    """Test the optional command timeout."""

    @pytest.mark.asyncio
    async def test_timeout_raises_and_clears_pending(self, transport):
        transport.auto_reply = False
        handler = ConnectionHandler(transport, command_timeout=0.01)
        await handler.start()

        with pytest.raises(CommandExecutionTimeout):
            await handler.root_session.send('Page.navigate')
        assert handler.pending_commands == 0
        await handler.close()


class TestEventRouting:
    """Test event fan-out by session id."""

    @pytest.mark.asyncio
    async def test_event_reaches_named_session_only(self, connection, transport, settle):
        child = connection.create_session('session-1')
        root_callback = MagicMock()
        child_callback = MagicMock()
        connection.on(connection.root_session, 'Page.loadEventFired', root_callback)
        connection.on(child, 'Page.loadEventFired', child_callback)

        transport.push_event('Page.loadEventFired', {'timestamp': 1.0}, session_id='session-1')
        await settle()

        child_callback.assert_called_once_with({'timestamp': 1.0})
        root_callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_event_without_session_id_reaches_root(self, connection, transport, settle):
        callback = MagicMock()
        connection.root_session.on('Target.targetCreated', callback)
        transport.push_event('Target.targetCreated', {'targetInfo': {}})
        await settle()
        callback.assert_called_once_with({'targetInfo': {}})

    @pytest.mark.asyncio
    async def test_event_for_unknown_session_is_dropped(self, connection, transport, settle):
        callback = MagicMock()
        connection.root_session.on('Page.loadEventFired', callback)
        transport.push_event('Page.loadEventFired', {}, session_id='gone')
        await settle()
        callback.assert_not_called()
        assert not connection.closed

    @pytest.mark.asyncio
    async def test_off_stops_delivery(self, connection, transport, settle):
        callback = MagicMock()
        callback_id = connection.on(connection.root_session, 'Page.loadEventFired', callback)
        assert connection.off(connection.root_session, callback_id) is True
        transport.push_event('Page.loadEventFired', {})
        await settle()
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_errors_go_to_error_handler(self, transport, settle):
        errors = []
        handler = ConnectionHandler(transport, error_handler=errors.append)
        await handler.start()
        child = handler.create_session('session-1')
        child.on('Page.frameNavigated', MagicMock(side_effect=ValueError('bad')))

        transport.push_event('Page.frameNavigated', {}, session_id='session-1')
        await settle()

        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)
        await handler.close()


class TestSessionRegistry:
    """Test session creation and removal."""

    @pytest.mark.asyncio
    async def test_duplicate_session_raises(self, connection):
        connection.create_session('session-1')
        with pytest.raises(SessionAlreadyAttached):
            connection.create_session('session-1')

    @pytest.mark.asyncio
    async def test_removed_session_is_detached(self, connection):
        session = connection.create_session('session-1')
        assert connection.remove_session('session-1') is session
        assert session.detached
        assert connection.get_session('session-1') is None
        with pytest.raises(SessionDetached):
            await session.send('Page.enable')

    @pytest.mark.asyncio
    async def test_remove_session_fails_its_pending_commands(
        self, connection, transport, settle
    ):
        transport.auto_reply = False
        child = connection.create_session('session-1')
        on_child = asyncio.create_task(child.send('Runtime.evaluate'))
        on_root = asyncio.create_task(connection.root_session.send('Target.getTargets'))
        await settle()

        connection.remove_session('session-1')

        with pytest.raises(SessionDetached):
            await on_child
        assert not on_root.done()
        assert connection.pending_commands == 1

        transport.push({'id': 2, 'result': {}})
        assert await on_root == {}
        assert connection.pending_commands == 0

    @pytest.mark.asyncio
    async def test_remove_unknown_session_returns_none(self, connection):
        assert connection.remove_session('missing') is None


class TestClosure:
    """Test connection shutdown."""

    @pytest_asyncio.fixture
    async def silent_transport(self, transport):
        transport.auto_reply = False
        return transport

    @pytest.mark.asyncio
    async def test_close_fails_pending_commands(self, connection, silent_transport, settle):
        pending = asyncio.create_task(connection.root_session.send('Page.navigate'))
        await settle()

        await connection.close()

        with pytest.raises(TransportClosed):
            await pending
        assert connection.pending_commands == 0

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self, connection):
        await connection.close()
        with pytest.raises(TransportClosed):
            await connection.root_session.send('Page.enable')

    @pytest.mark.asyncio
    async def test_close_detaches_child_sessions(self, connection):
        child = connection.create_session('session-1')
        await connection.close()
        assert child.detached
        assert connection.get_session('session-1') is None

    @pytest.mark.asyncio
    async def test_transport_end_closes_connection(self, connection, transport, settle):
        on_closed = MagicMock()
        connection.on_closed(on_closed)

        await transport.close()
        await settle()

        assert connection.closed
        on_closed.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, connection):
        on_closed = MagicMock()
        connection.on_closed(on_closed)
        await connection.close()
        await connection.close()
        on_closed.assert_called_once_with()
