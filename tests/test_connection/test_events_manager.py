"""Tests for sider.connection.managers.events_manager module."""

import pytest
from unittest.mock import MagicMock

from sider.connection.managers import EventsManager


class TestRegistration:
    """Test callback registration and removal."""

    def test_register_returns_increasing_ids(self):
        manager = EventsManager()
        assert manager.register_callback('a', MagicMock()) == 1
        assert manager.register_callback('a', MagicMock()) == 2

    def test_register_rejects_non_callable(self):
        manager = EventsManager()
        with pytest.raises(TypeError):
            manager.register_callback('a', 'not callable')

    def test_remove_callback(self):
        manager = EventsManager()
        callback_id = manager.register_callback('a', MagicMock())
        assert manager.remove_callback(callback_id) is True
        assert manager.remove_callback(callback_id) is False
        assert not manager.has_callbacks('a')

    def test_clear_callbacks(self):
        manager = EventsManager()
        manager.register_callback('a', MagicMock())
        manager.register_callback('b', MagicMock())
        manager.clear_callbacks()
        assert not manager.has_callbacks('a')
        assert not manager.has_callbacks('b')


class TestEmit:
    """Test dispatch order and error reporting."""

    def test_sync_callbacks_run_in_registration_order(self):
        manager = EventsManager()
        calls = []
        manager.register_callback('a', lambda value: calls.append(('first', value)))
        manager.register_callback('b', lambda value: calls.append(('other', value)))
        manager.register_callback('a', lambda value: calls.append(('second', value)))

        manager.emit('a', 1)

        assert calls == [('first', 1), ('second', 1)]

    def test_temporary_callback_runs_once(self):
        manager = EventsManager()
        callback = MagicMock()
        manager.register_callback('a', callback, temporary=True)
        manager.emit('a')
        manager.emit('a')
        callback.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_async_callbacks_start_in_registration_order(self):
        manager = EventsManager()
        calls = []

        async def first():
            calls.append('first')

        async def second():
            calls.append('second')

        manager.register_callback('a', first)
        manager.register_callback('a', second)
        manager.emit('a')
        await manager.wait_for_tasks()

        assert calls == ['first', 'second']

    def test_sync_error_goes_to_error_handler(self):
        errors = []
        manager = EventsManager(error_handler=errors.append)
        after = MagicMock()
        manager.register_callback('a', MagicMock(side_effect=RuntimeError('boom')))
        manager.register_callback('a', after)

        manager.emit('a')

        assert [str(error) for error in errors] == ['boom']
        after.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_async_error_goes_to_error_handler(self):
        errors = []
        manager = EventsManager(error_handler=errors.append)

        async def failing():
            raise RuntimeError('async boom')

        manager.register_callback('a', failing)
        manager.emit('a')
        await manager.wait_for_tasks()

        assert len(errors) == 1
        assert str(errors[0]) == 'async boom'

    def test_error_without_handler_is_logged(self, caplog):
        manager = EventsManager()
        manager.register_callback('a', MagicMock(side_effect=RuntimeError('boom')))
        with caplog.at_level('ERROR', logger='sider.connection.managers.events_manager'):
            manager.emit('a')
        assert 'Error in callback for a' in caplog.text
