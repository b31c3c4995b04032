"""Tests for the sider.commands builders."""

from sider.commands import FetchCommands, RuntimeCommands, TargetCommands
from sider.protocol.fetch import AuthChallengeResponseType


class TestTargetCommands:
    def test_create_target_with_new_window(self):
        command = TargetCommands.create_target('https://a.test/', new_window=True)
        assert command == {
            'method': 'Target.createTarget',
            'params': {'url': 'https://a.test/', 'newWindow': True},
        }

    def test_attach_is_flattened(self):
        command = TargetCommands.attach_to_target('T1')
        assert command['params'] == {'targetId': 'T1', 'flatten': True}


class TestFetchCommands:
    def test_enable_with_custom_patterns(self):
        command = FetchCommands.enable(patterns=[{'urlPattern': '*.js'}])
        assert command['params'] == {'handleAuthRequests': False, 'patterns': [{'urlPattern': '*.js'}]}

    def test_cancel_auth(self):
        command = FetchCommands.continue_with_auth('a1', AuthChallengeResponseType.CANCEL_AUTH)
        assert command['params']['authChallengeResponse'] == {'response': 'CancelAuth'}

    def test_fail_request_reason(self):
        command = FetchCommands.fail_request('r1', 'BlockedByClient')
        assert command['params'] == {'requestId': 'r1', 'errorReason': 'BlockedByClient'}


class TestRuntimeCommands:
    def test_call_function_on_without_await(self):
        command = RuntimeCommands.call_function_on(1, '() => 1', await_promise=False)
        assert command['params']['awaitPromise'] is False
        assert command['params']['arguments'] == []
