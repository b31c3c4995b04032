from __future__ import annotations

from typing import Optional

from sider.constants import InterceptionStage
from sider.protocol.base import Command
from sider.protocol.fetch import AuthChallengeResponseType, Credentials, RequestPattern


class FetchCommands:
    """Builders for Fetch domain (request interception) commands."""

    @staticmethod
    def enable(
        handle_auth_requests: bool = False,
        patterns: Optional[list[RequestPattern]] = None,
    ) -> Command:
        """
        Enable request interception.

        Args:
            handle_auth_requests: Pause on authentication challenges too.
            patterns: Which requests to pause; defaults to every request at
                both the request and the response stage.
        """
        if patterns is None:
            patterns = [
                RequestPattern(requestStage=InterceptionStage.REQUEST.value),
                RequestPattern(requestStage=InterceptionStage.RESPONSE.value),
            ]
        return Command(
            method='Fetch.enable',
            params={'handleAuthRequests': handle_auth_requests, 'patterns': patterns},
        )

    @staticmethod
    def disable() -> Command:
        return Command(method='Fetch.disable')

    @staticmethod
    def continue_request(request_id: str) -> Command:
        return Command(method='Fetch.continueRequest', params={'requestId': request_id})

    @staticmethod
    def fail_request(request_id: str, error_reason: str = 'Failed') -> Command:
        return Command(
            method='Fetch.failRequest',
            params={'requestId': request_id, 'errorReason': error_reason},
        )

    @staticmethod
    def continue_with_auth(
        request_id: str,
        response: AuthChallengeResponseType = AuthChallengeResponseType.PROVIDE_CREDENTIALS,
        credentials: Optional[Credentials] = None,
    ) -> Command:
        """Answer an authentication challenge, optionally with credentials."""
        challenge_response: dict = {'response': response.value}
        if credentials:
            challenge_response.update(credentials)
        return Command(
            method='Fetch.continueWithAuth',
            params={'requestId': request_id, 'authChallengeResponse': challenge_response},
        )

    @staticmethod
    def get_response_body(request_id: str) -> Command:
        return Command(method='Fetch.getResponseBody', params={'requestId': request_id})
