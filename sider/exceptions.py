from __future__ import annotations

from typing import Any, Optional


class SiderException(Exception):
    """Base exception for every error raised by sider."""

    message = 'An error occurred'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ConsistencyFault(SiderException):
    """Base exception for protocol or programming invariant violations."""

    message = 'Consistency fault'


class DuplicateTarget(ConsistencyFault):
    """Raised when a created event names a target that is already tracked."""

    message = 'Target is already tracked'


class UnknownTarget(ConsistencyFault):
    """Raised when a destroyed event names a target that was never tracked."""

    message = 'Target is not tracked'


class SessionAlreadyAttached(ConsistencyFault):
    """Raised when a session is attached while another one is active."""

    message = 'A session is already attached'


class SessionNotAttached(ConsistencyFault):
    """Raised when a detach happens while no session is attached."""

    message = 'No session is attached'


class DuplicatePausedRequest(ConsistencyFault):
    """Raised when a request is paused again before it was resolved."""

    message = 'Request is already paused'


class DuplicateWebSocketSession(ConsistencyFault):
    """Raised when a websocket is created twice for the same request id."""

    message = 'WebSocket session already exists'


class UnknownWebSocketSession(ConsistencyFault):
    """Raised when a websocket event arrives without its creation event."""

    message = 'WebSocket session not found'


class ProtocolError(SiderException):
    """
    Raised when the browser reports a failure for a command.

    Attributes:
        method: CDP method of the failed command.
        params: Parameters the command was sent with.
        error: Raw error payload from the browser.
        code: Error code from the payload, if any.
        data: Additional error data from the payload, if any.
    """

    message = 'Command failed'

    def __init__(
        self,
        message: Optional[str] = None,
        method: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        error: Optional[dict[str, Any]] = None,
    ):
        self.method = method
        self.params = params or {}
        self.error = error or {}
        self.code = self.error.get('code')
        self.data = self.error.get('data')
        super().__init__(message or self.error.get('message'))

    def __str__(self) -> str:
        if self.method:
            return f'{self.message} ({self.method})'
        return self.message


class TransportClosed(SiderException):
    """Raised when the connection is gone before a reply arrives."""

    message = 'Transport is closed'


class SessionDetached(TransportClosed):
    """Raised when sending on a session whose target was detached."""

    message = 'Session is detached'


class CommandExecutionTimeout(SiderException):
    """Raised when a command reply does not arrive in time."""

    message = 'Command execution timed out'


class EvaluationError(SiderException):
    """Base exception for script evaluation failures."""

    message = 'Script evaluation failed'


class NoFrame(EvaluationError):
    """Raised when evaluating in a frame that does not exist."""

    message = 'No frame'


class NoExecutionContext(EvaluationError):
    """Raised when a frame has no default execution context."""

    message = 'No execution context'


class TargetNotAttached(EvaluationError):
    """Raised when a command needs a session the target does not have."""

    message = 'Target has no attached session'


class ScriptEvaluationError(EvaluationError):
    """Raised when the evaluated function throws inside the page."""

    message = 'Script raised an error'

    def __init__(self, description: Optional[str] = None):
        self.description = description
        super().__init__(description)


class NavigationFailed(SiderException):
    """Raised when the navigated document response carries an error reason."""

    message = 'Navigation failed'


class NavigationTimeout(SiderException):
    """Raised when the main frame does not navigate in time."""

    message = 'Navigation timed out'


class BrowserNotConnected(SiderException):
    """Raised when a browser operation needs a connection that does not exist."""

    message = 'Browser is not connected'
