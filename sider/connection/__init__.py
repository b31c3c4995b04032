from sider.connection.connection_handler import ConnectionHandler
from sider.connection.session import Session
from sider.connection.transport import Transport, WebSocketTransport

__all__ = ['ConnectionHandler', 'Session', 'Transport', 'WebSocketTransport']
