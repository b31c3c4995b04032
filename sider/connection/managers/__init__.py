from sider.connection.managers.commands_manager import CommandsManager
from sider.connection.managers.events_manager import EventsManager

__all__ = ['CommandsManager', 'EventsManager']
