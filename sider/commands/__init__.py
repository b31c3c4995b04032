from sider.commands.fetch_commands import FetchCommands
from sider.commands.network_commands import NetworkCommands
from sider.commands.page_commands import PageCommands
from sider.commands.runtime_commands import RuntimeCommands
from sider.commands.target_commands import TargetCommands

__all__ = [
    'FetchCommands',
    'NetworkCommands',
    'PageCommands',
    'RuntimeCommands',
    'TargetCommands',
]
