from __future__ import annotations

from sider.protocol.base import Command


class NetworkCommands:
    """Builders for Network domain commands."""

    @staticmethod
    def enable() -> Command:
        return Command(method='Network.enable')

    @staticmethod
    def disable() -> Command:
        return Command(method='Network.disable')

    @staticmethod
    def get_cookies() -> Command:
        return Command(method='Network.getCookies')
