from __future__ import annotations

from typing import Optional

from sider.protocol.base import Command


class TargetCommands:
    """
    Builders for Target domain commands.

    The Target domain discovers, creates, attaches to and closes browsing
    targets. It is always used through the root session.
    """

    @staticmethod
    def set_discover_targets(discover: bool) -> Command:
        """Turn target-created/destroyed/info-changed notifications on or off."""
        return Command(method='Target.setDiscoverTargets', params={'discover': discover})

    @staticmethod
    def create_target(url: str = '', new_window: Optional[bool] = None) -> Command:
        """
        Open a new page.

        Args:
            url: Initial URL; an empty string opens a blank page.
            new_window: Open in a new window instead of a tab.
        """
        params: dict = {'url': url}
        if new_window is not None:
            params['newWindow'] = new_window
        return Command(method='Target.createTarget', params=params)

    @staticmethod
    def close_target(target_id: str) -> Command:
        return Command(method='Target.closeTarget', params={'targetId': target_id})

    @staticmethod
    def attach_to_target(target_id: str, flatten: bool = True) -> Command:
        """
        Attach to a target.

        With ``flatten`` the new session is multiplexed over the same
        connection and addressed by ``sessionId`` instead of being tunnelled
        through ``Target.sendMessageToTarget``.
        """
        return Command(
            method='Target.attachToTarget',
            params={'targetId': target_id, 'flatten': flatten},
        )

    @staticmethod
    def detach_from_target(session_id: str) -> Command:
        return Command(method='Target.detachFromTarget', params={'sessionId': session_id})
