from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from sider.browser.network import Network
from sider.exceptions import ProtocolError, TargetNotAttached, TransportClosed

if TYPE_CHECKING:
    from sider.browser.browser import Browser
    from sider.browser.target import Target
    from sider.connection.session import Session

logger = logging.getLogger(__name__)


class ServiceWorker:
    """A service worker target; intercepted like a page but without frames."""

    def __init__(self, browser: Browser, target: Target):
        self._browser = browser
        self._target = target
        self.initialized = False
        self.added_to_browser = False
        self.removed_from_browser = False
        self.network = Network(browser, self)

    def __repr__(self) -> str:
        return f'ServiceWorker(target_id={self.target_id!r})'

    @property
    def target(self) -> Target:
        return self._target

    @property
    def target_id(self) -> str:
        return self._target.target_id

    @property
    def url(self) -> str:
        return self._target.url

    @property
    def session(self) -> Optional[Session]:
        return self._target.session

    async def initialize(self):
        """Attach and enable interception; stops quietly if the worker is destroyed meanwhile."""
        try:
            await self._browser.attach_to_target(self._target)
            await self.network.initialize()
        except (ProtocolError, TransportClosed, TargetNotAttached) as exc:
            if self.removed_from_browser:
                logger.debug(f'Service worker {self.target_id} removed while initializing: {exc}')
                return
            raise

        self.initialized = True
        logger.info(f'Service worker initialized: target_id={self.target_id}')
