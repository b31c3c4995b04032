from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from sider.connection.managers import EventsManager
from sider.constants import TargetLifecycleEvent
from sider.exceptions import SessionAlreadyAttached, SessionNotAttached

if TYPE_CHECKING:
    from sider.connection.session import Session
    from sider.protocol.target import TargetInfo

logger = logging.getLogger(__name__)


class Target:
    """
    A browsing context known to the browser (page, worker, ...).

    Holds at most one attached session. Attach and detach strictly
    alternate, starting with attach; anything else is a consistency fault.
    """

    def __init__(self, target_info: TargetInfo):
        self._info = target_info
        self._session: Optional[Session] = None
        self._events = EventsManager()

    def __repr__(self) -> str:
        return f'Target(target_id={self.target_id!r}, type={self.type!r})'

    @property
    def target_id(self) -> str:
        return self._info['targetId']

    @property
    def type(self) -> str:
        return self._info['type']

    @property
    def info(self) -> TargetInfo:
        return self._info

    @property
    def url(self) -> str:
        return self._info.get('url', '')

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def attached(self) -> bool:
        return self._session is not None

    def on(self, event_name: TargetLifecycleEvent, callback: Callable[..., Any]) -> int:
        return self._events.register_callback(event_name, callback)

    def update_info(self, target_info: TargetInfo):
        # The browser reports a different type right before a page closes;
        # keep the type the target was created with.
        updated = {key: value for key, value in target_info.items() if key != 'type'}
        self._info.update(updated)  # type: ignore[typeddict-item]

    def handle_attached(self, session: Session):
        if self._session is not None:
            raise SessionAlreadyAttached(
                f'Target {self.target_id} already has session {self._session.session_id}'
            )
        self._session = session
        logger.debug(f'Target attached: {self.target_id} session={session.session_id}')
        self._events.emit(TargetLifecycleEvent.ATTACHED, session)

    def handle_detached(self):
        if self._session is None:
            raise SessionNotAttached(f'Target {self.target_id} has no session to detach')
        session = self._session
        session.mark_detached()
        self._session = None
        logger.debug(f'Target detached: {self.target_id}')
        self._events.emit(TargetLifecycleEvent.DETACHED, session)
