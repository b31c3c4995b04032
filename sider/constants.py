from enum import Enum

ROOT_SESSION_ID = None

TOLERATED_RACE_MESSAGES = (
    # the frame navigated or reloaded while the exchange was paused
    'Invalid InterceptionId',
    # the tab was closed while the exchange was paused
    'Session with given id not found',
)


class OpenCloseReason(str, Enum):
    """Who caused a page or the browser to open or close."""

    PROGRAM = 'program'
    USER = 'user'


class TargetType(str, Enum):
    PAGE = 'page'
    SERVICE_WORKER = 'service_worker'


class InterceptionStage(str, Enum):
    REQUEST = 'Request'
    RESPONSE = 'Response'


class BrowserEvent(str, Enum):
    PAGE_ADDED = 'pageAdded'
    PAGE_REMOVED = 'pageRemoved'
    SERVICE_WORKER_ADDED = 'serviceWorkerAdded'
    SERVICE_WORKER_REMOVED = 'serviceWorkerRemoved'
    CLOSED = 'closed'
    ERROR = 'error'


class PageEvent(str, Enum):
    NAVIGATED = 'navigated'
    STARTED_LOADING = 'startedLoading'
    LOADED = 'loaded'


class TargetLifecycleEvent(str, Enum):
    ATTACHED = 'attached'
    DETACHED = 'detached'


class ConnectionEvent(str, Enum):
    CLOSED = 'closed'
