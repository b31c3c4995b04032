from __future__ import annotations

from enum import Enum

from typing_extensions import NotRequired, TypedDict


class PageDomainEvent(str, Enum):
    FRAME_ATTACHED = 'Page.frameAttached'
    FRAME_DETACHED = 'Page.frameDetached'
    FRAME_NAVIGATED = 'Page.frameNavigated'
    FRAME_STARTED_LOADING = 'Page.frameStartedLoading'
    FRAME_STOPPED_LOADING = 'Page.frameStoppedLoading'
    NAVIGATED_WITHIN_DOCUMENT = 'Page.navigatedWithinDocument'
    LOAD_EVENT_FIRED = 'Page.loadEventFired'


class FrameInfo(TypedDict):
    """Navigation metadata of a frame as reported by ``Page.frameNavigated``."""

    id: str
    loaderId: str
    url: str
    securityOrigin: str
    mimeType: str
    parentId: NotRequired[str]
    name: NotRequired[str]
    urlFragment: NotRequired[str]
    domainAndRegistry: NotRequired[str]


class FrameAttachedParams(TypedDict):
    frameId: str
    parentFrameId: str


class FrameDetachedParams(TypedDict):
    frameId: str
    reason: NotRequired[str]


class FrameNavigatedParams(TypedDict):
    frame: FrameInfo
    type: NotRequired[str]


class NavigatedWithinDocumentParams(TypedDict):
    frameId: str
    url: str
