from __future__ import annotations

from enum import Enum

from typing_extensions import NotRequired, TypedDict


class TargetDomainEvent(str, Enum):
    TARGET_CREATED = 'Target.targetCreated'
    TARGET_DESTROYED = 'Target.targetDestroyed'
    TARGET_INFO_CHANGED = 'Target.targetInfoChanged'
    ATTACHED_TO_TARGET = 'Target.attachedToTarget'
    DETACHED_FROM_TARGET = 'Target.detachedFromTarget'


class TargetInfo(TypedDict):
    targetId: str
    type: str
    title: str
    url: str
    attached: bool
    openerId: NotRequired[str]
    browserContextId: NotRequired[str]


class TargetCreatedParams(TypedDict):
    targetInfo: TargetInfo


class TargetDestroyedParams(TypedDict):
    targetId: str


class TargetInfoChangedParams(TypedDict):
    targetInfo: TargetInfo


class AttachedToTargetParams(TypedDict):
    sessionId: str
    targetInfo: TargetInfo
    waitingForDebugger: bool


class DetachedFromTargetParams(TypedDict):
    sessionId: str
    targetId: NotRequired[str]
