from __future__ import annotations

from enum import Enum
from typing import Any

from typing_extensions import NotRequired, TypedDict


class RuntimeDomainEvent(str, Enum):
    EXECUTION_CONTEXT_CREATED = 'Runtime.executionContextCreated'
    EXECUTION_CONTEXT_DESTROYED = 'Runtime.executionContextDestroyed'
    EXECUTION_CONTEXTS_CLEARED = 'Runtime.executionContextsCleared'


class ExecutionContextAuxData(TypedDict):
    isDefault: bool
    frameId: str
    type: NotRequired[str]


class ExecutionContextDescription(TypedDict):
    id: int
    origin: str
    name: str
    uniqueId: NotRequired[str]
    auxData: NotRequired[ExecutionContextAuxData]


class ExecutionContextCreatedParams(TypedDict):
    context: ExecutionContextDescription


class ExecutionContextDestroyedParams(TypedDict):
    executionContextId: int
    executionContextUniqueId: NotRequired[str]


class CallArgument(TypedDict):
    value: NotRequired[Any]
    objectId: NotRequired[str]


class RemoteObject(TypedDict):
    type: str
    subtype: NotRequired[str]
    className: NotRequired[str]
    value: NotRequired[Any]
    description: NotRequired[str]
    objectId: NotRequired[str]


class ExceptionDetails(TypedDict):
    exceptionId: int
    text: str
    lineNumber: int
    columnNumber: int
    exception: NotRequired[RemoteObject]


class CallFunctionOnResult(TypedDict):
    result: RemoteObject
    exceptionDetails: NotRequired[ExceptionDetails]
