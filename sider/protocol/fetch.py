from __future__ import annotations

from enum import Enum

from typing_extensions import NotRequired, TypedDict


class FetchDomainEvent(str, Enum):
    REQUEST_PAUSED = 'Fetch.requestPaused'
    AUTH_REQUIRED = 'Fetch.authRequired'


class AuthChallengeResponseType(str, Enum):
    DEFAULT = 'Default'
    CANCEL_AUTH = 'CancelAuth'
    PROVIDE_CREDENTIALS = 'ProvideCredentials'


# Fields that only exist on a pause at the response stage.
RESPONSE_STAGE_FIELDS = (
    'responseErrorReason',
    'responseStatusCode',
    'responseStatusText',
    'responseHeaders',
)


class HeaderEntry(TypedDict):
    name: str
    value: str


class RequestPattern(TypedDict):
    urlPattern: NotRequired[str]
    resourceType: NotRequired[str]
    requestStage: NotRequired[str]


class Request(TypedDict):
    url: str
    method: str
    headers: dict[str, str]
    postData: NotRequired[str]
    hasPostData: NotRequired[bool]
    urlFragment: NotRequired[str]


class RequestPausedParams(TypedDict):
    requestId: str
    request: Request
    frameId: str
    resourceType: str
    responseErrorReason: NotRequired[str]
    responseStatusCode: NotRequired[int]
    responseStatusText: NotRequired[str]
    responseHeaders: NotRequired[list[HeaderEntry]]
    networkId: NotRequired[str]
    redirectedRequestId: NotRequired[str]


class AuthChallenge(TypedDict):
    origin: str
    scheme: str
    realm: str
    source: NotRequired[str]


class AuthRequiredParams(TypedDict):
    requestId: str
    request: Request
    frameId: str
    resourceType: str
    authChallenge: AuthChallenge


class Credentials(TypedDict, total=False):
    username: str
    password: str


class GetResponseBodyResult(TypedDict):
    body: str
    base64Encoded: bool
