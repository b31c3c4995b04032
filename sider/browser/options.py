from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

_CAMEL_CASE_KEYS = {
    'enableRuntime': 'enable_runtime',
    'handleAuthRequests': 'handle_auth_requests',
    'handleWebSocketRequests': 'handle_web_socket_requests',
    'handleServiceWorkers': 'handle_service_workers',
    'commandTimeout': 'command_timeout',
}


@dataclass(frozen=True)
class BrowserOptions:
    """
    Behaviour switches for a browser session.

    Attributes:
        enable_runtime: Enable the Runtime domain on every page so scripts
            can be evaluated.
        handle_auth_requests: Answer authentication challenges with the
            network's configured credentials.
        handle_web_socket_requests: Track websocket sessions and report their
            frames.
        handle_service_workers: Track service worker targets.
        command_timeout: Seconds to wait for any command reply, ``None`` for
            no limit.
    """

    enable_runtime: bool = True
    handle_auth_requests: bool = True
    handle_web_socket_requests: bool = False
    handle_service_workers: bool = False
    command_timeout: Optional[float] = None

    @classmethod
    def from_dict(cls, values: Optional[Mapping[str, Any]] = None) -> BrowserOptions:
        """
        Build options from a mapping using camelCase or snake_case keys.

        Unknown keys are ignored.
        """
        known = {field.name for field in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in (values or {}).items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                logger.debug(f'Ignoring unknown browser option: {key}')
                continue
            kwargs[name] = value
        return cls(**kwargs)
