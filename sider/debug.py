"""
Debug logging switches.

``SIDER_DEBUG`` holds a comma separated list of categories
(``connection``, ``browser``, ``page``, ``network`` or ``all``); each
category turns the matching loggers up to DEBUG.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

DEBUG_ENV_VAR = 'SIDER_DEBUG'

DEBUG_CATEGORIES = {
    'connection': ('sider.connection',),
    'browser': ('sider.browser.browser', 'sider.browser.target'),
    'page': ('sider.browser.page',),
    'network': ('sider.browser.network',),
}


def configure_debug_logging(value: Optional[str] = None) -> list[str]:
    """
    Enable DEBUG level on the loggers named by ``value`` or ``SIDER_DEBUG``.

    A stream handler is attached to the ``sider`` logger the first time any
    category is enabled, so the output shows up without further setup.

    Returns:
        The logger names that were switched to DEBUG.
    """
    if value is None:
        value = os.environ.get(DEBUG_ENV_VAR, '')

    categories = {item.strip().lower() for item in value.split(',') if item.strip()}
    if 'all' in categories:
        categories = set(DEBUG_CATEGORIES)

    names = [name for category in sorted(categories) for name in DEBUG_CATEGORIES.get(category, ())]
    if not names:
        return []

    root = logging.getLogger('sider')
    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
        root.addHandler(handler)

    for name in names:
        logging.getLogger(name).setLevel(logging.DEBUG)
    return names
