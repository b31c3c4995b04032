import logging

from sider.browser import Browser, BrowserOptions, Frame, Network, Page, ServiceWorker
from sider.constants import BrowserEvent, InterceptionStage, OpenCloseReason, PageEvent

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'Browser',
    'BrowserEvent',
    'BrowserOptions',
    'Frame',
    'InterceptionStage',
    'Network',
    'OpenCloseReason',
    'Page',
    'PageEvent',
    'ServiceWorker',
]
