from sider.browser.browser import Browser
from sider.browser.frame import Frame
from sider.browser.network import Network
from sider.browser.options import BrowserOptions
from sider.browser.page import Page
from sider.browser.service_worker import ServiceWorker
from sider.browser.target import Target

__all__ = [
    'Browser',
    'BrowserOptions',
    'Frame',
    'Network',
    'Page',
    'ServiceWorker',
    'Target',
]
