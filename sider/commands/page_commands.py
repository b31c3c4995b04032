from __future__ import annotations

from typing import Optional

from sider.protocol.base import Command


class PageCommands:
    """Builders for Page domain commands."""

    @staticmethod
    def enable() -> Command:
        return Command(method='Page.enable')

    @staticmethod
    def disable() -> Command:
        return Command(method='Page.disable')

    @staticmethod
    def navigate(url: str) -> Command:
        return Command(method='Page.navigate', params={'url': url})

    @staticmethod
    def reload(ignore_cache: Optional[bool] = None) -> Command:
        params: dict = {}
        if ignore_cache is not None:
            params['ignoreCache'] = ignore_cache
        return Command(method='Page.reload', params=params)

    @staticmethod
    def close() -> Command:
        return Command(method='Page.close')

    @staticmethod
    def bring_to_front() -> Command:
        return Command(method='Page.bringToFront')

    @staticmethod
    def add_script_to_evaluate_on_new_document(source: str) -> Command:
        return Command(
            method='Page.addScriptToEvaluateOnNewDocument', params={'source': source}
        )

    @staticmethod
    def capture_screenshot(format: Optional[str] = None) -> Command:
        params: dict = {}
        if format is not None:
            params['format'] = format
        return Command(method='Page.captureScreenshot', params=params)

    @staticmethod
    def capture_snapshot() -> Command:
        """Capture the page as MHTML."""
        return Command(method='Page.captureSnapshot', params={'format': 'mhtml'})
