from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from sider.browser.page import Page
    from sider.protocol.page import FrameInfo
    from sider.protocol.runtime import ExecutionContextDescription


class Frame:
    """A document context inside a page, identified by its frame id."""

    def __init__(self, page: Page, frame_id: str, parent_id: Optional[str] = None):
        self._page = page
        self._frame_id = frame_id
        self._parent_id = parent_id
        self._info: dict[str, Any] = {'id': frame_id}

    def __repr__(self) -> str:
        return f'Frame(frame_id={self._frame_id!r}, url={self.url!r})'

    @property
    def page(self) -> Page:
        return self._page

    @property
    def id(self) -> str:
        return self._frame_id

    @property
    def parent_id(self) -> Optional[str]:
        return self._parent_id

    @property
    def is_main(self) -> bool:
        return self._parent_id is None

    @property
    def info(self) -> dict[str, Any]:
        return self._info

    @property
    def url(self) -> str:
        return self._info.get('url', '')

    @property
    def name(self) -> str:
        return self._info.get('name', '')

    @property
    def loader_id(self) -> Optional[str]:
        return self._info.get('loaderId')

    @property
    def execution_context(self) -> Optional[ExecutionContextDescription]:
        """The frame's default execution context, if one exists right now."""
        return self._page.get_default_execution_context(self._frame_id)

    def handle_navigated(self, frame_info: FrameInfo):
        """Replace navigation metadata with a full ``Page.frameNavigated`` payload."""
        self._info = dict(frame_info)
        self._info['id'] = self._frame_id

    def handle_navigated_within_document(self, url: str):
        self._info['url'] = url
