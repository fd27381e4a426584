"""
PageHandle implementation backed by Playwright's async API.

Thin adapters: each method maps onto one Playwright call. Element handles are
returned wrapped so the interaction flow never sees Playwright types.

Example:
    >>> from playwright.async_api import async_playwright
    >>> async with async_playwright() as pw:
    ...     browser = await pw.chromium.launch()
    ...     page = PlaywrightPage(await browser.new_page())
    ...     await page.goto("https://chatgpt.com/")
"""

import logging
from typing import Any

from playwright.async_api import ElementHandle as PwElementHandle
from playwright.async_api import Frame as PwFrame
from playwright.async_api import Page as PwPage

from .page import BoundingBox

logger = logging.getLogger(__name__)

_READ_VALUE_SCRIPT = "(el) => el.value || el.innerText || ''"

_SET_VALUE_SCRIPT = """
(el, text) => {
  if ('value' in el) {
    el.value = text;
  } else {
    el.innerText = text;
  }
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

_WRITE_CLIPBOARD_SCRIPT = "(text) => navigator.clipboard.writeText(text)"

NAVIGATION_TIMEOUT_MS = 60_000


class PlaywrightElement:
    """ElementHandle over a Playwright element handle."""

    def __init__(self, handle: PwElementHandle):
        self._handle = handle

    async def is_visible(self) -> bool:
        return await self._handle.is_visible()

    async def is_enabled(self) -> bool:
        return await self._handle.is_enabled()

    async def is_disabled(self) -> bool:
        return await self._handle.is_disabled()

    async def bounding_box(self) -> BoundingBox | None:
        box = await self._handle.bounding_box()
        if box is None:
            return None
        return BoundingBox(box["x"], box["y"], box["width"], box["height"])

    async def scroll_into_view(self) -> None:
        await self._handle.scroll_into_view_if_needed()

    async def click(self) -> None:
        await self._handle.click()

    async def focus(self) -> None:
        await self._handle.focus()

    async def inner_text(self) -> str:
        return await self._handle.inner_text()

    async def inner_html(self) -> str:
        return await self._handle.inner_html()

    async def query(self, selector: str) -> "PlaywrightElement | None":
        handle = await self._handle.query_selector(selector)
        return PlaywrightElement(handle) if handle is not None else None

    async def read_value(self) -> str:
        return await self._handle.evaluate(_READ_VALUE_SCRIPT)

    async def set_value(self, text: str) -> None:
        await self._handle.evaluate(_SET_VALUE_SCRIPT, text)


class PlaywrightFrame:
    """FrameHandle over a Playwright frame."""

    def __init__(self, frame: PwFrame):
        self._frame = frame

    @property
    def url(self) -> str:
        return self._frame.url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._frame.evaluate(script, arg)


class PlaywrightPage:
    """
    PageHandle over a Playwright page.

    Attributes:
        page: The wrapped playwright.async_api.Page
    """

    def __init__(self, page: PwPage):
        self.page = page

    async def goto(self, url: str) -> None:
        await self.page.goto(url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)

    async def title(self) -> str:
        return await self.page.title()

    async def query(self, selector: str) -> PlaywrightElement | None:
        handle = await self.page.query_selector(selector)
        return PlaywrightElement(handle) if handle is not None else None

    async def query_all(self, selector: str) -> list[PlaywrightElement]:
        return [PlaywrightElement(h) for h in await self.page.query_selector_all(selector)]

    async def frames(self) -> list[PlaywrightFrame]:
        return [PlaywrightFrame(f) for f in self.page.frames]

    async def mouse_move(self, x: float, y: float, steps: int = 1) -> None:
        await self.page.mouse.move(x, y, steps=steps)

    async def mouse_click(self, x: float, y: float, delay_ms: int = 0) -> None:
        await self.page.mouse.click(x, y, delay=delay_ms)

    async def press(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def type_text(self, text: str, delay_ms: int = 0) -> None:
        await self.page.keyboard.type(text, delay=delay_ms)

    async def write_clipboard(self, text: str) -> None:
        try:
            await self.page.context.grant_permissions(["clipboard-read", "clipboard-write"])
        except Exception as e:
            # Attached browsers may refuse permission changes; writeText can still work
            logger.debug(f"Could not grant clipboard permissions: {e}")
        await self.page.evaluate(_WRITE_CLIPBOARD_SCRIPT, text)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.page.evaluate(script, arg)

    async def pause(self, ms: float) -> None:
        await self.page.wait_for_timeout(ms)
