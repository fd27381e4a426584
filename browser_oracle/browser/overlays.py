"""
Overlay dismissal.

Chat UIs pop login nags, cookie banners and "what's new" dialogs over the
composer. A dismissal sweep clicks any visible one. Overlays are optional UI:
their absence is the common case and a failing selector is never an error.
"""

import logging

from .page import PageHandle

logger = logging.getLogger(__name__)

DISMISS_PAUSE_MS = 500
PASS_PAUSE_MS = 200


async def dismiss_overlays(
    page: PageHandle, selectors: list[str], passes: int = 3
) -> int:
    """
    Click every visible overlay close control, a few passes over the list.

    Multiple passes catch dialogs that only appear once another one closes.

    Args:
        page: Page to sweep
        selectors: Overlay close-control selectors, most likely first
        passes: Number of sweeps

    Returns:
        int: Number of overlays dismissed
    """
    dismissed = 0
    for _ in range(passes):
        for selector in selectors:
            try:
                element = await page.query(selector)
                if element is None or not await element.is_visible():
                    continue
                logger.info(f"Dismissing overlay: {selector}")
                await element.click()
                dismissed += 1
                await page.pause(DISMISS_PAUSE_MS)
            except Exception as e:
                logger.debug(f"Overlay selector {selector} failed: {e}")
        await page.pause(PASS_PAUSE_MS)
    return dismissed
