"""
Send action trigger.

The send button of a reactive composer sometimes stays disabled after
synthetic input because the framework never saw a "real" edit. The trigger
clicks the button when it can, nudges the composer with a harmless key pair
when the button lags behind, and presses Enter in the input as the final
fallback.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from browser_oracle.config.schema import SelectorConfig

from .page import ElementHandle, PageHandle

logger = logging.getLogger(__name__)

WAKE_KEY_PAUSE_MS = 100
WAKE_SETTLE_PAUSE_MS = 500
ACTIVATE_KEY = "Enter"


class SubmissionMethod(Enum):
    """How the prompt was sent."""

    SEND_BUTTON = "send_button"
    ENTER_KEY = "enter_key"


@dataclass(frozen=True)
class SubmissionOutcome:
    """
    Result of submit_prompt().

    Attributes:
        method: Send button click or Enter keystroke
        woke_send_button: The wake sequence ran before deciding
    """

    method: SubmissionMethod
    woke_send_button: bool = False


async def _wake_send_button(
    page: PageHandle, element: ElementHandle, send_button: ElementHandle
) -> bool:
    """Nudge the composer's change detection; return True if still disabled."""
    logger.info("Send button is disabled despite text presence. Triggering input events...")
    try:
        await element.focus()
        await page.press("Space")
        await page.pause(WAKE_KEY_PAUSE_MS)
        await page.press("Backspace")
        await page.pause(WAKE_SETTLE_PAUSE_MS)
        return await send_button.is_disabled()
    except Exception as e:
        logger.warning(f"Wake-up sequence failed: {e}")
        return True


async def submit_prompt(
    page: PageHandle,
    element: ElementHandle,
    value: str,
    selectors: SelectorConfig,
) -> SubmissionOutcome:
    """
    Fire the send action.

    Decision procedure:
    - send button present and enabled: click it
    - present but disabled while the input holds text: run the wake sequence
      once, then click if it became enabled
    - otherwise: press Enter once

    Args:
        page: Page owning the composer
        element: Prompt input
        value: Text read back from the input after delivery
        selectors: Send button selector

    Returns:
        SubmissionOutcome describing which path was taken
    """
    send_button = await page.query(selectors.send_button)
    if send_button is None:
        logger.info("Send button not found. Using Enter key...")
        await page.press(ACTIVATE_KEY)
        return SubmissionOutcome(SubmissionMethod.ENTER_KEY)

    disabled = await send_button.is_disabled()
    woke = False
    if disabled and value.strip():
        woke = True
        disabled = await _wake_send_button(page, element, send_button)

    if not disabled:
        logger.info("Clicking Send button...")
        await send_button.click()
        return SubmissionOutcome(SubmissionMethod.SEND_BUTTON, woke)

    logger.info("Send button still disabled. Falling back to Enter key...")
    await page.press(ACTIVATE_KEY)
    return SubmissionOutcome(SubmissionMethod.ENTER_KEY, woke)
