"""
Prompt input location and delivery.

Getting text into a reactive composer reliably takes several attempts,
because no single method works in every UI state:

1. Paste: write the clipboard and press the platform paste shortcut. Fast for
   long prompts and closest to what a user does.
2. Type: synthesize one key event per character.
3. Direct injection: assign the value and dispatch input/change events. Last
   resort, since it skips the event sequence the host UI may rely on.

After each strategy the element's value is read back; the first strategy that
leaves non-blank text wins and the rest are skipped. A strategy that throws is
logged and counts as failed.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum

from browser_oracle.config.schema import BrowserConfig
from browser_oracle.exceptions import PollTimeoutError, PromptHandleNotFoundError

from .challenge import detect_challenge, resolve_challenge
from .overlays import dismiss_overlays
from .page import ElementHandle, PageHandle
from .polling import await_condition

logger = logging.getLogger(__name__)

FOCUS_PAUSE_MS = 300
PASTE_PAUSE_MS = 200
TYPE_DELAY_MS = 5


class DeliveryStrategy(Enum):
    """Ways of getting prompt text into the input."""

    PASTE = "paste"
    TYPE = "type"
    DIRECT_INJECT = "direct_inject"


@dataclass(frozen=True)
class SubmissionAttemptRecord:
    """Outcome of one delivery strategy."""

    strategy: DeliveryStrategy
    succeeded: bool


@dataclass
class DeliveryOutcome:
    """
    Result of deliver_prompt().

    Attributes:
        value: Text read back from the input after the last attempt
        attempts: Strategies tried, in order
    """

    value: str = ""
    attempts: list[SubmissionAttemptRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Return True if the input holds non-blank text."""
        return bool(self.value.strip())

    @property
    def strategies(self) -> list[DeliveryStrategy]:
        """Return the strategies tried, in order."""
        return [attempt.strategy for attempt in self.attempts]


def paste_shortcut(platform: str | None = None) -> str:
    """
    Return the paste key combination for the host OS.

    macOS uses the Meta (Command) modifier; everything else uses Control.

    Example:
        >>> paste_shortcut("darwin")
        'Meta+V'
        >>> paste_shortcut("linux")
        'Control+V'
    """
    platform = platform or sys.platform
    modifier = "Meta" if platform == "darwin" else "Control"
    return f"{modifier}+V"


async def _usable(element: ElementHandle | None) -> bool:
    if element is None:
        return False
    if not await element.is_visible() or not await element.is_enabled():
        return False
    box = await element.bounding_box()
    return box is not None and not box.is_empty


async def find_usable_input(page: PageHandle, config: BrowserConfig) -> ElementHandle | None:
    """
    Return the first visible, enabled, non-zero-sized input, or None.

    The specific prompt selector is tried before the generic fallbacks. An
    element that is merely present in the DOM does not qualify.
    """
    for selector in [config.selectors.prompt, *config.selectors.prompt_fallbacks]:
        element = await page.query(selector)
        if await _usable(element):
            logger.debug(f"Found prompt input using selector: {selector}")
            return element
    return None


async def locate_prompt_input(page: PageHandle, config: BrowserConfig) -> ElementHandle:
    """
    Wait for the prompt input to become usable.

    On every tick without a usable input the page is checked for a challenge
    (which gets a short resolution attempt) and otherwise swept for overlays.
    Query failures on a tick count as "not yet".

    Args:
        page: Page to search
        config: Selectors, thresholds and timeouts

    Returns:
        ElementHandle of the prompt input

    Raises:
        PromptHandleNotFoundError: If no usable input appears before
            input_timeout_ms
    """

    async def tick() -> ElementHandle | None:
        try:
            element = await find_usable_input(page, config)
            if element is not None:
                return element

            state = await detect_challenge(page, config.selectors)
            if state.present:
                logger.info("Challenge reappeared while waiting for the prompt input")
                await resolve_challenge(
                    page,
                    config.selectors,
                    config.thresholds,
                    config.challenge_recheck_timeout_ms,
                )
            else:
                await dismiss_overlays(
                    page, config.selectors.overlays, config.thresholds.overlay_passes
                )
        except Exception as e:
            logger.debug(f"Prompt lookup tick failed: {e}")
        return None

    logger.info(f"Waiting for {config.selectors.prompt}...")
    try:
        return await await_condition(
            tick,
            config.input_timeout_ms,
            config.thresholds.prompt_poll_interval_ms,
            pause=page.pause,
            description="prompt input",
        )
    except PollTimeoutError as e:
        raise PromptHandleNotFoundError(
            f"Prompt textarea did not become visible within {config.input_timeout_ms}ms"
        ) from e


async def focus_input(page: PageHandle, element: ElementHandle) -> None:
    """
    Scroll the input into view and click its visual centre.

    Falls back to a direct element click when no bounding box is available.
    """
    await element.scroll_into_view()
    box = await element.bounding_box()
    if box is not None and not box.is_empty:
        x, y = box.center
        await page.mouse_click(x, y)
    else:
        await element.click()
    await page.pause(FOCUS_PAUSE_MS)


async def read_input_value(element: ElementHandle) -> str:
    """Read the input's current text; a detached element reads as empty."""
    try:
        return await element.read_value() or ""
    except Exception as e:
        logger.debug(f"Reading prompt input failed: {e}")
        return ""


async def _paste(page: PageHandle, element: ElementHandle, text: str) -> None:
    await page.write_clipboard(text)
    await page.press(paste_shortcut())
    await page.pause(PASTE_PAUSE_MS)


async def _type(page: PageHandle, element: ElementHandle, text: str) -> None:
    await page.type_text(text, delay_ms=TYPE_DELAY_MS)


async def _inject(page: PageHandle, element: ElementHandle, text: str) -> None:
    await element.set_value(text)


_STRATEGIES = [
    (DeliveryStrategy.PASTE, _paste, "Pasting prompt..."),
    (DeliveryStrategy.TYPE, _type, "Paste failed/empty. Typing prompt..."),
    (DeliveryStrategy.DIRECT_INJECT, _inject, "Fallback: direct value injection."),
]


async def deliver_prompt(
    page: PageHandle, element: ElementHandle, text: str
) -> DeliveryOutcome:
    """
    Focus the input and deliver text with escalating strategies.

    Never raises for a failing strategy. If every strategy leaves the input
    blank the outcome's value is empty and the caller carries on with a
    degraded submission.

    Args:
        page: Page owning the input
        element: Prompt input located by locate_prompt_input()
        text: Prompt text

    Returns:
        DeliveryOutcome with the read-back value and attempts made
    """
    outcome = DeliveryOutcome()
    await focus_input(page, element)

    for strategy, action, message in _STRATEGIES:
        logger.info(message)
        try:
            await action(page, element, text)
        except Exception as e:
            logger.warning(f"{strategy.value} delivery failed: {e}")

        outcome.value = await read_input_value(element)
        outcome.attempts.append(SubmissionAttemptRecord(strategy, outcome.succeeded))
        if outcome.succeeded:
            logger.debug(f"Prompt delivered via {strategy.value}")
            return outcome

    logger.warning("Prompt input still empty after all delivery strategies")
    return outcome
