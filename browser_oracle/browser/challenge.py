"""
Anti-bot challenge detection and resolution.

Some chat UIs sit behind a "Just a moment..." interstitial that hosts a
verification checkbox in a cross-origin frame. This module detects the
interstitial, clicks the checkbox with a human-like pointer path when it can
be located, and waits until the page has looked clean for several consecutive
readings (challenge pages flicker while they load).

Resolution is best-effort: a challenge that needs a human simply times out
with a warning, and the later phases fail with their own, more specific
errors if the page never becomes usable.

States:
    UNKNOWN -> CLEAN | CHALLENGE_PRESENT -> RESOLVING -> CLEAN | TIMED_OUT
"""

import logging
from dataclasses import dataclass
from enum import Enum

from browser_oracle.config.schema import HeuristicThresholds, SelectorConfig
from browser_oracle.exceptions import PollTimeoutError

from .page import PageHandle
from .polling import await_condition

logger = logging.getLogger(__name__)

# Centre of the first verification element inside the challenge frame
_LOCATE_ELEMENT_SCRIPT = """
(selector) => {
  const el = document.querySelector(selector);
  if (!el) return null;
  const r = el.getBoundingClientRect();
  return { x: r.x + r.width / 2, y: r.y + r.height / 2 };
}
"""

POINTER_STEPS = 10
CLICK_DELAY_MS = 100


class ChallengeStatus(Enum):
    """Resolver state."""

    UNKNOWN = "unknown"
    CLEAN = "clean"
    CHALLENGE_PRESENT = "challenge_present"
    RESOLVING = "resolving"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ChallengeState:
    """
    One challenge reading, recomputed on every tick.

    Attributes:
        present: A challenge is showing (by title or by located element)
        interaction_point: On-page centre of the verification element, if found
        title_match: The page title carries the interstitial marker
    """

    present: bool
    interaction_point: tuple[float, float] | None = None
    title_match: bool = False


async def detect_challenge(page: PageHandle, selectors: SelectorConfig) -> ChallengeState:
    """
    Take one challenge reading from the page.

    Reads the title and scans every frame for the challenge host. Evaluation
    errors inside the frame (it may detach mid-read) are treated as "element
    not found".

    Args:
        page: Page to inspect
        selectors: Challenge frame pattern, element selector and title marker

    Returns:
        ChallengeState for this tick
    """
    title = (await page.title() or "").lower()
    title_match = selectors.challenge_title_marker.lower() in title

    point = None
    for frame in await page.frames():
        if selectors.challenge_frame_pattern not in (frame.url or ""):
            continue
        try:
            box = await frame.evaluate(_LOCATE_ELEMENT_SCRIPT, selectors.challenge_element)
        except Exception as e:
            logger.debug(f"Challenge frame evaluation failed: {e}")
            continue
        if box:
            point = (float(box["x"]), float(box["y"]))
            break

    return ChallengeState(
        present=title_match or point is not None,
        interaction_point=point,
        title_match=title_match,
    )


class ChallengeResolver:
    """
    Debounced challenge resolver.

    Attributes:
        page: Page under control
        selectors: Challenge selectors
        thresholds: Debounce count, poll interval and pauses
        status: Current resolver state
        clean_ticks: Consecutive clean readings so far

    Example:
        >>> resolver = ChallengeResolver(page, config.selectors, config.thresholds)
        >>> status = await resolver.resolve(timeout_ms=90_000)
        >>> status
        <ChallengeStatus.CLEAN: 'clean'>
    """

    def __init__(
        self,
        page: PageHandle,
        selectors: SelectorConfig,
        thresholds: HeuristicThresholds,
    ):
        self.page = page
        self.selectors = selectors
        self.thresholds = thresholds
        self.status = ChallengeStatus.UNKNOWN
        self.clean_ticks = 0

    def observe(self, state: ChallengeState) -> ChallengeStatus:
        """
        Apply one reading to the debounce state machine.

        A clean reading only counts toward CLEAN; the status flips to CLEAN on
        the clean_ticks_required-th consecutive clean reading. Any challenge
        reading resets the count.

        Args:
            state: Reading for this tick

        Returns:
            The new status
        """
        if state.present:
            self.clean_ticks = 0
            self.status = ChallengeStatus.CHALLENGE_PRESENT
            return self.status

        self.clean_ticks += 1
        if self.clean_ticks >= self.thresholds.clean_ticks_required:
            self.status = ChallengeStatus.CLEAN
        return self.status

    async def resolve(self, timeout_ms: float) -> ChallengeStatus:
        """
        Poll until the page is confirmed clean or the deadline passes.

        Never raises on timeout: it logs a warning and returns TIMED_OUT so
        the caller can carry on.

        Args:
            timeout_ms: Deadline in milliseconds

        Returns:
            ChallengeStatus.CLEAN or ChallengeStatus.TIMED_OUT
        """
        self.clean_ticks = 0
        self.status = ChallengeStatus.UNKNOWN

        try:
            await await_condition(
                self._tick,
                timeout_ms,
                self.thresholds.challenge_poll_interval_ms,
                pause=self.page.pause,
                description="challenge to clear",
            )
        except PollTimeoutError:
            self.status = ChallengeStatus.TIMED_OUT
            logger.warning("Challenge wait timed out (or the challenge persisted)")

        return self.status

    async def _tick(self) -> bool:
        try:
            state = await detect_challenge(self.page, self.selectors)
        except Exception as e:
            # Navigation mid-read; this tick neither confirms nor resets
            logger.debug(f"Challenge reading failed: {e}")
            return False

        if self.observe(state) is ChallengeStatus.CLEAN:
            return True
        if not state.present:
            return False

        logger.info("Challenge detected")
        self.status = ChallengeStatus.RESOLVING
        if state.interaction_point is not None:
            await self._click_verification(state.interaction_point)
            await self.page.pause(self.thresholds.challenge_action_pause_ms)
        else:
            # Title-only detection: wait for the widget instead of clicking blindly
            await self.page.pause(self.thresholds.challenge_idle_pause_ms)
        return False

    async def _click_verification(self, point: tuple[float, float]) -> None:
        x, y = point
        logger.info("Clicking challenge verification element")
        try:
            await self.page.mouse_move(x, y, steps=POINTER_STEPS)
            await self.page.mouse_click(x, y, delay_ms=CLICK_DELAY_MS)
        except Exception as e:
            logger.debug(f"Challenge click failed: {e}")


async def resolve_challenge(
    page: PageHandle,
    selectors: SelectorConfig,
    thresholds: HeuristicThresholds,
    timeout_ms: float,
) -> ChallengeStatus:
    """Run a fresh ChallengeResolver against page (convenience wrapper)."""
    return await ChallengeResolver(page, selectors, thresholds).resolve(timeout_ms)
