"""
Answer completion detection.

A streamed reply gives no single reliable "done" signal, so completion is
inferred from several heuristics sampled on a fixed tick:

Phase 1 (arrival): wait until the number of reply elements exceeds the count
    taken before submission. Timing out here is fatal for the run.
Phase 2 (streaming): sample the latest reply text, the generating indicator
    (stop button) and the completion marker (copy button in the last turn).
    Growth is reported as a delta and resets both counters. A tick whose
    reading fails is skipped. The loop ends on the first of:
      MARKER         marker present, text present, not thinking
      STABLE         no generating indicator, text unchanged for more than
                     stable_ticks_threshold ticks, not thinking
      EMPTY_TIMEOUT  no text ever seen, for more than empty_ticks_threshold
                     ticks
      DEADLINE       timeout_ms elapsed
    Only MARKER and STABLE are clean exits; the other two log a warning and
    hand back whatever was captured.
Phase 3 (extraction): settle briefly, then read the final text and HTML.

The per-tick transition is the pure function advance(), so the heuristics are
testable without a page.
"""

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from browser_oracle.config.schema import BrowserConfig, HeuristicThresholds, SelectorConfig
from browser_oracle.exceptions import AnswerDidNotArriveError, PollTimeoutError
from browser_oracle.utils.time import elapsed_ms

from .page import PageHandle
from .polling import await_condition

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class CompletionExit(Enum):
    """Which condition ended the streaming phase."""

    MARKER = "marker"
    STABLE = "stable"
    EMPTY_TIMEOUT = "empty_timeout"
    DEADLINE = "deadline"

    @property
    def is_clean(self) -> bool:
        """Return True for exits that mean the model finished."""
        return self in (CompletionExit.MARKER, CompletionExit.STABLE)


@dataclass(frozen=True)
class CompletionSample:
    """
    One reading of the reply area.

    Attributes:
        text: Text of the latest non-empty reply ("" if none)
        is_generating: The stop button is showing
        has_completion_marker: The last turn carries a copy button
        is_thinking: The text is a reasoning placeholder, not the answer
    """

    text: str
    is_generating: bool = False
    has_completion_marker: bool = False
    is_thinking: bool = False

    @classmethod
    def from_readings(
        cls,
        text: str,
        is_generating: bool,
        has_completion_marker: bool,
        thinking_pattern: str,
    ) -> "CompletionSample":
        """Build a sample, deriving is_thinking from the text."""
        return cls(
            text=text,
            is_generating=is_generating,
            has_completion_marker=has_completion_marker,
            is_thinking=bool(re.search(thinking_pattern, text, re.IGNORECASE)),
        )


@dataclass(frozen=True)
class CompletionState:
    """Counters carried from one tick to the next."""

    last_text: str = ""
    stable_ticks: int = 0
    empty_ticks: int = 0


@dataclass(frozen=True)
class TickOutcome:
    """
    Result of advance().

    Attributes:
        state: State for the next tick
        exit: Exit condition met on this tick, or None to keep polling
        delta: Text appended since the previous tick ("" if none)
    """

    state: CompletionState
    exit: CompletionExit | None = None
    delta: str = ""


def advance(
    state: CompletionState,
    sample: CompletionSample,
    thresholds: HeuristicThresholds,
) -> TickOutcome:
    """
    Apply one sample to the completion state.

    Example:
        >>> t = HeuristicThresholds()
        >>> out = advance(CompletionState(), CompletionSample("He"), t)
        >>> out.delta, out.state.stable_ticks
        ('He', 0)
    """
    text = sample.text
    delta = ""

    if len(text) > len(state.last_text):
        delta = text[len(state.last_text):]
        state = CompletionState(last_text=text)
    elif text:
        state = CompletionState(state.last_text, state.stable_ticks + 1, state.empty_ticks)
    else:
        state = CompletionState(state.last_text, state.stable_ticks, state.empty_ticks + 1)

    exit_ = None
    if text and not sample.is_thinking:
        if sample.has_completion_marker:
            exit_ = CompletionExit.MARKER
        elif not sample.is_generating and state.stable_ticks > thresholds.stable_ticks_threshold:
            exit_ = CompletionExit.STABLE
    if (
        exit_ is None
        and not state.last_text
        and state.empty_ticks > thresholds.empty_ticks_threshold
    ):
        exit_ = CompletionExit.EMPTY_TIMEOUT

    return TickOutcome(state=state, exit=exit_, delta=delta)


async def count_replies(page: PageHandle, selectors: SelectorConfig) -> int:
    """Return the number of reply-bearing elements on the page."""
    try:
        return len(await page.query_all(selectors.reply_count))
    except Exception as e:
        logger.debug(f"Counting replies failed: {e}")
        return 0


async def latest_answer_text(page: PageHandle, selectors: SelectorConfig) -> str:
    """
    Return the text of the latest reply.

    For each answer selector in priority order the last match is taken; the
    first of those with non-blank text wins.
    """
    for selector in selectors.answers:
        elements = await page.query_all(selector)
        if not elements:
            continue
        text = await elements[-1].inner_text() or ""
        if text.strip():
            return text
    return ""


async def latest_answer_html(page: PageHandle, selectors: SelectorConfig) -> str | None:
    """Return the HTML of the latest reply, or None if there is none."""
    for selector in selectors.answers:
        elements = await page.query_all(selector)
        if not elements:
            continue
        html = await elements[-1].inner_html() or ""
        if html.strip():
            return html
    return None


async def _has_completion_marker(page: PageHandle, selectors: SelectorConfig) -> bool:
    turns = await page.query_all(selectors.conversation_turn)
    if not turns:
        return False
    return await turns[-1].query(selectors.copy_button) is not None


async def sample_completion(
    page: PageHandle, selectors: SelectorConfig
) -> CompletionSample | None:
    """
    Take one completion reading.

    Returns None when the page cannot be read on this tick (the reply being
    re-rendered, a detached node).
    """
    try:
        text = await latest_answer_text(page, selectors)
        is_generating = await page.query(selectors.stop_button) is not None
        has_marker = await _has_completion_marker(page, selectors)
    except Exception as e:
        logger.debug(f"Completion sample failed: {e}")
        return None

    return CompletionSample.from_readings(
        text, is_generating, has_marker, selectors.thinking_pattern
    )


async def wait_for_arrival(page: PageHandle, config: BrowserConfig, initial_count: int) -> int:
    """
    Wait until a new reply element appears.

    Args:
        page: Page under control
        config: Selectors, poll interval and arrival timeout
        initial_count: Reply count taken before submission

    Returns:
        The new reply count

    Raises:
        AnswerDidNotArriveError: If no new reply appears in time
    """

    async def arrived() -> int:
        count = await count_replies(page, config.selectors)
        return count if count > initial_count else 0

    timeout_ms = config.effective_arrival_timeout_ms
    try:
        return await await_condition(
            arrived,
            timeout_ms,
            config.thresholds.arrival_poll_interval_ms,
            pause=page.pause,
            description="assistant reply",
        )
    except PollTimeoutError as e:
        raise AnswerDidNotArriveError(
            f"Assistant response did not arrive within {timeout_ms}ms"
        ) from e


async def wait_for_completion(
    page: PageHandle,
    config: BrowserConfig,
    on_progress: ProgressCallback | None = None,
) -> CompletionExit:
    """
    Sample the streaming reply until an exit condition is met.

    Never raises on its own timeouts: EMPTY_TIMEOUT and DEADLINE are returned
    after a warning.

    Args:
        page: Page under control
        config: Selectors, thresholds and the overall timeout_ms
        on_progress: Optional callback receiving each text delta

    Returns:
        CompletionExit naming the condition that ended the loop
    """
    thresholds = config.thresholds
    state = CompletionState()

    async def tick() -> CompletionExit | None:
        nonlocal state
        sample = await sample_completion(page, config.selectors)
        if sample is None:
            return None
        outcome = advance(state, sample, thresholds)
        state = outcome.state

        if outcome.delta.strip():
            logger.debug(f"Answer delta: {outcome.delta!r}")
            if on_progress is not None:
                on_progress(outcome.delta)

        stable = state.stable_ticks
        if sample.is_thinking and stable > 0 and stable % thresholds.thinking_notice_every == 0:
            logger.info("(Model is thinking...)")

        return outcome.exit

    try:
        exit_ = await await_condition(
            tick,
            config.timeout_ms,
            thresholds.tick_interval_ms,
            pause=page.pause,
            description="answer completion",
        )
    except PollTimeoutError:
        logger.warning(
            f"Answer still streaming after {config.timeout_ms}ms; returning partial text"
        )
        return CompletionExit.DEADLINE

    if exit_ is CompletionExit.MARKER:
        logger.info("Response complete (Copy button detected on last turn).")
    elif exit_ is CompletionExit.STABLE:
        logger.info("Response complete (Stable text & no stop button).")
    else:
        logger.warning("Timed out waiting for text content to appear")
    return exit_


@dataclass(frozen=True)
class AnswerCapture:
    """Final answer read after completion."""

    text: str
    html: str | None
    exit: CompletionExit
    elapsed_ms: float


async def wait_for_answer(
    page: PageHandle,
    config: BrowserConfig,
    initial_count: int,
    on_progress: ProgressCallback | None = None,
) -> AnswerCapture:
    """
    Run arrival, streaming and extraction phases for one submitted prompt.

    Args:
        page: Page under control
        config: Browser configuration
        initial_count: Reply count taken before submission
        on_progress: Optional callback receiving each text delta

    Returns:
        AnswerCapture with the final text and HTML

    Raises:
        AnswerDidNotArriveError: If no reply appears at all
    """
    started = time.monotonic()

    logger.info("Waiting for assistant response to start...")
    await wait_for_arrival(page, config, initial_count)
    exit_ = await wait_for_completion(page, config, on_progress)

    await page.pause(config.thresholds.settle_pause_ms)
    try:
        text = await latest_answer_text(page, config.selectors)
        html = await latest_answer_html(page, config.selectors)
    except Exception as e:
        logger.warning(f"Final answer extraction failed: {e}", exc_info=True)
        text, html = "", None

    return AnswerCapture(
        text=text,
        html=html,
        exit=exit_,
        elapsed_ms=elapsed_ms(started),
    )
