"""
Interaction session runner.

Drives one prompt through the phases of a chat page:

    challenge -> overlays -> (model) -> prompt input -> delivery
        -> reply count -> send -> completion -> RunResult

Only three failures abort a run: an empty prompt, a prompt input that never
becomes usable, and a reply that never arrives. Everything else (a lingering
challenge, a failed delivery strategy, a stuck send button, a soft completion
timeout) is logged and the run carries on with what it has.

Example:
    >>> config = BrowserConfig(headless=True)
    >>> result = await run("Explain asyncio in one paragraph", config)
    >>> result.completion_exit
    <CompletionExit.MARKER: 'marker'>
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from browser_oracle.config.schema import BrowserConfig
from browser_oracle.exceptions import PromptRequiredError
from browser_oracle.utils.logging import log_with_context
from browser_oracle.utils.time import utc_timestamp

from .challenge import resolve_challenge
from .completion import CompletionExit, ProgressCallback, count_replies, wait_for_answer
from .input_delivery import deliver_prompt, locate_prompt_input
from .lifecycle import open_page
from .model_picker import needs_selection, select_model
from .overlays import dismiss_overlays
from .page import PageHandle
from .submission import SubmissionMethod, submit_prompt

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """
    Answer captured from one run.

    Attributes:
        answer_text: Final reply text ("" if none appeared before a soft exit)
        answer_html: Final reply HTML, if any
        elapsed_ms: Time from submission to final extraction
        completion_exit: Condition that ended streaming
        submission_method: Send button click or Enter keystroke
        timestamp_utc: When the answer was captured
    """

    answer_text: str
    answer_html: str | None
    elapsed_ms: float
    completion_exit: CompletionExit
    submission_method: SubmissionMethod
    timestamp_utc: str = field(default_factory=utc_timestamp)

    @property
    def answer_chars(self) -> int:
        """Return the length of the answer text."""
        return len(self.answer_text)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the result."""
        return {
            "answer_text": self.answer_text,
            "answer_html": self.answer_html,
            "answer_chars": self.answer_chars,
            "elapsed_ms": round(self.elapsed_ms),
            "completion_exit": self.completion_exit.value,
            "submission_method": self.submission_method.value,
            "timestamp_utc": self.timestamp_utc,
        }


async def run_on_page(
    page: PageHandle,
    prompt: str,
    config: BrowserConfig,
    on_progress: ProgressCallback | None = None,
) -> RunResult:
    """
    Submit prompt on an already open page and capture the answer.

    Args:
        page: Page borrowed for the duration of the run
        prompt: Prompt text (surrounding whitespace is stripped)
        config: Browser configuration
        on_progress: Optional callback receiving answer deltas while streaming

    Returns:
        RunResult with the final answer

    Raises:
        PromptRequiredError: If prompt is blank
        PromptHandleNotFoundError: If the prompt input never becomes usable
        AnswerDidNotArriveError: If no reply appears after submission
    """
    text = (prompt or "").strip()
    if not text:
        raise PromptRequiredError("Prompt text is required when using browser mode.")

    run_id = uuid.uuid4().hex[:8]
    selectors = config.selectors
    thresholds = config.thresholds
    log_with_context(
        logger,
        logging.INFO,
        "Starting browser run",
        context={"prompt_chars": len(text), "desired_model": config.desired_model},
        run_id=run_id,
    )

    await resolve_challenge(page, selectors, thresholds, config.challenge_timeout_ms)
    await dismiss_overlays(page, selectors.overlays, thresholds.overlay_passes)

    if needs_selection(config.desired_model):
        await select_model(page, config.desired_model, selectors)

    element = await locate_prompt_input(page, config)
    delivery = await deliver_prompt(page, element, text)

    initial_count = await count_replies(page, selectors)
    submission = await submit_prompt(page, element, delivery.value, selectors)

    capture = await wait_for_answer(page, config, initial_count, on_progress)

    result = RunResult(
        answer_text=capture.text,
        answer_html=capture.html,
        elapsed_ms=capture.elapsed_ms,
        completion_exit=capture.exit,
        submission_method=submission.method,
    )
    log_with_context(
        logger,
        logging.INFO,
        "Browser run finished",
        context={
            "answer_chars": result.answer_chars,
            "elapsed_ms": round(result.elapsed_ms),
            "completion_exit": result.completion_exit.value,
            "delivery": [s.value for s in delivery.strategies],
            "submission_method": result.submission_method.value,
        },
        run_id=run_id,
    )
    return result


async def run(
    prompt: str,
    config: BrowserConfig,
    on_progress: ProgressCallback | None = None,
) -> RunResult:
    """
    Open a browser page per config, run the prompt, and release the browser.

    Raises:
        PromptRequiredError: If prompt is blank (checked before launching)
        BrowserLaunchError: If no browser could be started
        PromptHandleNotFoundError: If the prompt input never becomes usable
        AnswerDidNotArriveError: If no reply appears after submission
    """
    if not (prompt or "").strip():
        raise PromptRequiredError("Prompt text is required when using browser mode.")

    async with open_page(config) as page:
        return await run_on_page(page, prompt, config, on_progress)
