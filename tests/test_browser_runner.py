"""
Tests for browser.runner module.

Tests cover:
- Full interaction flow against FakePage
- Transient page-read failures during the challenge check
- Prompt validation before any page interaction
- Reply-count baseline with earlier answers on the page
- Soft exits returning an empty answer
- Optional model selection
- run() opening and releasing the page
- RunResult serialization
"""

from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

from browser_oracle.browser.completion import CompletionExit
from browser_oracle.browser.fake_page import FakePage, FakeReplyFrame
from browser_oracle.browser.runner import RunResult, run, run_on_page
from browser_oracle.browser.submission import SubmissionMethod
from browser_oracle.exceptions import AnswerDidNotArriveError, PromptRequiredError

STREAMED = [
    FakeReplyFrame("H", generating=True),
    FakeReplyFrame("He", generating=True),
    FakeReplyFrame("Hello", marker=True),
]


class TestRunOnPage:
    """Test suite for run_on_page()."""

    @pytest.mark.asyncio
    async def test_streamed_answer(self, config):
        """A streamed reply should be returned in full with its HTML."""
        page = FakePage(prompt_hidden_reads=1, reply_frames=STREAMED)
        chunks = []

        result = await run_on_page(page, "Summarize this file", config, on_progress=chunks.append)

        assert result.answer_text == "Hello"
        assert result.answer_html == "<p>Hello</p>"
        assert result.completion_exit is CompletionExit.MARKER
        assert result.submission_method is SubmissionMethod.SEND_BUTTON
        assert page.submitted_prompts == ["Summarize this file"]
        assert chunks == ["H", "e", "llo"]
        assert result.elapsed_ms > 0

    @pytest.mark.asyncio
    async def test_immediate_marker(self, config):
        """A reply that arrives complete should finish on the first sample."""
        page = FakePage(reply_frames=[FakeReplyFrame("42", marker=True)])

        result = await run_on_page(page, "What is 6 x 7?", config)

        assert result.answer_text == "42"
        assert result.completion_exit is CompletionExit.MARKER

    @pytest.mark.asyncio
    async def test_prompt_is_stripped(self, config):
        """Surrounding whitespace should not be delivered."""
        page = FakePage(reply_frames=[FakeReplyFrame("ok", marker=True)])

        await run_on_page(page, "  \n Summarize this file \n", config)

        assert page.submitted_prompts == ["Summarize this file"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    async def test_blank_prompt_raises_before_touching_page(self, config, prompt):
        """A blank prompt should fail without any page interaction."""
        page = FakePage()

        with pytest.raises(PromptRequiredError, match="Prompt text is required"):
            await run_on_page(page, prompt, config)

        assert page.pauses == []
        assert page.presses == []
        assert page.clicks == []

    @pytest.mark.asyncio
    async def test_earlier_replies_are_not_the_answer(self, config):
        """Replies already on the page should not satisfy the arrival wait."""
        page = FakePage(existing_replies=2, reply_frames=[FakeReplyFrame("Fresh", marker=True)])

        result = await run_on_page(page, "Another question", config)

        assert result.answer_text == "Fresh"

    @pytest.mark.asyncio
    async def test_no_reply_raises(self, config):
        page = FakePage(reply_arrives=False)

        with pytest.raises(AnswerDidNotArriveError):
            await run_on_page(page, "Hello?", config)

    @pytest.mark.asyncio
    async def test_empty_reply_returns_empty_answer(self, config):
        """A reply that never fills should return "" rather than raise."""
        page = FakePage(reply_frames=[FakeReplyFrame("")])

        result = await run_on_page(page, "Hello?", config)

        assert result.answer_text == ""
        assert result.answer_html is None
        assert result.completion_exit is CompletionExit.EMPTY_TIMEOUT

    @pytest.mark.asyncio
    async def test_challenge_then_answer(self, config):
        """A challenge on load should be clicked through before the prompt."""
        page = FakePage(
            challenge_readings=[True, True],
            challenge_checkbox=True,
            reply_frames=[FakeReplyFrame("Done", marker=True)],
        )

        result = await run_on_page(page, "Hello?", config)

        assert result.answer_text == "Done"
        assert page.mouse_clicks[0][:2] == (640.0, 360.0)

    @pytest.mark.asyncio
    async def test_navigation_during_challenge_check(self, config):
        """A page navigating under the first title read should still be answered."""
        page = FakePage(title_failures=1, reply_frames=[FakeReplyFrame("Done", marker=True)])

        result = await run_on_page(page, "Hello?", config)

        assert result.answer_text == "Done"
        assert page.title_failures == 0

    @pytest.mark.asyncio
    async def test_overlay_dismissed_before_prompt(self, config):
        close = config.selectors.overlays[0]
        page = FakePage(
            overlays=[close],
            overlay_blocks_prompt=True,
            reply_frames=[FakeReplyFrame("Done", marker=True)],
        )

        result = await run_on_page(page, "Hello?", config)

        assert result.answer_text == "Done"
        assert page.clicks[0] == f"overlay:{close}"

    @pytest.mark.asyncio
    async def test_enter_fallback_when_button_missing(self, config):
        page = FakePage(send_button="missing", reply_frames=[FakeReplyFrame("Done", marker=True)])

        result = await run_on_page(page, "Hello?", config)

        assert result.submission_method is SubmissionMethod.ENTER_KEY
        assert page.submitted_prompts == ["Hello?"]

    @pytest.mark.asyncio
    async def test_selects_desired_model(self, config):
        """A non-default desired model should be picked from the switcher."""
        page = FakePage(
            models=["GPT-4o", "GPT-5 Thinking"],
            reply_frames=[FakeReplyFrame("Done", marker=True)],
        )
        config = config.model_copy(update={"desired_model": "gpt-5 thinking"})

        await run_on_page(page, "Hello?", config)

        assert page.selected_model == "GPT-5 Thinking"
        assert page.clicks[:2] == ["model-switcher", "model:GPT-5 Thinking"]

    @pytest.mark.asyncio
    async def test_default_model_is_not_selected(self, config):
        page = FakePage(
            models=["ChatGPT 5", "GPT-4o"],
            reply_frames=[FakeReplyFrame("Done", marker=True)],
        )
        config = config.model_copy(update={"desired_model": "ChatGPT 5"})

        await run_on_page(page, "Hello?", config)

        assert page.selected_model is None
        assert "model-switcher" not in page.clicks


class TestRun:
    """Test suite for run()."""

    @pytest.mark.asyncio
    async def test_runs_on_opened_page(self, config):
        """run() should borrow a page from open_page() for the whole run."""
        page = FakePage(reply_frames=[FakeReplyFrame("Done", marker=True)])
        opened = []

        @asynccontextmanager
        async def fake_open_page(cfg):
            opened.append(cfg)
            yield page

        with patch("browser_oracle.browser.runner.open_page", fake_open_page):
            result = await run("Hello?", config)

        assert result.answer_text == "Done"
        assert opened == [config]

    @pytest.mark.asyncio
    async def test_blank_prompt_never_opens_browser(self, config):
        with patch("browser_oracle.browser.runner.open_page") as mock_open:
            with pytest.raises(PromptRequiredError):
                await run("  ", config)

        mock_open.assert_not_called()


class TestRunResult:
    """Test suite for RunResult."""

    def test_to_dict(self):
        result = RunResult(
            answer_text="Hello",
            answer_html="<p>Hello</p>",
            elapsed_ms=1234.6,
            completion_exit=CompletionExit.STABLE,
            submission_method=SubmissionMethod.ENTER_KEY,
            timestamp_utc="2026-10-18T12:00:00Z",
        )

        assert result.to_dict() == {
            "answer_text": "Hello",
            "answer_html": "<p>Hello</p>",
            "answer_chars": 5,
            "elapsed_ms": 1235,
            "completion_exit": "stable",
            "submission_method": "enter_key",
            "timestamp_utc": "2026-10-18T12:00:00Z",
        }
