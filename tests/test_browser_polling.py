"""
Tests for browser.polling module - the await_condition() primitive.

Tests cover:
- Returning the first truthy predicate value
- At-least-once evaluation with a zero timeout
- PollTimeoutError on deadline
- Predicate exceptions propagating unchanged
- Pause function and interval handling
"""

import pytest

from browser_oracle.browser.polling import await_condition
from browser_oracle.exceptions import PollTimeoutError


def counting_predicate(results):
    """Return an async predicate yielding results in order, and its call log."""
    calls = []

    async def predicate():
        calls.append(len(calls))
        return results[min(len(calls) - 1, len(results) - 1)]

    return predicate, calls


class TestAwaitConditionSuccess:
    """Test await_condition() when the condition is met."""

    @pytest.mark.asyncio
    async def test_returns_first_truthy_value(self):
        """Should return the value the predicate produced, not just True."""
        predicate, calls = counting_predicate([None, 0, "ready"])
        pauses = []

        async def pause(ms):
            pauses.append(ms)

        result = await await_condition(predicate, 1_000, 10, pause=pause)

        assert result == "ready"
        assert len(calls) == 3
        assert pauses == [10, 10]

    @pytest.mark.asyncio
    async def test_immediate_success_does_not_pause(self):
        """A condition true on the first call should not pause at all."""
        predicate, calls = counting_predicate([42])
        pauses = []

        async def pause(ms):
            pauses.append(ms)

        assert await await_condition(predicate, 1_000, pause=pause) == 42
        assert pauses == []

    @pytest.mark.asyncio
    async def test_zero_timeout_still_evaluates_once(self):
        """Predicate should be evaluated once even with a zero deadline."""
        predicate, calls = counting_predicate([True])

        assert await await_condition(predicate, 0) is True
        assert len(calls) == 1


class TestAwaitConditionTimeout:
    """Test await_condition() deadline behaviour."""

    @pytest.mark.asyncio
    async def test_zero_timeout_falsy_raises_after_one_call(self):
        """Zero timeout with a falsy result should raise after one evaluation."""
        predicate, calls = counting_predicate([False])

        with pytest.raises(PollTimeoutError):
            await await_condition(predicate, 0)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_error_carries_description(self):
        """PollTimeoutError should name the condition and the timeout."""
        predicate, _ = counting_predicate([None])

        with pytest.raises(PollTimeoutError) as exc_info:
            await await_condition(predicate, 20, 5, description="assistant reply")

        assert exc_info.value.description == "assistant reply"
        assert exc_info.value.timeout_ms == 20
        assert "assistant reply" in str(exc_info.value)
        assert "20ms" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_pauses_never_exceed_interval(self):
        """Each pause should be at most interval_ms."""
        predicate, _ = counting_predicate([None])
        pauses = []

        async def pause(ms):
            pauses.append(ms)

        with pytest.raises(PollTimeoutError):
            await await_condition(predicate, 5, 50, pause=pause)

        assert pauses
        assert all(0 < ms <= 50 for ms in pauses)


class TestAwaitConditionErrors:
    """Test predicate exception handling."""

    @pytest.mark.asyncio
    async def test_predicate_exception_propagates(self):
        """Exceptions from the predicate should not be swallowed."""

        async def predicate():
            raise RuntimeError("frame detached")

        with pytest.raises(RuntimeError, match="frame detached"):
            await await_condition(predicate, 1_000)

    @pytest.mark.asyncio
    async def test_exception_after_falsy_ticks_propagates(self):
        """An exception on a later tick should also propagate."""
        calls = []

        async def predicate():
            calls.append(1)
            if len(calls) == 3:
                raise ValueError("boom")
            return None

        with pytest.raises(ValueError, match="boom"):
            await await_condition(predicate, 1_000, 1)

        assert len(calls) == 3
