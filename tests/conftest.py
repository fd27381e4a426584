"""
Shared fixtures for browser flow tests.

Configurations here use small tick thresholds and short deadlines so the
FakePage-driven flows finish in milliseconds.
"""

import pytest

from browser_oracle.config.schema import BrowserConfig, HeuristicThresholds


@pytest.fixture(autouse=True)
def no_cdp_env(monkeypatch):
    """Keep a developer's PLAYWRIGHT_CDP_URL out of config tests."""
    monkeypatch.delenv("PLAYWRIGHT_CDP_URL", raising=False)


@pytest.fixture
def thresholds():
    """Thresholds with short tick counts and near-zero pauses."""
    return HeuristicThresholds(
        stable_ticks_threshold=3,
        empty_ticks_threshold=5,
        tick_interval_ms=1,
        challenge_poll_interval_ms=1,
        arrival_poll_interval_ms=1,
        prompt_poll_interval_ms=1,
        challenge_action_pause_ms=1,
        challenge_idle_pause_ms=1,
        settle_pause_ms=1,
        thinking_notice_every=2,
    )


@pytest.fixture
def config(thresholds):
    """BrowserConfig with short deadlines for FakePage runs."""
    return BrowserConfig(
        input_timeout_ms=200,
        timeout_ms=2_000,
        answer_arrival_timeout_ms=100,
        challenge_timeout_ms=500,
        challenge_recheck_timeout_ms=100,
        thresholds=thresholds,
    )
