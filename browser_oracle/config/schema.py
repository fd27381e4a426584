"""
Configuration schema models for Browser Oracle.

This module defines Pydantic models for validating and parsing the
oracle.config.yaml file and the overrides passed on the command line.

Models:
    HeuristicThresholds: Tick counts, poll intervals and pauses used by the
        interaction flow. These are tuned against one specific chat UI, which
        is why they are configuration rather than constants.
    SelectorConfig: CSS selectors and text markers describing the target UI
    BrowserConfig: Root configuration model for one browser run
"""

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from . import constants


class HeuristicThresholds(BaseModel):
    """
    Heuristic constants for challenge debounce, completion detection and polling.

    Attributes:
        clean_ticks_required: Consecutive clean challenge readings before the
            page is declared clean
        stable_ticks_threshold: Ticks without text growth (and no stop button)
            after which the answer counts as complete
        empty_ticks_threshold: Ticks with no answer text at all before giving
            up on the reply (soft timeout)
        tick_interval_ms: Sampling interval of the completion loop
        challenge_poll_interval_ms: Interval between challenge detections
        arrival_poll_interval_ms: Interval between reply-count checks
        prompt_poll_interval_ms: Interval between input-surface lookups
        overlay_passes: Number of sweeps over the overlay selectors
        challenge_action_pause_ms: Pause after clicking a verification element
        challenge_idle_pause_ms: Pause when the challenge is only seen in the title
        settle_pause_ms: Pause before the final answer extraction
        thinking_notice_every: Stable ticks between "thinking" log notes
    """

    clean_ticks_required: int = 3
    stable_ticks_threshold: int = 20
    empty_ticks_threshold: int = 300
    tick_interval_ms: int = 200
    challenge_poll_interval_ms: int = 500
    arrival_poll_interval_ms: int = 500
    prompt_poll_interval_ms: int = 500
    overlay_passes: int = 3
    challenge_action_pause_ms: int = 3000
    challenge_idle_pause_ms: int = 1000
    settle_pause_ms: int = 500
    thinking_notice_every: int = 25

    @field_validator(
        "clean_ticks_required",
        "stable_ticks_threshold",
        "empty_ticks_threshold",
        "tick_interval_ms",
        "challenge_poll_interval_ms",
        "arrival_poll_interval_ms",
        "prompt_poll_interval_ms",
        "overlay_passes",
        "thinking_notice_every",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate counts and intervals are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator(
        "challenge_action_pause_ms", "challenge_idle_pause_ms", "settle_pause_ms"
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate pauses are not negative."""
        if v < 0:
            raise ValueError(f"Pause cannot be negative, got: {v}")
        return v


class SelectorConfig(BaseModel):
    """
    Selectors and markers describing the target chat UI.

    Defaults come from config/constants.py and target chatgpt.com.
    """

    prompt: str = constants.PROMPT_SELECTOR
    prompt_fallbacks: list[str] = Field(
        default_factory=lambda: list(constants.INPUT_SELECTORS)
    )
    send_button: str = constants.SEND_BUTTON_SELECTOR
    stop_button: str = constants.STOP_BUTTON_SELECTOR
    copy_button: str = constants.COPY_BUTTON_SELECTOR
    conversation_turn: str = constants.CONVERSATION_TURN_SELECTOR
    reply_count: str = constants.REPLY_COUNT_SELECTOR
    answers: list[str] = Field(default_factory=lambda: list(constants.ANSWER_SELECTORS))
    overlays: list[str] = Field(default_factory=lambda: list(constants.OVERLAY_SELECTORS))
    model_switcher: str = constants.MODEL_SWITCHER_SELECTOR
    model_menu_item: str = constants.MODEL_MENU_ITEM_SELECTOR
    challenge_frame_pattern: str = constants.CHALLENGE_FRAME_PATTERN
    challenge_element: str = constants.CHALLENGE_ELEMENT_SELECTOR
    challenge_title_marker: str = constants.CHALLENGE_TITLE_MARKER
    thinking_pattern: str = constants.THINKING_PATTERN

    @field_validator(
        "prompt",
        "send_button",
        "stop_button",
        "copy_button",
        "conversation_turn",
        "reply_count",
        "challenge_frame_pattern",
        "challenge_element",
    )
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        """Validate selector strings are non-empty."""
        if not v or v.isspace():
            raise ValueError("selector cannot be empty")
        return v

    @field_validator("answers")
    @classmethod
    def validate_answers(cls, v: list[str]) -> list[str]:
        """Validate at least one answer selector is configured."""
        if not v:
            raise ValueError("answers must contain at least one selector")
        return v

    @field_validator("thinking_pattern")
    @classmethod
    def validate_thinking_pattern(cls, v: str) -> str:
        """Validate thinking_pattern compiles as a regular expression."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid thinking_pattern regex: {e}") from e
        return v


class BrowserConfig(BaseModel):
    """
    Configuration for a single browser run.

    Attributes:
        url: Chat UI address to open
        headless: Launch the browser without a window
        desired_model: Model label to pick in the UI model switcher (optional)
        input_timeout_ms: Deadline for the prompt input to become usable
        timeout_ms: Deadline for the answer to finish streaming
        answer_arrival_timeout_ms: Deadline for the reply to start; falls back
            to timeout_ms when unset
        challenge_timeout_ms: Deadline for the initial challenge resolution
        challenge_recheck_timeout_ms: Deadline when a challenge reappears while
            waiting for the prompt input
        keep_browser: Leave the browser and its profile alone after the run
        chrome_path: Chromium/Chrome executable to launch instead of the
            Playwright bundled one
        chrome_profile_path: Persistent profile directory (otherwise a temp
            profile is created and removed)
        remote_cdp_url: Attach to an already running browser over CDP
        navigation_attempts: Attempts for the initial page navigation
        thresholds: Heuristic thresholds
        selectors: Target UI selectors
    """

    url: str = constants.DEFAULT_URL
    headless: bool = False
    desired_model: str | None = None
    input_timeout_ms: int = 60_000
    timeout_ms: int = 900_000
    answer_arrival_timeout_ms: int | None = None
    challenge_timeout_ms: int = 90_000
    challenge_recheck_timeout_ms: int = 10_000
    keep_browser: bool = False
    chrome_path: str | None = None
    chrome_profile_path: str | None = None
    remote_cdp_url: str | None = None
    navigation_attempts: int = 3
    thresholds: HeuristicThresholds = Field(default_factory=HeuristicThresholds)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate url is an http(s) address."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"url must start with http:// or https://, got: {v}")
        return v

    @field_validator(
        "input_timeout_ms",
        "timeout_ms",
        "challenge_timeout_ms",
        "challenge_recheck_timeout_ms",
        "navigation_attempts",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate timeouts and attempt counts are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator("answer_arrival_timeout_ms")
    @classmethod
    def validate_optional_positive(cls, v: int | None) -> int | None:
        """Validate answer_arrival_timeout_ms is positive if specified."""
        if v is not None and v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator("desired_model", "chrome_path", "chrome_profile_path", "remote_cdp_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat blank strings as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_remote_cdp_url(self) -> "BrowserConfig":
        """Validate remote_cdp_url scheme if specified."""
        if self.remote_cdp_url and not self.remote_cdp_url.startswith(
            ("http://", "https://", "ws://", "wss://")
        ):
            raise ValueError(
                f"remote_cdp_url must be an http(s) or ws(s) address, got: {self.remote_cdp_url}"
            )
        return self

    @property
    def effective_arrival_timeout_ms(self) -> int:
        """Deadline for the reply to start (falls back to timeout_ms)."""
        return self.answer_arrival_timeout_ms or self.timeout_ms
