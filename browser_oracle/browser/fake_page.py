"""
Deterministic in-memory chat page for testing.

Provides FakePage, a PageHandle implementation that simulates the parts of a
chat UI the interaction flow touches: an anti-bot interstitial, overlays, a
prompt composer, a send button, the reply stream and the model switcher. No
browser is involved, so every phase can be tested exactly and quickly.

The reply stream is scripted as a list of FakeReplyFrame. After the prompt is
submitted, every pause() advances the stream by one frame (the last frame
repeats forever), so the completion heuristics see one frame per tick.

Example:
    >>> page = FakePage(reply_frames=[
    ...     FakeReplyFrame("H", generating=True),
    ...     FakeReplyFrame("He", generating=True),
    ...     FakeReplyFrame("Hello", marker=True),
    ... ])
    >>> result = await run_on_page(page, "Summarize this file", config)
    >>> result.answer_text
    'Hello'
    >>> page.submitted_prompts
    ['Summarize this file']
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from browser_oracle.config.schema import SelectorConfig

from .input_delivery import paste_shortcut
from .page import BoundingBox

logger = logging.getLogger(__name__)

INTERSTITIAL_TITLE = "Just a moment..."
PAGE_TITLE = "ChatGPT"
CHALLENGE_FRAME_URL = (
    "https://challenges.cloudflare.com/cdn-cgi/challenge-platform/h/b/turnstile"
)
CHECKBOX_POINT = {"x": 640.0, "y": 360.0}
PROMPT_BOX = BoundingBox(x=340.0, y=620.0, width=600.0, height=40.0)


@dataclass
class FakeReplyFrame:
    """
    State of the streamed reply for one tick.

    Attributes:
        text: Reply text shown so far
        generating: The stop button is showing
        marker: The copy button is showing on the last turn
        detached: The reply is being re-rendered; reading its text fails
    """

    text: str
    generating: bool = False
    marker: bool = False
    detached: bool = False


class FakeElement:
    """
    In-memory element.

    Attributes:
        name: Label used in FakePage.clicks
        text: Inner text
        html: Inner HTML (defaults to a paragraph wrapping text)
        value: Editable value (prompt composer only)
        visible: Visibility flag
        enabled: Enabled flag
        box: Bounding box, or None
        children: Selector -> descendant element, for query()
    """

    def __init__(
        self,
        name: str,
        text: str = "",
        html: str | None = None,
        visible: bool = True,
        enabled: bool = True,
        box: BoundingBox | None = None,
        on_click: Callable[[], None] | None = None,
        on_focus: Callable[[], None] | None = None,
        on_set_value: Callable[[str], None] | None = None,
    ):
        self.name = name
        self.text = text
        self.html = html
        self.value = ""
        self.visible = visible
        self.enabled = enabled
        self.box = box if box is not None else BoundingBox(0.0, 0.0, 80.0, 32.0)
        self.children: dict[str, FakeElement] = {}
        self._on_click = on_click
        self._on_focus = on_focus
        self._on_set_value = on_set_value
        self.clicks = 0

    async def is_visible(self) -> bool:
        return self.visible

    async def is_enabled(self) -> bool:
        return self.enabled

    async def is_disabled(self) -> bool:
        return not self.enabled

    async def bounding_box(self) -> BoundingBox | None:
        return self.box if self.visible else None

    async def scroll_into_view(self) -> None:
        return None

    async def click(self) -> None:
        self.clicks += 1
        if self._on_click is not None:
            self._on_click()

    async def focus(self) -> None:
        if self._on_focus is not None:
            self._on_focus()

    async def inner_text(self) -> str:
        return self.text

    async def inner_html(self) -> str:
        if self.html is not None:
            return self.html
        return f"<p>{self.text}</p>" if self.text else ""

    async def query(self, selector: str) -> "FakeElement | None":
        return self.children.get(selector)

    async def read_value(self) -> str:
        return self.value

    async def set_value(self, text: str) -> None:
        if self._on_set_value is not None:
            self._on_set_value(text)


@dataclass
class FakeFrame:
    """In-memory frame; evaluate() returns a fixed result."""

    url: str
    result: Any = None

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return self.result


@dataclass
class FakePage:
    """
    Scripted chat page implementing the PageHandle protocol.

    Attributes:
        reply_frames: Reply stream after submission, one frame per tick
        reply_arrives: Whether a reply element appears at all after submission
        existing_replies: Reply elements already on the page before submission
        challenge_readings: Per-title-read challenge flags, consumed in order;
            clean once exhausted
        challenge_checkbox: The challenge frame exposes a clickable checkbox
        title_failures: Title reads that raise as if the page were navigating
        prompt_hidden_reads: Prompt lookups that find nothing before the
            composer appears
        overlays: Overlay close-button selectors showing on load
        overlay_blocks_prompt: The composer stays hidden while an overlay shows
        paste_works: Paste shortcut inserts the clipboard into the composer
        typing_works: Keyboard typing reaches the composer
        inject_works: Direct value assignment sticks
        clipboard_fails: write_clipboard() raises
        send_button: "enabled", "disabled" (never wakes), "wakes" (enabled by
            the Space/Backspace nudge) or "missing"
        models: Labels listed by the model switcher (no switcher if empty)
        time_scale: Fraction of each pause actually slept (0 = yield only)
        selectors: Selectors the page answers to

    Recorded interactions:
        presses, typed, injected, clicks, mouse_moves, mouse_clicks, pauses,
        submitted_prompts, selected_model, goto_urls
    """

    reply_frames: list[FakeReplyFrame] = field(default_factory=list)
    reply_arrives: bool = True
    existing_replies: int = 0
    challenge_readings: list[bool] = field(default_factory=list)
    challenge_checkbox: bool = False
    title_failures: int = 0
    prompt_hidden_reads: int = 0
    overlays: list[str] = field(default_factory=list)
    overlay_blocks_prompt: bool = False
    paste_works: bool = True
    typing_works: bool = True
    inject_works: bool = True
    clipboard_fails: bool = False
    send_button: str = "enabled"
    models: list[str] = field(default_factory=list)
    time_scale: float = 0.0
    selectors: SelectorConfig = field(default_factory=SelectorConfig)

    def __post_init__(self):
        self.presses: list[str] = []
        self.typed: list[str] = []
        self.injected: list[str] = []
        self.clicks: list[str] = []
        self.mouse_moves: list[tuple[float, float, int]] = []
        self.mouse_clicks: list[tuple[float, float, int]] = []
        self.pauses: list[float] = []
        self.submitted_prompts: list[str] = []
        self.goto_urls: list[str] = []
        self.selected_model: str | None = None
        self.clipboard = ""

        self._challenge_active = False
        self._prompt_reads = 0
        self._focused: FakeElement | None = None
        self._streaming = False
        self._tick = 0

        self.prompt = FakeElement(
            "prompt",
            box=PROMPT_BOX,
            on_click=self._focus_prompt,
            on_focus=self._focus_prompt,
            on_set_value=self._inject,
        )
        self.send = FakeElement(
            "send",
            enabled=self.send_button == "enabled",
            on_click=self._click_send,
        )
        self._overlay_elements = {
            selector: FakeElement(f"overlay:{selector}", on_click=self._closer(selector))
            for selector in self.overlays
        }

        logger.debug(f"Initialized FakePage with {len(self.reply_frames)} reply frames")

    # Page state helpers

    def _record_click(self, name: str) -> None:
        self.clicks.append(name)

    def _focus_prompt(self) -> None:
        self._focused = self.prompt

    def _inject(self, text: str) -> None:
        self.injected.append(text)
        if self.inject_works:
            self.prompt.value = text
            self._refresh_send()

    def _closer(self, selector: str) -> Callable[[], None]:
        def close() -> None:
            self._record_click(f"overlay:{selector}")
            self._overlay_elements[selector].visible = False

        return close

    def _refresh_send(self) -> None:
        if self.send_button == "enabled":
            self.send.enabled = bool(self.prompt.value.strip())

    def _click_send(self) -> None:
        self._record_click("send")
        if self.send.enabled:
            self._submit()

    def _submit(self) -> None:
        self.submitted_prompts.append(self.prompt.value)
        self.prompt.value = ""
        self._streaming = True
        self._tick = 0

    def _overlay_showing(self) -> bool:
        return any(el.visible for el in self._overlay_elements.values())

    @property
    def current_frame(self) -> FakeReplyFrame | None:
        """Reply frame shown on this tick, or None before submission."""
        if not self._streaming or not self.reply_arrives or not self.reply_frames:
            return None
        return self.reply_frames[min(self._tick, len(self.reply_frames) - 1)]

    def _reply_turns(self) -> list[FakeElement]:
        turns = [
            FakeElement(f"turn:{i}", text=f"Earlier answer {i}")
            for i in range(self.existing_replies)
        ]
        if self._streaming and self.reply_arrives:
            frame = self.current_frame
            turn = FakeElement("turn:current", text=frame.text if frame else "")
            if frame is not None and frame.marker:
                turn.children[self.selectors.copy_button] = FakeElement("copy")
            turns.append(turn)
        return turns

    # PageHandle protocol

    async def goto(self, url: str) -> None:
        self.goto_urls.append(url)

    async def title(self) -> str:
        if self.title_failures > 0:
            self.title_failures -= 1
            raise RuntimeError(
                "Execution context was destroyed, most likely because of a navigation"
            )
        if self.challenge_readings:
            self._challenge_active = self.challenge_readings.pop(0)
        else:
            self._challenge_active = False
        return INTERSTITIAL_TITLE if self._challenge_active else PAGE_TITLE

    async def query(self, selector: str) -> FakeElement | None:
        matches = await self.query_all(selector)
        return matches[0] if matches else None

    async def query_all(self, selector: str) -> list[FakeElement]:
        s = self.selectors

        if selector == s.prompt:
            self._prompt_reads += 1
            if self._prompt_reads <= self.prompt_hidden_reads:
                return []
            if self.overlay_blocks_prompt and self._overlay_showing():
                return []
            return [self.prompt]
        if selector == s.send_button:
            return [] if self.send_button == "missing" else [self.send]
        if selector == s.stop_button:
            frame = self.current_frame
            return [FakeElement("stop")] if frame is not None and frame.generating else []
        if selector in (s.reply_count, s.conversation_turn):
            return self._reply_turns()
        if selector in s.answers:
            if selector != s.answers[0]:
                return []
            frame = self.current_frame
            if frame is not None and frame.detached:
                raise RuntimeError("Element is not attached to the DOM")
            return [
                FakeElement(turn.name, text=turn.text, html=None)
                for turn in self._reply_turns()
            ]
        if selector in self._overlay_elements:
            return [self._overlay_elements[selector]]
        if selector == s.model_switcher and self.models:
            return [FakeElement("model-switcher", on_click=self._open_model_menu)]
        if selector == s.model_menu_item and self.models:
            return [
                FakeElement(label, text=label, on_click=self._model_chooser(label))
                for label in self.models
            ]
        return []

    def _open_model_menu(self) -> None:
        self._record_click("model-switcher")

    def _model_chooser(self, label: str) -> Callable[[], None]:
        def choose() -> None:
            self._record_click(f"model:{label}")
            self.selected_model = label

        return choose

    async def frames(self) -> list[FakeFrame]:
        frames = [FakeFrame(url="https://chatgpt.com/")]
        if self._challenge_active and self.challenge_checkbox:
            frames.append(FakeFrame(url=CHALLENGE_FRAME_URL, result=dict(CHECKBOX_POINT)))
        return frames

    async def mouse_move(self, x: float, y: float, steps: int = 1) -> None:
        self.mouse_moves.append((x, y, steps))

    async def mouse_click(self, x: float, y: float, delay_ms: int = 0) -> None:
        self.mouse_clicks.append((x, y, delay_ms))
        box = PROMPT_BOX
        if box.x <= x <= box.x + box.width and box.y <= y <= box.y + box.height:
            self._focus_prompt()

    async def press(self, key: str) -> None:
        self.presses.append(key)
        if self._focused is not self.prompt:
            return

        if key == paste_shortcut():
            if self.paste_works:
                self.prompt.value += self.clipboard
                self._refresh_send()
        elif key == "Space":
            self.prompt.value += " "
        elif key == "Backspace":
            self.prompt.value = self.prompt.value[:-1]
            if self.send_button == "wakes":
                self.send.enabled = True
        elif key == "Enter":
            self._submit()

    async def type_text(self, text: str, delay_ms: int = 0) -> None:
        self.typed.append(text)
        if self.typing_works and self._focused is self.prompt:
            self.prompt.value += text
            self._refresh_send()

    async def write_clipboard(self, text: str) -> None:
        if self.clipboard_fails:
            raise RuntimeError("Clipboard access denied")
        self.clipboard = text

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return None

    async def pause(self, ms: float) -> None:
        self.pauses.append(ms)
        if self._streaming:
            self._tick += 1
        await asyncio.sleep(ms * self.time_scale / 1000.0)
