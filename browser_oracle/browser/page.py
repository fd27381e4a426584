"""
Page capability abstraction for the interaction flow.

The interaction phases never touch Playwright directly. They talk to a
PageHandle, a narrow query/act/evaluate interface, so that each phase can be
tested against the deterministic FakePage as well as driven by the
Playwright-backed PlaywrightPage.

Key components:
- BoundingBox: On-page rectangle of an element
- ElementHandle: Protocol for a located element
- FrameHandle: Protocol for a (possibly cross-origin) frame
- PageHandle: Protocol for the page itself

Note:
    These are Protocols (PEP 544). Implementations don't inherit from them,
    they only need matching async methods.
"""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class BoundingBox:
    """
    On-page rectangle of an element, in CSS pixels.

    Attributes:
        x: Left edge
        y: Top edge
        width: Box width
        height: Box height
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        """Return the visual centre of the box."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_empty(self) -> bool:
        """Return True if the box has no area."""
        return self.width <= 0 or self.height <= 0


class ElementHandle(Protocol):
    """A located DOM element."""

    async def is_visible(self) -> bool: ...

    async def is_enabled(self) -> bool: ...

    async def is_disabled(self) -> bool: ...

    async def bounding_box(self) -> BoundingBox | None: ...

    async def scroll_into_view(self) -> None: ...

    async def click(self) -> None: ...

    async def focus(self) -> None: ...

    async def inner_text(self) -> str: ...

    async def inner_html(self) -> str: ...

    async def query(self, selector: str) -> "ElementHandle | None":
        """Return the first descendant matching selector, or None."""
        ...

    async def read_value(self) -> str:
        """Return the element's value, or its inner text for contenteditable."""
        ...

    async def set_value(self, text: str) -> None:
        """
        Assign text directly and dispatch bubbling input/change events.

        This bypasses keyboard and clipboard events entirely.
        """
        ...


class FrameHandle(Protocol):
    """A frame of the page (the main frame included)."""

    @property
    def url(self) -> str: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...


class PageHandle(Protocol):
    """
    Capability to query and drive a live page.

    Borrowed by a run for its whole duration; exactly one run uses a page at
    a time.
    """

    async def goto(self, url: str) -> None: ...

    async def title(self) -> str: ...

    async def query(self, selector: str) -> ElementHandle | None: ...

    async def query_all(self, selector: str) -> list[ElementHandle]: ...

    async def frames(self) -> list[FrameHandle]: ...

    async def mouse_move(self, x: float, y: float, steps: int = 1) -> None: ...

    async def mouse_click(self, x: float, y: float, delay_ms: int = 0) -> None: ...

    async def press(self, key: str) -> None: ...

    async def type_text(self, text: str, delay_ms: int = 0) -> None: ...

    async def write_clipboard(self, text: str) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def pause(self, ms: float) -> None:
        """Suspend the run for a fixed settle delay."""
        ...
