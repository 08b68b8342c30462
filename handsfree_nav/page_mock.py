"""
In-memory page implementation for testing and running without a browser.
"""
import logging
from typing import List, Optional, Tuple

from .focus import OBSERVED_ATTRIBUTES
from .types import ElementInfo, ElementRef, PageListener

logger = logging.getLogger(__name__)


class MockPage:
    """
    Page double that records actions instead of driving a browser.

    Elements are kept in document order. Structural edits, resizes and
    focus changes notify subscribed listeners like a live page would.
    """

    def __init__(self, elements: Optional[List[ElementInfo]] = None):
        """Initialize the mock page with an optional element list."""
        self.elements: List[ElementInfo] = list(elements or [])
        self.listeners: List[PageListener] = []
        self.focused: Optional[ElementRef] = None
        self.scroll_y = 0
        self.zoom = 1.0
        self.scroll_count = 0
        self.clicks: List[ElementRef] = []
        self.scrolled_into_view: List[Tuple[ElementRef, str, str, str]] = []

    # ===== PageProto =====

    async def candidate_elements(self) -> List[ElementInfo]:
        return list(self.elements)

    async def focus(self, ref: ElementRef) -> None:
        self.focused = ref
        logger.debug(f"[MockPage] Focus: {ref}")
        for listener in list(self.listeners):
            await listener.focus_in(ref)

    async def click(self, ref: ElementRef) -> None:
        self.clicks.append(ref)
        logger.info(f"[MockPage] Click: {ref} (call #{len(self.clicks)})")

    async def scroll_into_view(self, ref: ElementRef, behavior: str = "smooth",
                               block: str = "center", inline: str = "nearest") -> None:
        self.scrolled_into_view.append((ref, behavior, block, inline))

    async def scroll_by(self, dx: int, dy: int) -> None:
        self.scroll_count += 1
        self.scroll_y = max(0, self.scroll_y + dy)
        logger.info(f"[MockPage] Scroll: dy={dy} (call #{self.scroll_count})")

    async def apply_zoom(self, scale: float) -> None:
        self.zoom = scale
        logger.info(f"[MockPage] Zoom: scale({scale:.2f})")

    async def active_element(self) -> Optional[ElementRef]:
        return self.focused

    def subscribe(self, listener: PageListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener: PageListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    # ===== Page edits =====

    def find(self, ref: ElementRef) -> Optional[ElementInfo]:
        for info in self.elements:
            if info.ref == ref:
                return info
        return None

    async def add_element(self, info: ElementInfo, position: Optional[int] = None) -> None:
        if position is None:
            self.elements.append(info)
        else:
            self.elements.insert(position, info)
        await self._structure_changed()

    async def remove_element(self, ref: ElementRef) -> None:
        self.elements = [info for info in self.elements if info.ref != ref]
        if self.focused == ref:
            self.focused = None
        await self._structure_changed()

    async def set_attribute(self, ref: ElementRef, name: str, value: Optional[str]) -> None:
        """Set (or remove, with None) an attribute; only observed names notify."""
        info = self.find(ref)
        if info is None:
            return
        if value is None:
            info.attributes.pop(name, None)
        else:
            info.attributes[name] = value
        if name in OBSERVED_ATTRIBUTES:
            await self._structure_changed()

    async def resize(self) -> None:
        for listener in list(self.listeners):
            await listener.resized()

    async def user_focus(self, ref: Optional[ElementRef]) -> None:
        """Simulate the user moving focus (e.g. with Tab)."""
        self.focused = ref
        for listener in list(self.listeners):
            await listener.focus_in(ref)

    async def _structure_changed(self) -> None:
        for listener in list(self.listeners):
            await listener.structure_changed()

    def reset_counters(self) -> None:
        """Reset action counters for testing."""
        self.scroll_count = 0
        self.clicks = []
        self.scrolled_into_view = []


def sample_elements() -> List[ElementInfo]:
    """A small demo page: a heading, five links and a button."""
    elements: List[ElementInfo] = [ElementInfo(ref="h1-title", tag="h1", text="Gesture & Voice-Controlled Navigation")]
    for i in range(1, 6):
        elements.append(ElementInfo(
            ref=f"link-{i}",
            tag="a",
            attributes={"href": f"#section-{i}"},
            text=f"Section {i}"
        ))
    elements.append(ElementInfo(ref="button-upload", tag="button", attributes={"aria-label": "Upload PDF"}))
    return elements
