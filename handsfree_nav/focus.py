"""
Focus index: the ordered list of focusable targets on the page and the
cursor pointing into it.
"""
import logging
from typing import List, Optional, Tuple

from .types import ElementInfo, ElementRef, FocusTarget, PageProto, TargetKind

logger = logging.getLogger(__name__)

FORM_TAGS = ("button", "input", "textarea", "select")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Attribute changes outside this set do not trigger a re-scan
OBSERVED_ATTRIBUTES = ("style", "class", "hidden", "aria-hidden")


def _tab_index(info: ElementInfo) -> Optional[int]:
    value = info.attributes.get("tabindex")
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def is_focus_candidate(info: ElementInfo, include_headings: bool = True) -> bool:
    """Whether an element matches the focusable selectors."""
    tag = info.tag.lower()
    attrs = info.attributes

    if tag == "a" and "href" in attrs:
        return True
    if tag in FORM_TAGS and "disabled" not in attrs:
        return True
    tab_index = _tab_index(info)
    if tab_index is not None and tab_index >= 0:
        return True
    if attrs.get("contenteditable", "").lower() == "true":
        return True
    return include_headings and tag in HEADING_TAGS


def is_visible(info: ElementInfo) -> bool:
    """Rendered with a layout box and not hidden by computed style."""
    if not info.rendered:
        return False
    return info.display != "none" and info.visibility != "hidden"


def target_kind(tag: str) -> TargetKind:
    tag = tag.lower()
    if tag == "button":
        return "button"
    if tag in ("input", "textarea"):
        return "input"
    if tag in HEADING_TAGS:
        return "heading"
    return "link"


def build_targets(elements: List[ElementInfo], include_headings: bool = True) -> List[FocusTarget]:
    """
    Turn an element snapshot into the ordered target list.

    Args:
        elements: Candidate elements in document order
        include_headings: Page-wide variant also indexes h1-h6

    Returns:
        Targets numbered by their position in the result
    """
    targets: List[FocusTarget] = []
    seen = set()
    for info in elements:
        if info.ref in seen:
            continue
        if not is_focus_candidate(info, include_headings) or not is_visible(info):
            continue
        seen.add(info.ref)

        label = info.text.strip() or info.attributes.get("aria-label", "").strip()
        href = info.attributes.get("href") if info.tag.lower() == "a" else None
        targets.append(FocusTarget(
            ref=info.ref,
            order=len(targets),
            kind=target_kind(info.tag),
            label=label,
            href=href or None
        ))
    return targets


class FocusIndex:
    """
    Ordered, page-synchronized model of focus targets.

    Features:
    - Full re-scan on structure change and resize, never a diff
    - Wrap-around next/previous navigation
    - Cursor follows focus changes made outside the engine (tabbing)
    """

    def __init__(self, page: PageProto, include_headings: bool = True):
        """Initialize the index for a page. Call attach() to start observing."""
        self.page = page
        self.include_headings = include_headings
        self._targets: List[FocusTarget] = []
        self._cursor: Optional[int] = None
        self._focused_ref: Optional[ElementRef] = None
        self._attached = False

    @property
    def targets(self) -> List[FocusTarget]:
        return list(self._targets)

    @property
    def cursor(self) -> Optional[int]:
        """Index of the focused target, or None."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._targets)

    def current_target(self) -> Optional[FocusTarget]:
        if self._cursor is None:
            return None
        return self._targets[self._cursor]

    def index_of(self, ref: Optional[ElementRef]) -> Optional[int]:
        if ref is None:
            return None
        for target in self._targets:
            if target.ref == ref:
                return target.order
        return None

    async def attach(self) -> None:
        """Scan once and subscribe to page notifications."""
        await self.refresh()
        if not self._attached:
            self.page.subscribe(self)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self.page.unsubscribe(self)
            self._attached = False

    async def scan(self) -> List[FocusTarget]:
        """Query the page and build a fresh target list without storing it."""
        elements = await self.page.candidate_elements()
        return build_targets(elements, self.include_headings)

    async def refresh(self) -> List[FocusTarget]:
        """Replace the target list with a fresh scan and re-locate the cursor."""
        targets = await self.scan()
        self._targets = targets
        self._cursor = self.index_of(self._focused_ref)
        logger.debug(f"🔎 Focus index refreshed: {len(targets)} targets, cursor={self._cursor}")
        return self.targets

    async def focus_by_index(self, index: int) -> bool:
        """
        Move focus to the target at index and scroll it to the viewport center.

        Returns:
            False without touching the page if index is out of bounds
        """
        if index < 0 or index >= len(self._targets):
            logger.info(f"⚠️ Focus index {index} out of range (0..{len(self._targets) - 1})")
            return False

        target = self._targets[index]
        try:
            await self.page.focus(target.ref)
        except Exception as e:
            # Stale ref: the element left the page before the next re-scan
            logger.error(f"❌ Failed to focus {target.kind} {target.label!r}: {e}")
            return False
        self._focused_ref = target.ref
        self._cursor = index
        try:
            await self.page.scroll_into_view(target.ref, behavior="smooth", block="center", inline="nearest")
        except Exception as e:
            logger.error(f"❌ Failed to scroll {target.label!r} into view: {e}")
        return True

    async def focus_next(self) -> bool:
        if not self._targets:
            return False
        if self._cursor is not None and self._cursor < len(self._targets) - 1:
            next_index = self._cursor + 1
        else:
            next_index = 0
        return await self.focus_by_index(next_index)

    async def focus_previous(self) -> bool:
        if not self._targets:
            return False
        if self._cursor is not None and self._cursor > 0:
            prev_index = self._cursor - 1
        else:
            prev_index = len(self._targets) - 1
        return await self.focus_by_index(prev_index)

    def badges(self) -> List[Tuple[int, FocusTarget, bool]]:
        """Numbers shown by the link overlay: (1-based number, target, is_focused)."""
        return [(t.order + 1, t, t.order == self._cursor) for t in self._targets]

    # ===== PAGE LISTENER =====

    async def structure_changed(self) -> None:
        await self.refresh()

    async def resized(self) -> None:
        await self.refresh()

    async def focus_in(self, ref: Optional[ElementRef]) -> None:
        """Reflect a focus change observed on the page into the cursor."""
        self._focused_ref = ref
        self._cursor = self.index_of(ref)
