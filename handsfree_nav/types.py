"""
Type definitions for the hands-free navigation engine.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Literal, Optional, Protocol, Union, runtime_checkable

import numpy as np


ScrollDirection = Literal["up", "down"]
ZoomDirection = Literal["in", "out"]
TargetKind = Literal["link", "button", "input", "heading"]

# Opaque handle to a live element, supplied by the page implementation
ElementRef = Hashable


class GestureLabel(str, Enum):
    """Gesture vocabulary shared by the classifier and the action mapping."""
    SWIPE_UP = "swipe_up"
    SWIPE_DOWN = "swipe_down"
    SWIPE_LEFT = "swipe_left"
    SWIPE_RIGHT = "swipe_right"
    PINCH = "pinch"
    THUMBS_UP = "thumbs_up"
    POINT = "point"
    FIST = "fist"
    OPEN_PALM = "open_palm"


@dataclass(frozen=True)
class GestureSample:
    """A classified frame."""
    label: GestureLabel
    confidence: float
    timestamp: float  # monotonic seconds


# ===== NAVIGATION INTENTS =====

@dataclass(frozen=True)
class ScrollIntent:
    """Scroll the page one step up or down."""
    direction: ScrollDirection
    text: str = ""


@dataclass(frozen=True)
class ZoomIntent:
    """Scale the page in or out."""
    direction: ZoomDirection
    text: str = ""


@dataclass(frozen=True)
class OpenLinkIntent:
    """Focus the target carrying the spoken (1-based) number."""
    index: int
    text: str = ""


@dataclass(frozen=True)
class ToggleLinksIntent:
    """Show or hide the link number overlay."""
    text: str = ""


@dataclass(frozen=True)
class ActivateIntent:
    """Click the focused target."""
    text: str = ""


@dataclass(frozen=True)
class LoadDocumentIntent:
    """Open a document in the viewer."""
    source: str
    text: str = ""


@dataclass(frozen=True)
class CloseDocumentIntent:
    text: str = ""


@dataclass(frozen=True)
class NextPageIntent:
    text: str = ""


@dataclass(frozen=True)
class PrevPageIntent:
    text: str = ""


@dataclass(frozen=True)
class GoToPageIntent:
    page: int
    text: str = ""


NavigationIntent = Union[
    ScrollIntent,
    ZoomIntent,
    OpenLinkIntent,
    ToggleLinksIntent,
    ActivateIntent,
    LoadDocumentIntent,
    CloseDocumentIntent,
    NextPageIntent,
    PrevPageIntent,
    GoToPageIntent,
]


# ===== PAGE MODEL =====

@dataclass
class ElementInfo:
    """Snapshot of one candidate element as reported by the page."""
    ref: ElementRef
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    rendered: bool = True  # has a layout box (offsetParent is set)
    display: str = "block"
    visibility: str = "visible"


@dataclass(frozen=True)
class FocusTarget:
    """An element eligible to receive focus, at a fixed position in one scan."""
    ref: ElementRef
    order: int
    kind: TargetKind
    label: str
    href: Optional[str] = None


# ===== COLLABORATOR PROTOCOLS =====

@runtime_checkable
class PageListener(Protocol):
    """Receives page notifications that invalidate the focus index."""

    async def structure_changed(self) -> None:
        ...

    async def resized(self) -> None:
        ...

    async def focus_in(self, ref: Optional[ElementRef]) -> None:
        ...


@runtime_checkable
class PageProto(Protocol):
    """Abstract protocol for the page the engine reads from and writes to."""

    async def candidate_elements(self) -> List[ElementInfo]:
        """Return candidate elements in document order."""
        ...

    async def focus(self, ref: ElementRef) -> None:
        ...

    async def click(self, ref: ElementRef) -> None:
        ...

    async def scroll_into_view(self, ref: ElementRef, behavior: str = "smooth",
                               block: str = "center", inline: str = "nearest") -> None:
        ...

    async def scroll_by(self, dx: int, dy: int) -> None:
        ...

    async def apply_zoom(self, scale: float) -> None:
        """Apply a CSS transform scale to the document body."""
        ...

    async def active_element(self) -> Optional[ElementRef]:
        ...

    def subscribe(self, listener: PageListener) -> None:
        ...

    def unsubscribe(self, listener: PageListener) -> None:
        ...


@runtime_checkable
class ViewerProto(Protocol):
    """Paging capability of a loaded document."""
    page_count: int
    current_page: int

    def next_page(self) -> None:
        ...

    def prev_page(self) -> None:
        ...

    def go_to_page(self, page: int) -> None:
        ...


@runtime_checkable
class DocumentHostProto(Protocol):
    """Opens and closes documents, handing back a viewer for the open one."""

    def open(self, source: str) -> ViewerProto:
        ...

    def add_upload(self, filename: str, data: bytes, content_type: Optional[str] = ...) -> str:
        ...

    def discard_upload(self, source: str) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class TranscriptSourceProto(Protocol):
    """Speech input collaborator."""
    transcript: str
    is_listening: bool

    def start_listening(self) -> None:
        ...

    def stop_listening(self) -> None:
        ...

    def reset_transcript(self) -> None:
        ...


@runtime_checkable
class FrameSourceProto(Protocol):
    """Camera collaborator producing small frames."""

    def open(self) -> None:
        ...

    def read(self) -> Optional[np.ndarray]:
        ...

    def close(self) -> None:
        ...


def intent_kind(intent: Any) -> str:
    """Short name of an intent variant, used for logging and status."""
    name = type(intent).__name__
    return name[:-len("Intent")] if name.endswith("Intent") else name
