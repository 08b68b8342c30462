"""
Command dispatcher: executes navigation intents against the page, the
focus index and the document viewer.
"""
import asyncio
import logging
from typing import Optional

from .config import DispatcherConfig
from .focus import FocusIndex
from .types import (
    ActivateIntent,
    CloseDocumentIntent,
    DocumentHostProto,
    GoToPageIntent,
    LoadDocumentIntent,
    NavigationIntent,
    NextPageIntent,
    OpenLinkIntent,
    PageProto,
    PrevPageIntent,
    ScrollIntent,
    ToggleLinksIntent,
    ZoomIntent,
    intent_kind,
)
from .viewer import ViewerSlot

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Single entry point turning intents into side effects.

    Every dispatch performs one action, then shows the command text as
    transient feedback that clears itself after feedback_clear_ms. A new
    dispatch restarts the clear timer instead of adding another one.
    """

    def __init__(self, cfg: DispatcherConfig, page: PageProto, focus: FocusIndex,
                 documents: Optional[DocumentHostProto] = None):
        self.cfg = cfg
        self.page = page
        self.focus = focus
        self.documents = documents
        self.viewer_slot = ViewerSlot()

        self.zoom = 1.0
        self.links_visible = False
        self.document_source: Optional[str] = None
        self.last_command = ""
        self.last_kind = ""
        self._clear_handle: Optional[asyncio.TimerHandle] = None

    async def dispatch(self, intent: NavigationIntent) -> None:
        """Execute one intent and refresh the feedback display."""
        logger.info(f"🎯 Executing command: {intent_kind(intent)}")

        try:
            executed = await self._execute(intent)
        except Exception as e:
            logger.error(f"❌ Error executing {intent_kind(intent)}: {e}")
            return
        if executed:
            self._show_feedback(intent)

    async def _execute(self, intent: NavigationIntent) -> bool:
        if isinstance(intent, ScrollIntent):
            await self._scroll(intent)
        elif isinstance(intent, ZoomIntent):
            await self._zoom(intent)
        elif isinstance(intent, OpenLinkIntent):
            logger.info(f"🔗 Opening link {intent.index}")
            await self.focus.focus_by_index(intent.index - 1)
        elif isinstance(intent, ToggleLinksIntent):
            self.links_visible = not self.links_visible
            logger.info(f"🔗 Link numbers {'shown' if self.links_visible else 'hidden'}")
        elif isinstance(intent, ActivateIntent):
            await self._activate()
        elif isinstance(intent, LoadDocumentIntent):
            self._load_document(intent.source)
        elif isinstance(intent, CloseDocumentIntent):
            self._close_document()
        elif isinstance(intent, (NextPageIntent, PrevPageIntent, GoToPageIntent)):
            self._page(intent)
        else:
            logger.warning(f"Unknown intent: {intent!r}")
            return False
        return True

    async def _scroll(self, intent: ScrollIntent) -> None:
        step = self.cfg.scroll_step_px
        logger.info(f"📜 Scrolling {intent.direction}...")
        await self.page.scroll_by(0, -step if intent.direction == "up" else step)

    async def _zoom(self, intent: ZoomIntent) -> None:
        if intent.direction == "in":
            zoom = min(self.zoom * self.cfg.zoom_in_factor, self.cfg.zoom_max)
        else:
            zoom = max(self.zoom * self.cfg.zoom_out_factor, self.cfg.zoom_min)
        self.zoom = zoom
        logger.info(f"🔍 Zoom {intent.direction}: {zoom:.2f}")
        await self.page.apply_zoom(zoom)

    async def _activate(self) -> None:
        target = self.focus.current_target()
        if target is None:
            logger.info("⚠️ No focused element to activate")
            return
        logger.info(f"🖱️ Activating {target.kind} {target.label!r}")
        await self.page.click(target.ref)

    def _load_document(self, source: str) -> None:
        if self.documents is None:
            logger.info("⚠️ No document viewer available")
            return
        try:
            viewer = self.documents.open(source)
        except (FileNotFoundError, RuntimeError) as e:
            logger.error(f"❌ Error loading document: {e}")
            return
        self.viewer_slot.attach(viewer)
        self.document_source = source

    def _close_document(self) -> None:
        self.viewer_slot.detach()
        self.document_source = None
        if self.documents is not None:
            self.documents.close()

    def _page(self, intent: NavigationIntent) -> None:
        viewer = self.viewer_slot.viewer
        if viewer is None:
            logger.info("⚠️ PDF viewer not available")
            return

        if isinstance(intent, NextPageIntent):
            viewer.next_page()
        elif isinstance(intent, PrevPageIntent):
            viewer.prev_page()
        else:
            logger.info(f"📄 Going to page {intent.page}")
            viewer.go_to_page(intent.page)

    def _show_feedback(self, intent: NavigationIntent) -> None:
        self.last_command = intent.text
        self.last_kind = intent_kind(intent)

        if self._clear_handle is not None:
            self._clear_handle.cancel()
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(self.cfg.feedback_clear_ms / 1000.0, self._clear_feedback)

    def _clear_feedback(self) -> None:
        self.last_command = ""
        self.last_kind = ""
        self._clear_handle = None

    @property
    def feedback_pending(self) -> bool:
        return self._clear_handle is not None

    def close(self) -> None:
        """Cancel the pending feedback timer."""
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
