"""
Playwright implementation of the page protocol.

Elements are addressed through a data-hf-ref attribute assigned during
the candidate snapshot. Page-side MutationObserver, focusin and resize
listeners call back into Python through an exposed binding.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Set

from playwright.async_api import Page, async_playwright

from .focus import OBSERVED_ATTRIBUTES
from .types import ElementInfo, PageListener

logger = logging.getLogger(__name__)

REF_ATTRIBUTE = "data-hf-ref"
BINDING_NAME = "__hfNotify"

CANDIDATE_SELECTOR = ", ".join([
    "a[href]",
    "button",
    "input",
    "textarea",
    "select",
    "[tabindex]",
    "[contenteditable]",
    "h1, h2, h3, h4, h5, h6",
])

SNAPSHOT_JS = """
([selector, prefix]) => {
  window.__hfNextRef = window.__hfNextRef || 1;
  return Array.from(document.querySelectorAll(selector)).map((el) => {
    if (!el.dataset.hfRef) {
      el.dataset.hfRef = prefix + String(window.__hfNextRef++);
    }
    const style = window.getComputedStyle(el);
    const attributes = {};
    for (const attr of el.attributes) {
      attributes[attr.name] = attr.value;
    }
    return {
      ref: el.dataset.hfRef,
      tag: el.tagName.toLowerCase(),
      attributes: attributes,
      text: el.textContent || '',
      rendered: el.offsetParent !== null,
      display: style.display,
      visibility: style.visibility,
    };
  });
}
"""

OBSERVE_JS = """
([binding, attributeFilter]) => {
  if (window.__hfObserver) {
    return;
  }
  const notify = (kind, ref) => window[binding](kind, ref || null);
  window.__hfObserver = new MutationObserver(() => notify('structure'));
  window.__hfObserver.observe(document.body, {
    childList: true,
    subtree: true,
    attributes: true,
    attributeFilter: attributeFilter,
  });
  document.addEventListener('focusin', (event) => {
    const target = event.target;
    notify('focus', target && target.dataset ? target.dataset.hfRef : null);
  });
  window.addEventListener('resize', () => notify('resize'));
}
"""

ZOOM_JS = """
(scale) => {
  document.documentElement.style.setProperty('--zoom', String(scale));
  document.body.style.transform = `scale(${scale})`;
  document.body.style.transformOrigin = 'top left';
}
"""


def _selector(ref) -> str:
    return f'[{REF_ATTRIBUTE}="{ref}"]'


class PlaywrightPage:
    """Drives a live Chromium page through Playwright."""

    def __init__(self, page: Page):
        self.page = page
        self.listeners: List[PageListener] = []
        self._bound = False
        self._refreshing = False
        self._dirty = False
        # Refs are prefixed per loaded document so a ref never names an element of another document
        self._generation = 1
        self._tasks: Set[asyncio.Task] = set()

    @property
    def ref_prefix(self) -> str:
        return f"{self._generation}:"

    async def install(self) -> None:
        """Expose the notification binding and start observing the document."""
        if not self._bound:
            await self.page.expose_binding(BINDING_NAME, self._on_notify)
            self.page.on("domcontentloaded", self._on_document_loaded)
            self._bound = True
        await self._observe()

    async def _observe(self) -> None:
        try:
            await self.page.evaluate(OBSERVE_JS, [BINDING_NAME, list(OBSERVED_ATTRIBUTES)])
            logger.info("✅ Page observers installed")
        except Exception as e:
            logger.error(f"Failed to install page observers: {e}")

    def _on_document_loaded(self, _page) -> None:
        task = asyncio.get_running_loop().create_task(self._reload())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ Error re-scanning loaded document: {error}")

    async def _reload(self) -> None:
        """Re-observe a freshly loaded document and re-sync focus before re-scanning."""
        self._generation += 1
        await self._observe()
        active = await self.active_element()
        for listener in list(self.listeners):
            await listener.focus_in(active)
        await self._notify_structure()

    async def close(self) -> None:
        """Cancel pending re-scan tasks."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def _on_notify(self, _source, kind: str, ref: Optional[str] = None) -> None:
        if kind == "structure":
            await self._notify_structure()
        elif kind == "resize":
            for listener in list(self.listeners):
                await listener.resized()
        elif kind == "focus":
            for listener in list(self.listeners):
                await listener.focus_in(ref)
        else:
            logger.warning(f"Unknown page notification: {kind}")

    async def _notify_structure(self) -> None:
        # Mutations arriving during a re-scan mark it dirty and trigger one more pass
        self._dirty = True
        if self._refreshing:
            return
        self._refreshing = True
        try:
            while self._dirty:
                self._dirty = False
                for listener in list(self.listeners):
                    await listener.structure_changed()
        finally:
            self._refreshing = False

    # ===== PageProto =====

    async def candidate_elements(self) -> List[ElementInfo]:
        rows = await self.page.evaluate(SNAPSHOT_JS, [CANDIDATE_SELECTOR, self.ref_prefix])
        return [
            ElementInfo(
                ref=row["ref"],
                tag=row["tag"],
                attributes=row["attributes"],
                text=row["text"],
                rendered=row["rendered"],
                display=row["display"],
                visibility=row["visibility"]
            )
            for row in rows
        ]

    async def focus(self, ref) -> None:
        await self.page.eval_on_selector(_selector(ref), "(el) => el.focus()")

    async def click(self, ref) -> None:
        await self.page.eval_on_selector(_selector(ref), "(el) => el.click()")

    async def scroll_into_view(self, ref, behavior: str = "smooth",
                               block: str = "center", inline: str = "nearest") -> None:
        await self.page.eval_on_selector(
            _selector(ref),
            "(el, options) => el.scrollIntoView(options)",
            {"behavior": behavior, "block": block, "inline": inline}
        )

    async def scroll_by(self, dx: int, dy: int) -> None:
        await self.page.evaluate("([dx, dy]) => window.scrollBy(dx, dy)", [dx, dy])

    async def apply_zoom(self, scale: float) -> None:
        await self.page.evaluate(ZOOM_JS, scale)

    async def active_element(self) -> Optional[str]:
        ref = await self.page.evaluate(
            "() => (document.activeElement && document.activeElement.dataset)"
            " ? (document.activeElement.dataset.hfRef || null) : null"
        )
        return ref if isinstance(ref, str) else None

    def subscribe(self, listener: PageListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener: PageListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)


@asynccontextmanager
async def open_browser(start_url: str, headless: bool = False):
    """
    Launch Chromium, open start_url and yield a PlaywrightPage.

    The browser is closed on exit regardless of errors.
    """
    p = await async_playwright().start()
    browser = await p.chromium.launch(headless=headless)
    wrapped = None
    try:
        page = await browser.new_page()
        await page.set_viewport_size({"width": 1280, "height": 720})
        logger.info(f"📍 Navigating to: {start_url}")
        await page.goto(start_url)
        wrapped = PlaywrightPage(page)
        await wrapped.install()
        logger.info("🌐 Browser is open and ready for commands")
        yield wrapped
    finally:
        try:
            if wrapped is not None:
                await wrapped.close()
            await browser.close()
        finally:
            await p.stop()
            logger.info("✅ Browser closed")
