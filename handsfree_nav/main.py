"""
Main application for hands-free navigation.
"""
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .browser import open_browser
from .camera import CameraFrameSource
from .config import Cfg, load_config
from .dispatcher import CommandDispatcher
from .focus import FocusIndex
from .gestures import GestureLoop, gesture_to_intent
from .page_mock import MockPage, sample_elements
from .types import (
    CloseDocumentIntent,
    DocumentHostProto,
    FrameSourceProto,
    GestureSample,
    LoadDocumentIntent,
    PageProto,
)
from .viewer import PDF_CONTENT_TYPE, PdfDocumentHost
from .voice import QueueTranscriptSource, VoiceSession

logger = logging.getLogger(__name__)


class NavigationApp:
    """Wires the classifiers, the focus index and the dispatcher to one page."""

    def __init__(self, config: Cfg, page: PageProto,
                 frame_source: Optional[FrameSourceProto] = None,
                 documents: Optional[DocumentHostProto] = None):
        """Initialize the application around an already opened page."""
        self.config = config
        self.page = page
        self.documents = documents
        self.focus = FocusIndex(page, include_headings=config.focus.include_headings)
        self.dispatcher = CommandDispatcher(config.dispatcher, page, self.focus, documents)

        self.transcripts = QueueTranscriptSource()
        self.voice = VoiceSession(self.transcripts, self.dispatcher.dispatch,
                                  sample_document=config.dispatcher.sample_document)
        self.transcripts.add_listener(self.voice.on_transcript)

        self.gestures: Optional[GestureLoop] = None
        if frame_source is not None:
            self.gestures = GestureLoop(config, frame_source, self.on_gesture)

    async def start(self) -> None:
        await self.focus.attach()
        logger.info(f"✅ Navigation ready: {len(self.focus)} focus targets")

    async def close(self) -> None:
        """Stop sampling and release every collaborator, even after errors."""
        try:
            if self.gestures is not None and self.gestures.is_sampling:
                await self.gestures.stop()
        finally:
            self.focus.detach()
            self.dispatcher.close()
            if self.documents is not None:
                self.documents.close()

    async def on_gesture(self, sample: GestureSample) -> None:
        intent = gesture_to_intent(sample.label, self.focus.current_target() is not None)
        if intent is None:
            logger.debug(f"Gesture {sample.label.value} has no action")
            return
        await self.dispatcher.dispatch(intent)

    def _document_open(self, source: str) -> bool:
        return self.dispatcher.viewer_slot.is_attached and self.dispatcher.document_source == source

    async def open_document(self, source: str) -> bool:
        """Load a PDF by path; returns whether it is now shown."""
        await self.dispatcher.dispatch(LoadDocumentIntent(source=source, text=f"open: {source}"))
        return self._document_open(source)

    async def upload_document(self, filename: str, data: bytes,
                              content_type: Optional[str] = PDF_CONTENT_TYPE) -> bool:
        """
        Show an uploaded PDF.

        Raises:
            NotAPdfError: if the upload is not a PDF
        """
        if self.documents is None:
            logger.info("⚠️ No document viewer available")
            return False
        source = self.documents.add_upload(filename, data, content_type)
        await self.dispatcher.dispatch(LoadDocumentIntent(source=source, text=f"upload: {filename}"))
        if not self._document_open(source):
            self.documents.discard_upload(source)
            return False
        return True

    async def close_document(self) -> None:
        await self.dispatcher.dispatch(CloseDocumentIntent(text="close pdf"))

    async def toggle_gestures(self) -> bool:
        """Start or stop gesture sampling; returns whether it is now sampling."""
        if self.gestures is None:
            logger.info("⚠️ Gesture control not available (no camera)")
            return False
        if self.gestures.is_sampling:
            await self.gestures.stop()
        else:
            await self.gestures.start()
        return self.gestures.is_sampling

    def status(self) -> Dict[str, Any]:
        viewer = self.dispatcher.viewer_slot.viewer
        return {
            "listening": self.voice.is_listening,
            "transcript": self.transcripts.transcript,
            "gesture_state": self.gestures.state.value if self.gestures else "unavailable",
            "gesture_status": self.gestures.status if self.gestures else "Gesture Unavailable",
            "gesture_label": self.gestures.current_label.value if self.gestures and self.gestures.current_label else None,
            "gesture_confidence": self.gestures.current_confidence if self.gestures else 0.0,
            "last_command": self.dispatcher.last_command,
            "last_kind": self.dispatcher.last_kind,
            "links_visible": self.dispatcher.links_visible,
            "zoom": self.dispatcher.zoom,
            "cursor": self.focus.cursor,
            "targets": [
                {"number": number, "kind": target.kind, "label": target.label,
                 "href": target.href, "focused": focused}
                for number, target, focused in self.focus.badges()
            ],
            "document": None if viewer is None else {
                "source": self.dispatcher.document_source,
                "page_count": viewer.page_count,
                "current_page": viewer.current_page,
            },
        }


@asynccontextmanager
async def navigation_session(config: Cfg, use_mock: bool = False, use_camera: bool = True):
    """
    Open a page (browser or mock), build a started NavigationApp around it
    and tear everything down on exit.
    """
    frame_source = None
    if use_camera:
        frame_source = CameraFrameSource(config.camera)

    documents = PdfDocumentHost()

    if use_mock:
        page = MockPage(sample_elements())
        app = NavigationApp(config, page, frame_source, documents)
        await app.start()
        try:
            yield app
        finally:
            await app.close()
        return

    async with open_browser(config.server.start_url, headless=config.server.headless) as page:
        app = NavigationApp(config, page, frame_source, documents)
        await app.start()
        try:
            yield app
        finally:
            await app.close()


async def run_console(app: NavigationApp) -> None:
    """Read voice transcripts from stdin until 'quit'."""
    print("🎯 Hands-free navigation")
    print("  - Type a phrase to use it as a voice transcript (e.g. 'scroll down', 'open link 3')")
    print("  - 'tab' / 'shift tab' move focus, 'gestures' toggles the camera")
    print("  - 'open <file>.pdf' shows a PDF from disk")
    print("Type 'quit' to exit")

    app.voice.start()
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        text = line.strip()
        if text in ("quit", "q", "exit"):
            break
        if text == "tab":
            await app.focus.focus_next()
        elif text == "shift tab":
            await app.focus.focus_previous()
        elif text.startswith("open ") and text.lower().endswith(".pdf"):
            await app.open_document(text[len("open "):].strip())
        elif text == "gestures":
            sampling = await app.toggle_gestures()
            print(f"Gesture control {'on' if sampling else 'off'}")
        elif text:
            await app.transcripts.push(text)
        status = app.status()
        if status["last_command"]:
            print(f"✅ Command executed: {status['last_command']}")


async def main():
    """Entry point for the application."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    use_mock = "--mock" in sys.argv
    use_camera = "--no-camera" not in sys.argv

    try:
        config = load_config()
        async with navigation_session(config, use_mock=use_mock, use_camera=use_camera) as app:
            await run_console(app)
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
