"""
Integration tests: voice and gesture input flowing through the whole
application on a mock page.
"""
import unittest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from handsfree_nav.browser import PlaywrightPage
from handsfree_nav.config import load_config
from handsfree_nav.main import NavigationApp
from handsfree_nav.page_mock import MockPage
from handsfree_nav.types import ElementInfo, GestureLabel, GestureSample


class FrameQueue:
    """Frame source serving a fixed list of frames."""

    def __init__(self, frames=None):
        self.frames = list(frames or [])
        self.opened = False

    def open(self):
        self.opened = True

    def read(self):
        return self.frames.pop(0) if self.frames else None

    def close(self):
        self.opened = False


def five_anchor_page():
    body = [ElementInfo(ref="intro", tag="p", text="Welcome")]
    for i in range(1, 6):
        body.append(ElementInfo(ref=f"anchor-{i}", tag="a", attributes={"href": f"/page/{i}"}, text=f"Page {i}"))
    return MockPage(body)


class TestEndToEnd(unittest.IsolatedAsyncioTestCase):
    """Test complete command flows."""

    async def asyncSetUp(self):
        self.config = load_config()
        self.page = five_anchor_page()
        self.frames = FrameQueue()
        self.app = NavigationApp(self.config, self.page, frame_source=self.frames)
        await self.app.start()
        self.app.voice.start()

    async def asyncTearDown(self):
        await self.app.close()

    async def test_show_links_then_open_link(self):
        """Test voice 'open link 3' focuses the third anchor."""
        await self.app.transcripts.push("show links")
        self.assertTrue(self.app.dispatcher.links_visible)
        self.assertEqual([number for number, _, _ in self.app.focus.badges()], [1, 2, 3, 4, 5])

        await self.app.transcripts.push("open link 3")

        self.assertEqual(self.page.focused, "anchor-3")
        self.assertEqual(self.page.scrolled_into_view[-1], ("anchor-3", "smooth", "center", "nearest"))
        self.assertEqual(self.app.status()["last_command"], "open link 3")

    async def test_thumbs_up_activates_focused_link(self):
        """Test a camera frame activating the focused element."""
        await self.app.transcripts.push("link 2")
        self.frames.frames.append(np.full((150, 200, 3), 120, dtype=np.uint8))

        sample = await self.app.gestures.tick()

        self.assertEqual(sample.label, GestureLabel.THUMBS_UP)
        self.assertEqual(self.page.clicks, ["anchor-2"])

    async def test_thumbs_up_without_focus_does_nothing(self):
        self.frames.frames.append(np.full((150, 200, 3), 120, dtype=np.uint8))
        await self.app.gestures.tick()
        self.assertEqual(self.page.clicks, [])
        self.assertEqual(self.app.dispatcher.last_command, "")

    async def test_interleaved_modalities(self):
        """Test voice and gesture intents sharing one focus index."""
        await self.app.focus.focus_next()
        await self.app.on_gesture(GestureSample(GestureLabel.SWIPE_DOWN, 0.9, 0.0))
        await self.app.transcripts.push("scroll down")
        await self.app.on_gesture(GestureSample(GestureLabel.PINCH, 0.9, 0.0))

        self.assertEqual(self.page.scroll_y, 200)
        self.assertTrue(self.app.dispatcher.links_visible)
        self.assertEqual(self.app.focus.cursor, 0)
        self.assertEqual(self.app.dispatcher.last_command, "gesture: pinch")

    async def test_page_commands_without_document(self):
        """Test paging with no document host attached."""
        await self.app.transcripts.push("load sample pdf")
        await self.app.transcripts.push("next page")
        self.assertIsNone(self.app.status()["document"])

    async def test_toggle_gestures_releases_camera(self):
        """Test the camera is released when sampling stops and on close."""
        self.assertTrue(await self.app.toggle_gestures())
        self.assertTrue(self.frames.opened)

        self.assertFalse(await self.app.toggle_gestures())
        self.assertFalse(self.frames.opened)

        await self.app.toggle_gestures()
        await self.app.close()
        self.assertFalse(self.frames.opened)
        self.assertEqual(self.app.status()["gesture_state"], "idle")


class TestBrowserPageFailures(unittest.IsolatedAsyncioTestCase):
    """Test stale element refs on a live page do not escape voice handling."""

    async def test_stale_ref_is_not_fatal(self):
        rows = [
            {"ref": f"1:{i}", "tag": "a", "attributes": {"href": f"/p{i}"}, "text": f"Page {i}",
             "rendered": True, "display": "block", "visibility": "visible"}
            for i in range(1, 4)
        ]
        raw = MagicMock()
        raw.evaluate = AsyncMock(return_value=rows)
        raw.eval_on_selector = AsyncMock(side_effect=RuntimeError("Error: failed to find element matching selector"))
        app = NavigationApp(load_config(), PlaywrightPage(raw))
        await app.start()
        app.voice.start()
        try:
            results = await app.transcripts.push("open link 1")

            self.assertEqual(len(results), 1)
            self.assertIsNone(app.focus.cursor)

            # focus moved by the user, then the element went away
            await app.focus.focus_in("1:1")
            await app.transcripts.push("click")
            self.assertEqual(app.transcripts.transcript, "")
            self.assertEqual(app.dispatcher.last_command, "open link 1")
        finally:
            await app.close()


if __name__ == '__main__':
    unittest.main()
