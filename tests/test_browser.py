"""
Test cases for the Playwright page adapter with a mocked Playwright page.
"""
import asyncio
import unittest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from handsfree_nav.browser import BINDING_NAME, CANDIDATE_SELECTOR, OBSERVE_JS, SNAPSHOT_JS, PlaywrightPage
from handsfree_nav.focus import FocusIndex


def make_page(rows=None):
    """Mock Playwright page whose evaluate() returns snapshot rows."""
    page = MagicMock()
    page.evaluate = AsyncMock(return_value=rows or [])
    page.eval_on_selector = AsyncMock()
    page.expose_binding = AsyncMock()
    return page


def row(ref, tag="a", **kwargs):
    data = {
        "ref": ref,
        "tag": tag,
        "attributes": {"href": "#"} if tag == "a" else {},
        "text": f"Item {ref}",
        "rendered": True,
        "display": "block",
        "visibility": "visible",
    }
    data.update(kwargs)
    return data


class TestPlaywrightPage(unittest.IsolatedAsyncioTestCase):
    """Test translation between the page protocol and Playwright calls."""

    async def test_install_exposes_binding(self):
        page = make_page()
        wrapped = PlaywrightPage(page)

        await wrapped.install()
        await wrapped.install()

        page.expose_binding.assert_awaited_once()
        self.assertEqual(page.expose_binding.await_args.args[0], BINDING_NAME)
        self.assertEqual(page.evaluate.await_count, 2)

    async def test_candidate_elements(self):
        """Test snapshot rows become ElementInfo records."""
        page = make_page([row("1"), row("2", tag="button", rendered=False)])
        elements = await PlaywrightPage(page).candidate_elements()

        self.assertEqual(page.evaluate.await_args.args[1], [CANDIDATE_SELECTOR, "1:"])
        self.assertEqual([e.ref for e in elements], ["1", "2"])
        self.assertEqual(elements[0].attributes, {"href": "#"})
        self.assertFalse(elements[1].rendered)

    async def test_focus_and_scroll_use_ref_selector(self):
        page = make_page()
        wrapped = PlaywrightPage(page)

        await wrapped.focus("7")
        await wrapped.scroll_into_view("7")

        self.assertEqual(page.eval_on_selector.await_args_list[0].args[0], '[data-hf-ref="7"]')
        options = page.eval_on_selector.await_args_list[1].args[2]
        self.assertEqual(options, {"behavior": "smooth", "block": "center", "inline": "nearest"})

    async def test_notifications_reach_focus_index(self):
        """Test structure and focus notifications update a subscribed index."""
        page = make_page([row("1"), row("2")])
        wrapped = PlaywrightPage(page)
        focus = FocusIndex(wrapped)
        await focus.attach()
        self.assertEqual(len(focus), 2)

        page.evaluate.return_value = [row("1"), row("2"), row("3")]
        await wrapped._on_notify(None, "structure")
        self.assertEqual(len(focus), 3)

        await wrapped._on_notify(None, "focus", "3")
        self.assertEqual(focus.cursor, 2)

        await wrapped._on_notify(None, "focus", None)
        self.assertIsNone(focus.cursor)

    async def test_mutations_during_refresh_coalesce(self):
        """Test that a burst of mutations during a re-scan adds one extra pass."""
        wrapped = PlaywrightPage(make_page())
        calls = []

        class Listener:
            async def structure_changed(self):
                calls.append(1)
                if len(calls) == 1:
                    await wrapped._notify_structure()
                    await wrapped._notify_structure()

            async def resized(self):
                pass

            async def focus_in(self, ref):
                pass

        wrapped.subscribe(Listener())
        await wrapped._notify_structure()

        self.assertEqual(len(calls), 2)

    async def test_navigation_does_not_reuse_focus(self):
        """Test that a freshly loaded document starts with no cursor even if refs repeat."""
        page = make_page([row("1"), row("2"), row("3", text="Delete account")])
        wrapped = PlaywrightPage(page)
        focus = FocusIndex(wrapped)
        await focus.attach()
        await wrapped._on_notify(None, "focus", "3")
        self.assertEqual(focus.cursor, 2)

        new_rows = [row("1"), row("2"), row("3", text="Unrelated")]

        def evaluate(script, *args):
            return new_rows if script == SNAPSHOT_JS else None

        page.evaluate = AsyncMock(side_effect=evaluate)
        await wrapped._reload()

        self.assertEqual(len(focus), 3)
        self.assertIsNone(focus.cursor)
        self.assertIsNone(focus.current_target())

    async def test_refs_are_prefixed_per_document(self):
        """Test each loaded document hands out refs under a new prefix."""
        def evaluate(script, *args):
            if script == SNAPSHOT_JS:
                selector, prefix = args[0]
                return [row(f"{prefix}1")]
            return None

        page = make_page()
        page.evaluate = AsyncMock(side_effect=evaluate)
        wrapped = PlaywrightPage(page)

        first = await wrapped.candidate_elements()
        await wrapped._reload()
        second = await wrapped.candidate_elements()

        self.assertEqual(first[0].ref, "1:1")
        self.assertEqual(second[0].ref, "2:1")

    async def test_reload_tasks_are_tracked(self):
        """Test document-load re-scans are kept until done and cancelled on close."""
        page = make_page()
        wrapped = PlaywrightPage(page)

        wrapped._on_document_loaded(page)
        task = next(iter(wrapped._tasks))
        await task
        await asyncio.sleep(0)
        self.assertEqual(wrapped._tasks, set())

        release = asyncio.Event()

        async def blocked(*args):
            await release.wait()

        page.evaluate = AsyncMock(side_effect=blocked)
        wrapped._on_document_loaded(page)
        pending = next(iter(wrapped._tasks))

        await wrapped.close()

        self.assertTrue(pending.cancelled())
        self.assertEqual(wrapped._tasks, set())

    async def test_reload_errors_are_logged(self):
        """Test a failing re-scan is reported instead of lost."""
        page = make_page()
        wrapped = PlaywrightPage(page)
        focus = FocusIndex(wrapped)
        await focus.attach()
        def evaluate(script, *args):
            if script == OBSERVE_JS:
                return None
            raise RuntimeError("Target closed")

        page.evaluate = AsyncMock(side_effect=evaluate)

        with self.assertLogs("handsfree_nav.browser", level="ERROR") as logs:
            wrapped._on_document_loaded(page)
            task = next(iter(wrapped._tasks))
            await asyncio.gather(task, return_exceptions=True)
            await asyncio.sleep(0)

        self.assertTrue(any("re-scanning" in line and "Target closed" in line for line in logs.output))
        self.assertEqual(wrapped._tasks, set())


if __name__ == '__main__':
    unittest.main()
