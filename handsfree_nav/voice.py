"""
Voice command recognition: turns transcript text into navigation intents.
"""
import logging
import re
from typing import Any, Awaitable, Callable, List, Optional

from .types import (
    ActivateIntent,
    CloseDocumentIntent,
    GoToPageIntent,
    LoadDocumentIntent,
    NavigationIntent,
    NextPageIntent,
    OpenLinkIntent,
    PrevPageIntent,
    ScrollIntent,
    ToggleLinksIntent,
    TranscriptSourceProto,
    ZoomIntent,
)

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_DOCUMENT = "samples/Benchmark 1.pdf"

_NUMBER_RE = re.compile(r"(\d+)")


def _contains_any(text: str, phrases) -> bool:
    return any(phrase in text for phrase in phrases)


def _first_number(text: str) -> Optional[int]:
    match = _NUMBER_RE.search(text)
    return int(match.group(1)) if match else None


def classify(transcript: str, sample_document: str = DEFAULT_SAMPLE_DOCUMENT) -> Optional[NavigationIntent]:
    """
    Map a transcript to at most one navigation intent.

    Rules are checked in a fixed order and the first match wins, so a
    transcript such as "open link page 2" resolves to a link, not a page.

    Args:
        transcript: Raw transcript text, any case
        sample_document: Source used for "load pdf" style commands

    Returns:
        The matched intent carrying the raw transcript, or None
    """
    text = transcript.lower().strip()

    if "scroll up" in text:
        return ScrollIntent(direction="up", text=transcript)
    if "scroll down" in text:
        return ScrollIntent(direction="down", text=transcript)

    if _contains_any(text, ("zoom in", "zoomin")):
        return ZoomIntent(direction="in", text=transcript)
    if _contains_any(text, ("zoom out", "zoomout")):
        return ZoomIntent(direction="out", text=transcript)

    if "link" in text:
        number = _first_number(text)
        if number is not None:
            return OpenLinkIntent(index=number, text=transcript)

    if _contains_any(text, ("show links", "toggle links", "show link")):
        return ToggleLinksIntent(text=transcript)

    if _contains_any(text, ("activate", "click", "enter")):
        return ActivateIntent(text=transcript)

    if _contains_any(text, ("load pdf", "open pdf", "load sample pdf", "sample pdf")):
        return LoadDocumentIntent(source=sample_document, text=transcript)

    if _contains_any(text, ("close pdf", "exit pdf")):
        return CloseDocumentIntent(text=transcript)

    if _contains_any(text, ("next page", "page next")):
        return NextPageIntent(text=transcript)

    if _contains_any(text, ("previous page", "page previous")):
        return PrevPageIntent(text=transcript)

    if "page" in text:
        number = _first_number(text)
        if number is not None:
            return GoToPageIntent(page=number, text=transcript)

    logger.info(f"❌ No command matched for: {text!r}")
    return None


class QueueTranscriptSource:
    """
    In-process speech collaborator.

    Transcript text is pushed in by the caller (console, control server)
    instead of a recognizer; listeners are told about every emission.
    """

    def __init__(self):
        self.transcript = ""
        self.is_listening = False
        self._listeners = []

    def start_listening(self) -> None:
        self.is_listening = True
        logger.info("🎤 Listening...")

    def stop_listening(self) -> None:
        self.is_listening = False
        logger.info("🔇 Stopped listening")

    def reset_transcript(self) -> None:
        self.transcript = ""

    def add_listener(self, callback: Callable[[str], Awaitable[None]]) -> None:
        self._listeners.append(callback)

    async def push(self, text: str) -> List[Any]:
        """Append recognized text, notify listeners and return their results."""
        if not self.is_listening:
            logger.debug(f"🔇 Not listening, dropped: {text!r}")
            return []
        self.transcript = f"{self.transcript} {text}".strip() if self.transcript else text.strip()
        results = []
        for callback in list(self._listeners):
            results.append(await callback(self.transcript))
        return results


class VoiceSession:
    """Feeds transcript emissions through the classifier into a dispatcher."""

    def __init__(self, source: TranscriptSourceProto,
                 dispatch: Callable[[NavigationIntent], Awaitable[None]],
                 sample_document: str = DEFAULT_SAMPLE_DOCUMENT):
        self.source = source
        self.dispatch = dispatch
        self.sample_document = sample_document

    @property
    def is_listening(self) -> bool:
        return self.source.is_listening

    def start(self) -> None:
        self.source.start_listening()

    def stop(self) -> None:
        self.source.stop_listening()

    def toggle(self) -> None:
        if self.source.is_listening:
            self.stop()
        else:
            self.start()

    async def on_transcript(self, transcript: str) -> Optional[NavigationIntent]:
        """
        Classify one transcript emission.

        On a match the intent is dispatched and the transcript buffer is
        cleared so streaming updates of the same phrase do not re-trigger.
        """
        if not transcript or not self.source.is_listening:
            return None

        logger.debug(f"🎤 Processing transcript: {transcript!r}")
        intent = classify(transcript, self.sample_document)
        if intent is None:
            return None

        logger.info(f"✅ Voice command detected: {intent}")
        await self.dispatch(intent)
        self.source.reset_transcript()
        return intent
