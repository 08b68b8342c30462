"""
Hands-free Navigation Engine

Interprets voice transcripts and camera frames as navigation commands,
keeps an ordered index of focusable page elements, and dispatches
commands into focus, scroll, zoom and document paging actions.
"""

__version__ = "0.1.0"
__author__ = "Hands-free Navigation Team"

from .types import (
    GestureLabel,
    GestureSample,
    FocusTarget,
    ElementInfo,
    NavigationIntent,
    PageProto,
    ViewerProto,
)
from .config import load_config, Cfg
from .voice import classify, VoiceSession, QueueTranscriptSource
from .gestures import BrightnessGestureClassifier, GestureLoop, gesture_to_intent, mean_brightness
from .focus import FocusIndex
from .dispatcher import CommandDispatcher
from .page_mock import MockPage

__all__ = [
    "GestureLabel",
    "GestureSample",
    "FocusTarget",
    "ElementInfo",
    "NavigationIntent",
    "PageProto",
    "ViewerProto",
    "load_config",
    "Cfg",
    "classify",
    "VoiceSession",
    "QueueTranscriptSource",
    "BrightnessGestureClassifier",
    "GestureLoop",
    "gesture_to_intent",
    "mean_brightness",
    "FocusIndex",
    "CommandDispatcher",
    "MockPage",
]
