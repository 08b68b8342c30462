"""
Gesture recognition: converts camera frames into gesture samples and intents.

The classifier is a brightness heuristic standing in for real hand pose
recognition. Its thresholds are kept as-is, overlapping bands included.
"""
import asyncio
import concurrent.futures
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

import numpy as np

from .config import Cfg, GesturesConfig
from .types import (
    ActivateIntent,
    FrameSourceProto,
    GestureLabel,
    GestureSample,
    NavigationIntent,
    ScrollIntent,
    ToggleLinksIntent,
)

logger = logging.getLogger(__name__)


class CameraUnavailableError(RuntimeError):
    """Raised by a frame source that cannot acquire the camera."""


def mean_brightness(frame: np.ndarray) -> float:
    """
    Mean luminance of a frame.

    Each pixel contributes the average of its first three channels, so an
    alpha channel is ignored. Grayscale frames are averaged directly.

    Args:
        frame: HxW or HxWxC uint8 pixel buffer

    Returns:
        Brightness in [0, 255]
    """
    pixels = np.asarray(frame, dtype=np.float64)
    if pixels.size == 0:
        return 0.0
    if pixels.ndim == 3:
        pixels = pixels[..., :3].mean(axis=-1)
    return float(pixels.mean())


class BrightnessGestureClassifier:
    """
    Maps frame brightness to a gesture label under a cooldown.

    Features:
    - Cooldown checked before anything else
    - Fixed brightness bands for open palm, fist and thumbs up
    - Confidence floor for emission
    """

    def __init__(self, cfg: GesturesConfig, clock: Callable[[], float] = time.monotonic):
        """Initialize classifier with gesture settings."""
        self.cfg = cfg
        self.clock = clock
        self.last_gesture_time: Optional[float] = None

    def in_cooldown(self, t_now: float) -> bool:
        if self.last_gesture_time is None:
            return False
        elapsed_ms = (t_now - self.last_gesture_time) * 1000
        return elapsed_ms < self.cfg.cooldown_ms

    def label_for(self, brightness: float) -> Optional[tuple]:
        """Return (label, confidence) for a brightness value, or None."""
        if brightness > self.cfg.open_palm_above:
            return GestureLabel.OPEN_PALM, 0.7
        if brightness < self.cfg.fist_below:
            return GestureLabel.FIST, 0.6
        if self.cfg.thumbs_up_low < brightness < self.cfg.thumbs_up_high:
            return GestureLabel.THUMBS_UP, 0.5
        return None

    def classify(self, frame: np.ndarray, t_now: Optional[float] = None) -> Optional[GestureSample]:
        """
        Classify one frame.

        Args:
            frame: Pixel buffer
            t_now: Monotonic timestamp in seconds, defaults to the clock

        Returns:
            GestureSample if a gesture is emitted, None otherwise
        """
        if t_now is None:
            t_now = self.clock()

        if self.in_cooldown(t_now):
            return None

        brightness = mean_brightness(frame)
        result = self.label_for(brightness)
        if result is None:
            return None

        label, confidence = result
        if confidence <= self.cfg.min_confidence:
            return None

        self.last_gesture_time = t_now
        logger.info(f"🎯 Gesture detected: {label.value} (brightness: {brightness:.0f}, confidence: {confidence:.2f})")
        return GestureSample(label=label, confidence=confidence, timestamp=t_now)


def gesture_to_intent(label: GestureLabel, has_focus_target: bool) -> Optional[NavigationIntent]:
    """
    Map a gesture to the intent it triggers.

    Args:
        label: Detected gesture
        has_focus_target: Whether a focus target currently exists

    Returns:
        Intent to dispatch, or None for gestures without an action
    """
    text = f"gesture: {label.value}"
    if label is GestureLabel.SWIPE_UP:
        return ScrollIntent(direction="up", text=text)
    if label is GestureLabel.SWIPE_DOWN:
        return ScrollIntent(direction="down", text=text)
    if label is GestureLabel.PINCH:
        return ToggleLinksIntent(text=text)
    if label is GestureLabel.THUMBS_UP:
        return ActivateIntent(text=text) if has_focus_target else None
    # point is reserved for element selection
    return None


class LoopState(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"


class GestureLoop:
    """
    Capture loop driving the classifier at display refresh cadence.

    One frame is processed per scheduled callback. Processing is guarded
    by an in-flight flag so ticks never overlap.
    """

    def __init__(self, cfg: Cfg, source: FrameSourceProto,
                 on_gesture: Callable[[GestureSample], Awaitable[None]],
                 classifier: Optional[BrightnessGestureClassifier] = None):
        self.cfg = cfg
        self.source = source
        self.on_gesture = on_gesture
        self.classifier = classifier or BrightnessGestureClassifier(cfg.gestures)
        self.frame_interval = 1.0 / max(cfg.camera.fps, 1)

        self.state = LoopState.IDLE
        self.current_label: Optional[GestureLabel] = None
        self.current_confidence = 0.0
        self.status = "Gesture Inactive"
        self._task: Optional[asyncio.Task] = None
        self._processing = False
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._pending_read: Optional[concurrent.futures.Future] = None

    @property
    def is_sampling(self) -> bool:
        return self.state is LoopState.SAMPLING

    async def start(self) -> bool:
        """
        Acquire the camera and begin sampling.

        Returns:
            True if sampling started, False if the camera was unavailable
        """
        if self.is_sampling:
            return True

        logger.info("🚀 Starting gesture detection...")
        try:
            self.source.open()
        except CameraUnavailableError as e:
            logger.error(f"❌ Camera unavailable: {e}")
            self.status = f"Camera unavailable: {e}"
            return False

        self.state = LoopState.SAMPLING
        self.status = "Detecting..."
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def stop(self) -> None:
        """Cancel the pending frame callback and release the camera."""
        logger.info("🛑 Stopping gesture detection...")
        self.state = LoopState.IDLE
        task, self._task = self._task, None
        try:
            if task is not None and not task.done():
                task.cancel()
                if task is asyncio.current_task():
                    return
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        finally:
            # A read still running on the worker thread must finish before the camera is released
            await self._wait_for_read()
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
            self.current_label = None
            self.current_confidence = 0.0
            self.status = "Gesture Inactive"
            self.source.close()

    async def _wait_for_read(self) -> None:
        pending, self._pending_read = self._pending_read, None
        if pending is None or pending.done():
            return
        try:
            await asyncio.wrap_future(pending)
        except Exception as e:
            logger.debug(f"Frame read finished with error after stop: {e}")

    def _read_frame(self) -> concurrent.futures.Future:
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-reader")
        self._pending_read = self._executor.submit(self.source.read)
        return self._pending_read

    async def _run(self) -> None:
        while self.is_sampling:
            await self.tick()
            await asyncio.sleep(self.frame_interval)

    async def tick(self) -> Optional[GestureSample]:
        """
        Process exactly one frame.

        Returns:
            The emitted sample, or None if nothing was emitted or a frame
            is already being processed
        """
        if self._processing:
            return None

        self._processing = True
        try:
            frame = await asyncio.wrap_future(self._read_frame())
            if frame is None:
                return None

            sample = self.classifier.classify(frame)
            if sample is None:
                return None

            self.current_label = sample.label
            self.current_confidence = sample.confidence
            logger.info(f"✅ Gesture recognized: {sample.label.value} ({sample.confidence * 100:.0f}% confidence)")
            await self.on_gesture(sample)
            return sample
        except Exception as e:
            logger.error(f"Error processing frame: {e}")
            return None
        finally:
            self._processing = False
