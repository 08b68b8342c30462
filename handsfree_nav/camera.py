"""
Camera frame source backed by OpenCV.
"""
import logging
import threading
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig
from .gestures import CameraUnavailableError

logger = logging.getLogger(__name__)


class CameraFrameSource:
    """
    Reads small RGB frames from a webcam.

    The capture device is only held between open() and close(); close()
    is safe to call when nothing is open.
    """

    def __init__(self, cfg: CameraConfig):
        """
        Initialize the frame source.

        Args:
            cfg: Camera index, output frame size and capture rate
        """
        self.cfg = cfg
        self.cap: Optional[cv2.VideoCapture] = None
        # read() runs on a worker thread, close() on the event loop
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def open(self) -> None:
        if self.is_open:
            return

        cap = cv2.VideoCapture(self.cfg.index)
        if not cap.isOpened():
            cap.release()
            raise CameraUnavailableError(f"Failed to open camera {self.cfg.index}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)
        cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        self.cap = cap
        logger.info(f"📹 Camera {self.cfg.index} opened")

    def read(self) -> Optional[np.ndarray]:
        """
        Grab the current frame.

        Returns:
            RGB frame resized to the configured width x height, or None if
            the camera is closed or the read failed
        """
        with self._lock:
            if not self.is_open:
                return None
            ret, frame = self.cap.read()

        if not ret:
            logger.warning("Failed to read frame from camera")
            return None

        frame = cv2.resize(frame, (self.cfg.width, self.cfg.height))
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self) -> None:
        with self._lock:
            if self.cap is None:
                return
            try:
                self.cap.release()
                logger.info("📹 Camera released")
            finally:
                self.cap = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
