"""
Camera Frame Source.

Thin wrapper over ``cv2.VideoCapture`` that mirrors webcam frames for
natural interaction and reports whether frames are available.
"""

from typing import Optional

import cv2
import numpy as np

import config
from src.errors import PermissionDeniedError


class VideoSource:
    """
    Webcam (or video file) frame source.

    Args:
        source: Camera index or video file path. Defaults to config.CAMERA_INDEX.
        capture: Pre-opened VideoCapture-compatible object (mainly for tests).
    """

    def __init__(self, source=None, capture=None):
        self.source = config.CAMERA_INDEX if source is None else source
        self.is_webcam = isinstance(self.source, int)

        if capture is None:
            capture = cv2.VideoCapture(self.source)
            if self.is_webcam:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, config.FRAME_WIDTH)
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, config.FRAME_HEIGHT)
        self.capture = capture

        if not self.capture.isOpened():
            raise PermissionDeniedError(f"Cannot open video source: {self.source}")

    def is_ready(self) -> bool:
        return self.capture.isOpened()

    def read(self) -> Optional[np.ndarray]:
        """
        Grab the latest frame.

        Returns:
            BGR frame (mirrored for webcams), or None if no frame is available.
        """
        ret, frame = self.capture.read()
        if not ret:
            return None
        if self.is_webcam:
            frame = cv2.flip(frame, 1)
        return frame

    def release(self):
        self.capture.release()


def to_rgb(frame_bgr: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to RGB for MediaPipe."""
    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
