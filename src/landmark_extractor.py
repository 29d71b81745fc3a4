"""
Hand Landmark Extraction Module.

Uses MediaPipe Hands to extract the 21 landmarks of a single hand from
video frames. Multi-hand results are truncated to the first hand. The
tracker is loaded in the background; its readiness is exposed as a future
with a fixed time budget instead of being polled.
"""

import logging
from concurrent import futures
from typing import Optional, Tuple

import mediapipe as mp
import numpy as np

import config
from src.errors import CapabilityUnavailableError, InitializationTimeoutError

logger = logging.getLogger(__name__)


class HandLandmarkExtractor:
    """
    Extracts single-hand landmarks from RGB frames using MediaPipe Hands.

    Produces a LandmarkFrame per frame: 21 landmarks × (x, y, z) in
    normalized image coordinates, or None when no hand is visible.

    Args:
        hands: Pre-built MediaPipe Hands-compatible object (mainly for tests).
    """

    def __init__(self, hands=None):
        self.mp_hands = mp.solutions.hands
        self.mp_drawing = mp.solutions.drawing_utils
        self.mp_drawing_styles = mp.solutions.drawing_styles

        if hands is None:
            hands = self.mp_hands.Hands(
                static_image_mode=False,
                max_num_hands=config.MAX_NUM_HANDS,
                model_complexity=config.MODEL_COMPLEXITY,
                min_detection_confidence=config.MIN_DETECTION_CONFIDENCE,
                min_tracking_confidence=config.MIN_TRACKING_CONFIDENCE,
            )
        self.hands = hands

    def extract(self, frame_rgb: np.ndarray) -> Tuple[Optional[np.ndarray], float, object]:
        """
        Extract the first hand's landmarks from an RGB frame.

        Args:
            frame_rgb: RGB image frame (H, W, 3).

        Returns:
            Tuple of (landmarks or None, confidence, mediapipe_results).
            Landmarks have shape (NUM_HAND_LANDMARKS, HAND_DIMS).
        """
        results = self.hands.process(frame_rgb)
        landmarks = self._extract_hand_landmarks(results)
        confidence = self._handedness_score(results) if landmarks is not None else 0.0
        return landmarks, confidence, results

    def _extract_hand_landmarks(self, results) -> Optional[np.ndarray]:
        """
        Convert the first detected hand to a (21, 3) array.

        Args:
            results: MediaPipe Hands results.

        Returns:
            Array of shape (21, 3), or None if no hand was detected.
        """
        hand_list = getattr(results, "multi_hand_landmarks", None)
        if not hand_list:
            return None

        hand = hand_list[0]
        return np.array([[lm.x, lm.y, lm.z] for lm in hand.landmark], dtype=np.float32)

    def _handedness_score(self, results) -> float:
        handedness = getattr(results, "multi_handedness", None)
        if not handedness:
            return 0.0
        return float(handedness[0].classification[0].score)

    def draw_landmarks(self, frame_bgr: np.ndarray, results) -> np.ndarray:
        """
        Draw the detected hand skeleton on a BGR frame.

        Args:
            frame_bgr: BGR image frame.
            results: MediaPipe Hands results.

        Returns:
            Copy of the frame with landmarks drawn.
        """
        annotated = frame_bgr.copy()
        for hand in getattr(results, "multi_hand_landmarks", None) or []:
            self.mp_drawing.draw_landmarks(
                annotated,
                hand,
                self.mp_hands.HAND_CONNECTIONS,
                self.mp_drawing_styles.get_default_hand_landmarks_style(),
                self.mp_drawing_styles.get_default_hand_connections_style()
            )
        return annotated

    def has_hands(self, results) -> bool:
        """Check if a hand is detected in the results."""
        return bool(getattr(results, "multi_hand_landmarks", None))

    def release(self):
        """Release MediaPipe resources."""
        self.hands.close()


class HandTrackerLoader:
    """
    Loads a HandLandmarkExtractor in the background.

    The load resolves exactly once: either with an extractor or with the
    error raised while building it. ``is_ready()`` answers "not yet" without
    blocking; ``wait_until_ready()`` enforces the time budget.

    Args:
        factory: Callable building the extractor. Defaults to HandLandmarkExtractor.
    """

    def __init__(self, factory=None):
        self._factory = factory or HandLandmarkExtractor
        self._executor = futures.ThreadPoolExecutor(max_workers=1)
        self._future = None

    def start(self):
        if self._future is None:
            self._future = self._executor.submit(self._factory)
        return self

    def is_ready(self) -> bool:
        return (self._future is not None and self._future.done()
                and self._future.exception() is None)

    def wait_until_ready(self, timeout: float = None) -> HandLandmarkExtractor:
        """
        Block until the extractor is available.

        Args:
            timeout: Seconds to wait. Defaults to config.TRACKER_INIT_TIMEOUT.

        Returns:
            The loaded extractor.

        Raises:
            InitializationTimeoutError: If loading exceeds the budget.
            CapabilityUnavailableError: If the tracker cannot be built at all.
        """
        if timeout is None:
            timeout = config.TRACKER_INIT_TIMEOUT
        self.start()
        try:
            return self._future.result(timeout=timeout)
        except futures.TimeoutError as exc:
            logger.error("Hand tracker not ready after %.1fs", timeout)
            raise InitializationTimeoutError(
                f"Hand tracker did not become ready within {timeout:.0f} seconds") from exc
        except (AttributeError, ImportError, RuntimeError) as exc:
            raise CapabilityUnavailableError(f"Hand tracking unavailable: {exc}") from exc

    def shutdown(self):
        self._executor.shutdown(wait=False)
