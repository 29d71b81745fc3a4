"""
Geometric Hand-Gesture Classification.

Turns one 21-point hand landmark frame (MediaPipe index convention) into at
most one symbol by evaluating an ordered list of rules. The first rule whose
predicate holds wins, so the order below is the tie-break policy: several
predicates overlap, and ``5`` / ``THUMBS_UP`` are shadowed by ``B`` / ``A``.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

import config

# ─── Landmark indices ────────────────────────────────────────────────────────
WRIST = 0
THUMB_IP, THUMB_TIP = 3, 4
INDEX_MCP, INDEX_PIP, INDEX_TIP = 5, 6, 8
MIDDLE_PIP, MIDDLE_TIP = 10, 12
RING_PIP, RING_TIP = 14, 16
PINKY_PIP, PINKY_TIP = 18, 20

# (tip, joint) pair used to decide whether each digit is extended
FINGER_JOINTS = {
    "thumb": (THUMB_TIP, THUMB_IP),
    "index": (INDEX_TIP, INDEX_PIP),
    "middle": (MIDDLE_TIP, MIDDLE_PIP),
    "ring": (RING_TIP, RING_PIP),
    "pinky": (PINKY_TIP, PINKY_PIP),
}
FOUR_FINGERS = ("index", "middle", "ring", "pinky")

_X, _Y = 0, 1


@dataclass(frozen=True)
class GestureRule:
    """One symbol and the predicate over a landmark frame that selects it."""

    symbol: str
    predicate: Callable[[np.ndarray], bool]


# ─── Finger state helpers ────────────────────────────────────────────────────
# Image coordinates have a top-left origin: a smaller y is higher up.

def is_extended(frame: np.ndarray, finger: str) -> bool:
    tip, joint = FINGER_JOINTS[finger]
    return bool(frame[tip, _Y] < frame[joint, _Y])


def is_curled(frame: np.ndarray, finger: str) -> bool:
    tip, joint = FINGER_JOINTS[finger]
    return bool(frame[tip, _Y] > frame[joint, _Y])


def landmark_distance(frame: np.ndarray, first: int, second: int) -> float:
    """Planar (x, y) distance between two landmarks."""
    return float(np.linalg.norm(frame[first, :2] - frame[second, :2]))


def _extended(*fingers):
    return lambda frame: all(is_extended(frame, f) for f in fingers)


def _curled(*fingers):
    return lambda frame: all(is_curled(frame, f) for f in fingers)


def _both(first, second):
    return lambda frame: first(frame) and second(frame)


# ─── Predicates ──────────────────────────────────────────────────────────────

thumb_up_fist = _both(_extended("thumb"), _curled(*FOUR_FINGERS))
open_hand = _extended("thumb", *FOUR_FINGERS)


def curved_hand(frame: np.ndarray) -> bool:
    """Thumb tucked inward with the index bent back past its knuckle."""
    thumb_in = frame[THUMB_TIP, _X] > frame[THUMB_IP, _X]
    index_curved = (is_curled(frame, "index") and
                    frame[INDEX_TIP, _X] < frame[INDEX_MCP, _X])
    return bool(thumb_in and index_curved)


def ok_ring(frame: np.ndarray) -> bool:
    return landmark_distance(frame, THUMB_TIP, INDEX_TIP) < config.OK_DISTANCE_THRESHOLD


GESTURE_RULES = (
    GestureRule("A", thumb_up_fist),
    GestureRule("B", open_hand),
    GestureRule("C", curved_hand),
    GestureRule("1", _both(_extended("index"), _curled("middle", "ring", "pinky"))),
    GestureRule("2", _both(_extended("index", "middle"), _curled("ring", "pinky"))),
    GestureRule("3", _both(_extended("index", "middle", "ring"), _curled("pinky"))),
    GestureRule("4", _extended(*FOUR_FINGERS)),
    GestureRule("5", open_hand),
    GestureRule("OK", ok_ring),
    GestureRule("THUMBS_UP", thumb_up_fist),
)


def as_landmark_frame(landmarks) -> np.ndarray:
    """
    Coerce landmarks into a (21, 3) float array.

    Args:
        landmarks: Array-like of 21 (x, y, z) points, or a flat array of 63.

    Returns:
        numpy array of shape (NUM_HAND_LANDMARKS, HAND_DIMS).

    Raises:
        ValueError: If the input does not hold exactly 21 3-D points.
    """
    frame = np.asarray(landmarks, dtype=np.float32)
    expected = (config.NUM_HAND_LANDMARKS, config.HAND_DIMS)
    if frame.shape == (expected[0] * expected[1],):
        frame = frame.reshape(expected)
    if frame.shape != expected:
        raise ValueError(f"Expected landmark frame of shape {expected}, got {frame.shape}")
    return frame


class GestureClassifier:
    """First-match classifier over an ordered rule set."""

    def __init__(self, rules=GESTURE_RULES):
        self.rules = tuple(rules)

    @property
    def symbols(self) -> list:
        return [rule.symbol for rule in self.rules]

    def classify(self, landmarks) -> Optional[str]:
        """
        Classify a single landmark frame.

        Args:
            landmarks: A LandmarkFrame (see ``as_landmark_frame``).

        Returns:
            Symbol of the first matching rule, or None if no rule matches.
        """
        frame = as_landmark_frame(landmarks)
        for rule in self.rules:
            if rule.predicate(frame):
                return rule.symbol
        return None

    def matching_symbols(self, landmarks) -> list:
        """All symbols whose predicate holds, in rule order."""
        frame = as_landmark_frame(landmarks)
        return [rule.symbol for rule in self.rules if rule.predicate(frame)]
