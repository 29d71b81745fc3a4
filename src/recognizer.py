"""
Real-Time Gesture-to-Text Engine.

Classifies each incoming landmark frame and accumulates the recognized
symbols into a text stream, suppressing adjacent repeats so a held gesture
(classified on every video frame) yields a single character.
"""

from typing import Optional

import numpy as np

from src.gestures import GestureClassifier


class SymbolStreamAccumulator:
    """
    Ordered stream of recognized symbols with no two adjacent tokens equal.

    The debouncing also means an intentional double letter cannot be entered
    unless a different gesture is signed in between.
    """

    def __init__(self):
        self._symbols = []

    def append(self, symbol: str) -> bool:
        """
        Append a symbol unless it repeats the last one.

        Args:
            symbol: Recognized gesture token.

        Returns:
            True if the symbol was appended, False for a suppressed repeat.
        """
        if self._symbols and self._symbols[-1] == symbol:
            return False
        self._symbols.append(symbol)
        return True

    def clear(self):
        self._symbols = []

    def snapshot(self) -> str:
        """Concatenate the stream in order."""
        return "".join(self._symbols)

    @property
    def symbols(self) -> list:
        return self._symbols.copy()

    def __len__(self):
        return len(self._symbols)


class GestureRecognizer:
    """
    Per-frame driver tying the classifier to the symbol stream.

    Features:
        - One classification per delivered frame, no frame history
        - Adjacent-duplicate suppression via SymbolStreamAccumulator
        - Latest raw prediction kept for display
    """

    def __init__(self, classifier: GestureClassifier = None,
                 accumulator: SymbolStreamAccumulator = None):
        self.classifier = classifier or GestureClassifier()
        self.accumulator = accumulator or SymbolStreamAccumulator()

        self.frame_count = 0
        self.current_prediction = None

    def update(self, landmarks: Optional[np.ndarray]) -> Optional[str]:
        """
        Process a new frame's landmarks.

        Args:
            landmarks: LandmarkFrame of shape (21, 3), or None when no hand
                was tracked in this frame.

        Returns:
            The symbol if it was appended to the stream, else None.
        """
        self.frame_count += 1
        if landmarks is None:
            self.current_prediction = None
            return None

        symbol = self.classifier.classify(landmarks)
        self.current_prediction = symbol
        if symbol is None:
            return None

        return symbol if self.accumulator.append(symbol) else None

    def get_text(self) -> str:
        """
        Get the accumulated text.

        Returns:
            Concatenated symbols. Example: "AB1OK"
        """
        return self.accumulator.snapshot()

    def get_current_prediction(self) -> Optional[str]:
        """Get the latest raw classification (before de-duplication)."""
        return self.current_prediction

    def reset(self):
        """Reset the frame counter, prediction and text stream."""
        self.frame_count = 0
        self.current_prediction = None
        self.accumulator.clear()

    def clear_text(self):
        """Clear only the accumulated text."""
        self.accumulator.clear()
