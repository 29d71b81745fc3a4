"""
Utility functions for the Communication Bridge.

Drawing helpers for the gesture capture window and an FPS counter.
"""

import time

import cv2
import numpy as np


class FPSCounter:
    """Tracks and smooths FPS for display."""

    def __init__(self, smoothing: int = 30):
        self.smoothing = smoothing
        self.timestamps = []

    def tick(self) -> float:
        """Record a frame and return smoothed FPS."""
        now = time.time()
        self.timestamps.append(now)

        if len(self.timestamps) > self.smoothing:
            self.timestamps = self.timestamps[-self.smoothing:]

        if len(self.timestamps) < 2:
            return 0.0

        elapsed = self.timestamps[-1] - self.timestamps[0]
        if elapsed == 0:
            return 0.0

        return (len(self.timestamps) - 1) / elapsed


def draw_info_panel(frame: np.ndarray, mode: str = "", symbol: str = None,
                    text: str = "", fps: float = 0.0,
                    hand_visible: bool = True) -> np.ndarray:
    """
    Draw the gesture capture overlay on a frame.

    Positions scale with the frame width so portrait and landscape frames
    both render legibly. OpenCV's Hershey fonts are ASCII-only, so only
    mode ids and gesture symbols are drawn here.

    Args:
        frame: BGR frame.
        mode: Conversion mode id shown in the top bar.
        symbol: Latest classified symbol, if any.
        text: Accumulated symbol stream.
        fps: Smoothed frames per second.
        hand_visible: Whether a hand was tracked in this frame.

    Returns:
        Annotated copy of the frame.
    """
    h, w = frame.shape[:2]
    output = frame.copy()

    s = max(w / 640, 0.5)
    pad = int(10 * s)

    # ── Top bar: mode + FPS ──────────────────────────────────────────────────
    top_h = int(45 * s)
    cv2.rectangle(output, (0, 0), (w, top_h), (40, 40, 40), -1)
    cv2.putText(output, f"BRIDGE | {mode}", (pad, int(28 * s)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6 * s, (0, 255, 200), max(1, int(2 * s)))
    cv2.putText(output, f"FPS: {fps:.0f}", (w - int(110 * s), int(28 * s)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5 * s, (200, 200, 200), max(1, int(s)))

    # ── Current symbol ───────────────────────────────────────────────────────
    if symbol:
        box_y1 = top_h + pad
        box_y2 = box_y1 + int(60 * s)
        box_x2 = min(w - pad, int(260 * s))
        overlay = output.copy()
        cv2.rectangle(overlay, (pad, box_y1), (box_x2, box_y2), (20, 20, 20), -1)
        cv2.addWeighted(overlay, 0.7, output, 0.3, 0, output)
        cv2.rectangle(output, (pad, box_y1), (box_x2, box_y2), (0, 255, 200), 2)
        cv2.putText(output, symbol, (pad + int(8 * s), box_y2 - int(18 * s)),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.1 * s, (0, 255, 200), max(2, int(2.5 * s)))

    if not hand_visible:
        cv2.putText(output, "No hand detected", (w // 2 - int(w * 0.15), h // 2),
                    cv2.FONT_HERSHEY_SIMPLEX, max(0.5, w / 900), (0, 0, 255),
                    max(1, int(w / 400)))

    # ── Accumulated text (bottom) ────────────────────────────────────────────
    sent_h = int(45 * s)
    overlay = output.copy()
    cv2.rectangle(overlay, (0, h - sent_h), (w, h), (30, 30, 30), -1)
    cv2.addWeighted(overlay, 0.8, output, 0.2, 0, output)
    cv2.putText(output, text[-40:] if text else "-", (pad, h - int(15 * s)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7 * s, (255, 255, 255), max(1, int(1.5 * s)))

    return output
