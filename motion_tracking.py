import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from snake_settings import MOTION_RATIO, NOISE_THRESHOLD, SAMPLE_STRIDE, SENSITIVITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionVector:
    """Aggregate motion between two frames, x/y in [-1, 1] relative to the frame center"""
    x: float = 0.0
    y: float = 0.0
    intensity: int = 0

    @classmethod
    def zero(cls) -> "MotionVector":
        return cls(0.0, 0.0, 0)


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class MotionExtractor:
    """Frame-differencing motion detector.

    Every call compares the new frame with the one seen on the previous call
    and reports where the change happened relative to the frame center. The
    horizontal axis is mirror-corrected: a webcam buffer is not mirrored, so
    the user's physical right shows up on the left of the image, and change
    left of center is reported as positive x (right).
    """

    def __init__(self,
                 stride: int = SAMPLE_STRIDE,
                 noise_threshold: float = NOISE_THRESHOLD,
                 motion_ratio: float = MOTION_RATIO,
                 sensitivity: float = SENSITIVITY):
        if stride < 1:
            raise ValueError(f"stride must be >= 1, got {stride}")
        if not 0 < sensitivity <= 1:
            raise ValueError(f"sensitivity must be in (0, 1], got {sensitivity}")
        self.stride: int = stride
        self.noise_threshold: float = noise_threshold
        self.motion_ratio: float = motion_ratio
        self.sensitivity: float = sensitivity
        self.previous_frame: Optional[np.ndarray] = None

    def reset(self) -> None:
        """Forget the frame history"""
        self.previous_frame = None

    def sample(self, frame: np.ndarray) -> np.ndarray:
        """Take every stride-th pixel, color channels only (alpha dropped)"""
        if frame.ndim == 2:
            frame = frame[:, :, np.newaxis]
        return frame[::self.stride, ::self.stride, :3].copy()

    def extract(self, frame: Optional[np.ndarray]) -> MotionVector:
        """Compare frame with the previous one and return the motion vector"""
        if frame is None:
            return MotionVector.zero()

        height, width = frame.shape[:2]
        current = self.sample(frame)
        previous = self.previous_frame
        self.previous_frame = current

        if previous is None:
            return MotionVector.zero()
        if previous.shape != current.shape:
            logger.debug("Frame shape changed from %s to %s, skipping diff", previous.shape, current.shape)
            return MotionVector.zero()

        # Mean absolute difference across color channels
        diff = cv2.absdiff(current, previous).reshape(current.shape)
        change = diff.mean(axis=2)
        rows, cols = np.nonzero(change > self.noise_threshold)
        change_count = int(rows.size)

        # Too few changed pixels: sensor noise or nobody there
        if change_count < change.size * self.motion_ratio:
            return MotionVector.zero()

        avg_x = float(cols.mean()) * self.stride
        avg_y = float(rows.mean()) * self.stride
        center_x = width / 2
        center_y = height / 2

        norm_x = (center_x - avg_x) / (center_x * self.sensitivity)
        norm_y = (avg_y - center_y) / (center_y * self.sensitivity)

        return MotionVector(clamp(norm_x), clamp(norm_y), change_count)
