from enum import Enum
from typing import Tuple

from motion_tracking import MotionVector
from snake_settings import DEAD_ZONE, SMOOTHING_ALPHA


class Direction(Enum):
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def offset(self) -> Tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> "Direction":
        dx, dy = self.value
        return Direction((-dx, -dy))


class DirectionArbiter:
    """Turns noisy motion vectors into one of four directions.

    The raw vector is smoothed with an exponential moving average, only the
    dominant axis of the smoothed vector may steer, and it has to clear the
    dead zone to do so. A turn straight back into the snake is never taken.
    """

    def __init__(self, alpha: float = SMOOTHING_ALPHA, dead_zone: float = DEAD_ZONE):
        if not 0 <= alpha < 1:
            raise ValueError(f"alpha must be in [0, 1), got {alpha}")
        self.alpha: float = alpha
        self.dead_zone: float = dead_zone
        self.smoothed_x: float = 0.0
        self.smoothed_y: float = 0.0
        self.last_intensity: int = 0

    def reset(self) -> None:
        """Zero the smoothed vector (start of a run)"""
        self.smoothed_x = 0.0
        self.smoothed_y = 0.0
        self.last_intensity = 0

    @property
    def smoothed(self) -> MotionVector:
        return MotionVector(self.smoothed_x, self.smoothed_y, self.last_intensity)

    def smooth(self, raw: MotionVector) -> MotionVector:
        """Fold one raw vector into the moving average"""
        self.smoothed_x = self.smoothed_x * self.alpha + raw.x * (1 - self.alpha)
        self.smoothed_y = self.smoothed_y * self.alpha + raw.y * (1 - self.alpha)
        self.last_intensity = raw.intensity
        return self.smoothed

    def choose(self, current: Direction) -> Direction:
        """Pick the direction for the current smoothed vector"""
        x, y = self.smoothed_x, self.smoothed_y

        if abs(x) > abs(y):
            if abs(x) <= self.dead_zone:
                return current
            candidate = Direction.RIGHT if x > 0 else Direction.LEFT
        else:
            if abs(y) <= self.dead_zone:
                return current
            candidate = Direction.DOWN if y > 0 else Direction.UP

        # Reversing would run the head into the neck
        if candidate is current.opposite:
            return current
        return candidate

    def update(self, raw: MotionVector, current: Direction) -> Direction:
        """Smooth the raw vector and arbitrate once for this tick"""
        self.smooth(raw)
        return self.choose(current)
