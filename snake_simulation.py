import random
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from direction_control import Direction
from snake_settings import (
    BASE_SPEED,
    MIN_SPEED,
    NARROW_GRID,
    NARROW_VIEWPORT,
    SPEED_DECREMENT,
    START_POSITION,
    WIDE_GRID,
)


class Position(NamedTuple):
    x: int
    y: int


class AdvanceResult(Enum):
    MOVED = "moved"
    ATE = "ate"
    WALL_COLLISION = "wall_collision"
    SELF_COLLISION = "self_collision"

    @property
    def is_collision(self) -> bool:
        return self in (AdvanceResult.WALL_COLLISION, AdvanceResult.SELF_COLLISION)


def configure_grid(viewport_width: int) -> Tuple[int, int]:
    """Grid size (cols, rows) for a viewport width in pixels"""
    if viewport_width < NARROW_VIEWPORT:
        return NARROW_GRID
    return WIDE_GRID


def move_interval_ms(score: int) -> int:
    """Milliseconds between moves: faster with every point, floored at MIN_SPEED"""
    return max(MIN_SPEED, BASE_SPEED - score * SPEED_DECREMENT)


class SnakeSimulation:
    """Grid state for one run of the game.

    The simulation is the single source of truth for the snake, the food and
    the score. It only moves when ``advance()`` is called; the caller owns
    the clock and uses ``move_interval_ms()`` to decide when that is.
    """

    def __init__(self, cols: int, rows: int, rng: Optional[random.Random] = None):
        if cols < 1 or rows < 1:
            raise ValueError(f"grid must be at least 1x1, got {cols}x{rows}")
        self.cols: int = cols
        self.rows: int = rows
        self.rng: random.Random = rng if rng is not None else random.Random()
        self.snake: List[Position] = []
        self.food: Optional[Position] = None
        self.direction: Direction = Direction.RIGHT
        self.heading: Direction = Direction.RIGHT  # direction of the last move
        self.score: int = 0
        self.alive: bool = True
        self.reset()

    def reset(self) -> None:
        """Put the snake back at the start position with a fresh food"""
        start_x, start_y = START_POSITION
        self.snake = [Position(min(start_x, self.cols - 1), min(start_y, self.rows - 1))]
        self.direction = Direction.RIGHT
        self.heading = Direction.RIGHT
        self.score = 0
        self.alive = True
        self.food = self.spawn_food()

    @property
    def head(self) -> Position:
        return self.snake[0]

    def in_bounds(self, position: Position) -> bool:
        return 0 <= position.x < self.cols and 0 <= position.y < self.rows

    def spawn_food(self) -> Optional[Position]:
        """Random cell that doesn't overlap the snake, None if the board is full"""
        if len(self.snake) >= self.cols * self.rows:
            return None
        occupied = set(self.snake)
        while True:
            position = Position(self.rng.randrange(self.cols), self.rng.randrange(self.rows))
            if position not in occupied:
                return position

    def move_interval_ms(self) -> int:
        return move_interval_ms(self.score)

    def steer(self, direction: Direction) -> bool:
        """Set the direction for the next move (prevent 180-degree turns)"""
        # Several turns may land between two moves, so check against the last move
        if direction is self.heading.opposite:
            return False
        self.direction = direction
        return True

    def advance(self) -> AdvanceResult:
        """Move the snake one cell in the current direction"""
        if not self.alive:
            raise RuntimeError("cannot advance a finished run")

        dx, dy = self.direction.offset
        new_head = Position(self.head.x + dx, self.head.y + dy)

        if not self.in_bounds(new_head):
            self.alive = False
            return AdvanceResult.WALL_COLLISION

        if new_head in self.snake:
            self.alive = False
            return AdvanceResult.SELF_COLLISION

        self.snake.insert(0, new_head)
        self.heading = self.direction

        if new_head == self.food:
            # Keep the tail: the snake grows by one
            self.score += 1
            self.food = self.spawn_food()
            return AdvanceResult.ATE

        self.snake.pop()
        return AdvanceResult.MOVED
