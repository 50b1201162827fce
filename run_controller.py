import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from commentary import LiveConnectionState, SnapshotStreamer
from direction_control import Direction, DirectionArbiter
from leaderboard import Leaderboard, ScoreEntry
from motion_tracking import MotionExtractor, MotionVector
from snake_settings import COUNTDOWN_MS, DEFAULT_PLAYER_NAME, MAX_NAME_LENGTH
from snake_simulation import AdvanceResult, Position, SnakeSimulation

logger = logging.getLogger(__name__)

FrameSource = Callable[[], Optional[np.ndarray]]


class GameState(Enum):
    IDLE = "IDLE"
    COUNTDOWN = "COUNTDOWN"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything the renderer needs for one frame, copied out of the controller"""
    state: GameState
    snake: Tuple[Position, ...]
    food: Optional[Position]
    cols: int
    rows: int
    direction: Direction
    debug_vector: MotionVector
    score: int
    high_score: int
    player_name: str
    leaderboard: Tuple[ScoreEntry, ...] = ()
    countdown_remaining_ms: int = 0
    made_leaderboard: bool = False
    live_state: LiveConnectionState = field(default_factory=LiveConnectionState)
    frame: Optional[np.ndarray] = None


Renderer = Callable[[RenderSnapshot], None]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class RunController:
    """Drives one player's runs: IDLE -> (COUNTDOWN) -> PLAYING -> GAME_OVER.

    ``tick(now_ms)`` is called once per display frame. While playing it pulls
    one camera frame, steers through the motion extractor and the direction
    arbiter, and advances the simulation whenever the current move interval
    has elapsed. A render snapshot goes out on every tick in every state.
    """

    def __init__(self,
                 frame_source: FrameSource,
                 renderer: Renderer,
                 leaderboard: Leaderboard,
                 cols: int,
                 rows: int,
                 extractor: Optional[MotionExtractor] = None,
                 arbiter: Optional[DirectionArbiter] = None,
                 streamer: Optional[SnapshotStreamer] = None,
                 rng: Optional[random.Random] = None,
                 countdown_ms: int = COUNTDOWN_MS,
                 clock: Callable[[], int] = wall_clock_ms):
        self.frame_source: FrameSource = frame_source
        self.renderer: Renderer = renderer
        self.leaderboard: Leaderboard = leaderboard
        self.simulation: SnakeSimulation = SnakeSimulation(cols, rows, rng)
        self.extractor: MotionExtractor = extractor or MotionExtractor()
        self.arbiter: DirectionArbiter = arbiter or DirectionArbiter()
        self.streamer: Optional[SnapshotStreamer] = streamer
        self.countdown_ms: int = max(0, countdown_ms)
        self.clock: Callable[[], int] = clock

        self.state: GameState = GameState.IDLE
        self.player_name: str = ""
        self.high_score: int = leaderboard.high_score
        self.debug_vector: MotionVector = MotionVector.zero()
        self.live_state: LiveConnectionState = LiveConnectionState()
        self.last_result: Optional[AdvanceResult] = None
        self.made_leaderboard: bool = False
        self.last_advance_ms: float = 0
        self.countdown_started_ms: float = 0
        self.stopped: bool = False

        if streamer is not None and streamer.on_status is None:
            streamer.on_status = self.handle_commentary_status

    @property
    def score(self) -> int:
        return self.simulation.score

    def set_player_name(self, name: str) -> bool:
        """Set the name scores are saved under (not while a run is on)"""
        if self.state in (GameState.COUNTDOWN, GameState.PLAYING):
            return False
        self.player_name = name.strip()[:MAX_NAME_LENGTH]
        return True

    def handle_commentary_status(self, status: str) -> None:
        self.live_state = LiveConnectionState.from_status(status)

    def start(self, now_ms: float) -> bool:
        """Start (or replay) a run; False if the start is not allowed right now"""
        if self.stopped:
            return False
        if self.state in (GameState.COUNTDOWN, GameState.PLAYING):
            logger.warning("Ignoring start: a run is already in progress")
            return False
        if not self.player_name:
            logger.warning("Ignoring start: enter a player name first")
            return False

        self.simulation.reset()
        self.extractor.reset()
        self.arbiter.reset()
        self.debug_vector = MotionVector.zero()
        self.last_result = None
        self.made_leaderboard = False

        if self.streamer is not None:
            self.streamer.start()

        if self.countdown_ms > 0:
            self.state = GameState.COUNTDOWN
            self.countdown_started_ms = now_ms
        else:
            self.begin_play(now_ms)
        logger.info("Run started for %s", self.player_name)
        return True

    def begin_play(self, now_ms: float) -> None:
        self.state = GameState.PLAYING
        self.last_advance_ms = now_ms

    def countdown_remaining(self, now_ms: float) -> int:
        if self.state != GameState.COUNTDOWN:
            return 0
        return max(0, int(self.countdown_ms - (now_ms - self.countdown_started_ms)))

    def tick(self, now_ms: float) -> GameState:
        """One display frame"""
        if self.stopped:
            return self.state

        frame = self.frame_source()

        if self.state == GameState.COUNTDOWN and self.countdown_remaining(now_ms) <= 0:
            self.begin_play(now_ms)
        elif self.state == GameState.PLAYING:
            self.play_tick(frame, now_ms)

        self.renderer(self.snapshot(now_ms, frame))
        return self.state

    def play_tick(self, frame: Optional[np.ndarray], now_ms: float) -> None:
        """Steer every tick, move only when the move interval has elapsed"""
        raw = self.extractor.extract(frame)
        chosen = self.arbiter.update(raw, self.simulation.direction)
        if chosen is not self.simulation.direction:
            self.simulation.steer(chosen)
        self.debug_vector = self.arbiter.smoothed

        if self.streamer is not None:
            self.streamer.offer(frame, now_ms)

        if now_ms - self.last_advance_ms > self.simulation.move_interval_ms():
            self.last_advance_ms = now_ms
            self.last_result = self.simulation.advance()
            if self.last_result.is_collision:
                self.game_over()

    def game_over(self) -> None:
        """Freeze the run and record the score once"""
        self.state = GameState.GAME_OVER
        entry = ScoreEntry(
            name=self.player_name or DEFAULT_PLAYER_NAME,
            score=self.simulation.score,
            timestamp=self.clock(),
        )
        self.made_leaderboard = entry.score > 0 and self.leaderboard.qualifies(entry.score)
        self.leaderboard.record(entry)
        self.high_score = max(self.high_score, entry.score)
        logger.info("Game over for %s: %s (score %d)", entry.name,
                    self.last_result.value if self.last_result else "stopped", entry.score)

    def stop(self) -> None:
        """Stop ticking immediately; nothing fires after this"""
        self.stopped = True
        if self.streamer is not None:
            self.streamer.close()

    def snapshot(self, now_ms: float, frame: Optional[np.ndarray] = None) -> RenderSnapshot:
        sim = self.simulation
        entries: List[ScoreEntry] = self.leaderboard.entries
        return RenderSnapshot(
            state=self.state,
            snake=tuple(sim.snake),
            food=sim.food,
            cols=sim.cols,
            rows=sim.rows,
            direction=sim.direction,
            debug_vector=self.debug_vector,
            score=sim.score,
            high_score=self.high_score,
            player_name=self.player_name,
            leaderboard=tuple(entries),
            countdown_remaining_ms=self.countdown_remaining(now_ms),
            made_leaderboard=self.made_leaderboard,
            live_state=self.live_state,
            frame=frame,
        )
