import argparse
import logging
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pygame

from commentary import HttpSnapshotSink, SnapshotStreamer
from leaderboard import JsonLeaderboardStore, Leaderboard
from motion_tracking import MotionVector
from run_controller import GameState, RenderSnapshot, RunController
from snake_settings import (
    ANALYSIS_HEIGHT,
    ANALYSIS_WIDTH,
    BLACK,
    CAMERA_HEIGHT,
    CAMERA_WIDTH,
    COUNTDOWN_MS,
    DARK_BLUE,
    DEAD_ZONE,
    FPS,
    GAME_HEIGHT,
    GAME_WIDTH,
    GREY,
    LEADERBOARD_FILE,
    MAX_NAME_LENGTH,
    NEON_BLUE,
    NEON_CYAN,
    NEON_GREEN,
    NEON_ORANGE,
    NEON_PINK,
    NEON_PURPLE,
    NEON_YELLOW,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    WHITE,
)
from snake_simulation import configure_grid

logger = logging.getLogger(__name__)

RADAR_RANGE: int = 100     # pixels the radar dot travels for a unit vector
RADAR_DEAD_ZONE: int = 40


class CameraFrameSource:
    """Webcam frames at the fixed analysis resolution (unmirrored BGR)"""

    def __init__(self, camera_index: int = 0,
                 width: int = ANALYSIS_WIDTH, height: int = ANALYSIS_HEIGHT):
        self.width: int = width
        self.height: int = height
        self.camera = cv2.VideoCapture(camera_index)
        self.camera.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.camera.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self.available: bool = self.camera.isOpened()
        if not self.available:
            logger.warning("Camera %d could not be opened, motion control disabled", camera_index)

    def read(self) -> Optional[np.ndarray]:
        """Grab one frame, None when the camera has nothing for us"""
        if not self.available:
            return None
        ret, frame = self.camera.read()
        if not ret or frame is None:
            return None
        if frame.shape[1] != self.width or frame.shape[0] != self.height:
            frame = cv2.resize(frame, (self.width, self.height))
        return frame

    def release(self) -> None:
        self.camera.release()


def annotate_preview(frame: np.ndarray, vector: MotionVector) -> np.ndarray:
    """Mirrored camera preview with the dead zone and the smoothed vector drawn on"""
    preview = cv2.flip(frame, 1)
    preview = cv2.resize(preview, (CAMERA_WIDTH, CAMERA_HEIGHT))
    center_x, center_y = CAMERA_WIDTH // 2, CAMERA_HEIGHT // 2
    reach_x, reach_y = CAMERA_WIDTH // 4, CAMERA_HEIGHT // 4

    # Dead zone
    cv2.ellipse(preview, (center_x, center_y), (int(reach_x * DEAD_ZONE), int(reach_y * DEAD_ZONE)),
                0, 0, 360, (255, 255, 255), 2)

    # The preview is mirrored, so +x (the player's right) is drawn to the right
    point_x = int(center_x + vector.x * reach_x)
    point_y = int(center_y + vector.y * reach_y)
    color = (0, 255, 255) if vector.intensity > 0 else (150, 150, 150)
    cv2.line(preview, (center_x, center_y), (point_x, point_y), color, 3)
    cv2.circle(preview, (point_x, point_y), 12, color, -1)
    cv2.putText(preview, f"Motion: {vector.intensity}", (10, CAMERA_HEIGHT - 20),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
    return preview


class NeonRenderer:
    """Draws a RenderSnapshot in the neon look"""

    def __init__(self, screen: pygame.Surface):
        pygame.font.init()
        self.screen: pygame.Surface = screen
        self.font: pygame.font.Font = pygame.font.Font(None, 36)
        self.big_font: pygame.font.Font = pygame.font.Font(None, 72)
        self.small_font: pygame.font.Font = pygame.font.Font(None, 24)
        self.animation: float = 0

    def __call__(self, snapshot: RenderSnapshot) -> None:
        self.draw(snapshot)

    def board_rect(self, cols: int, rows: int) -> Tuple[pygame.Rect, int]:
        """Board area centered in the game panel, plus the cell size"""
        cell = max(1, min(GAME_WIDTH // cols, GAME_HEIGHT // rows))
        width, height = cell * cols, cell * rows
        rect = pygame.Rect((GAME_WIDTH - width) // 2, (GAME_HEIGHT - height) // 2, width, height)
        return rect, cell

    def draw(self, snapshot: RenderSnapshot) -> None:
        self.animation += 0.1
        self.screen.fill(BLACK)
        board, cell = self.board_rect(snapshot.cols, snapshot.rows)

        self.draw_grid(board, cell, snapshot.cols, snapshot.rows)
        if snapshot.food is not None:
            self.draw_food(board, cell, snapshot.food)
        self.draw_snake(board, cell, snapshot.snake)
        self.draw_radar(board, snapshot.debug_vector)
        if snapshot.state == GameState.PLAYING:
            self.draw_direction(board, snapshot)

        self.draw_camera(snapshot.frame, snapshot.debug_vector)
        self.draw_sidebar(snapshot)

        if snapshot.state == GameState.IDLE:
            self.draw_menu(board, snapshot)
        elif snapshot.state == GameState.COUNTDOWN:
            self.draw_countdown(board, snapshot)
        elif snapshot.state == GameState.GAME_OVER:
            self.draw_game_over(board, snapshot)

    def draw_grid(self, board: pygame.Rect, cell: int, cols: int, rows: int) -> None:
        pygame.draw.rect(self.screen, DARK_BLUE, board)
        grid_surface = pygame.Surface(board.size, pygame.SRCALPHA)
        grid_color = (*NEON_BLUE, 25)
        for i in range(cols + 1):
            pygame.draw.line(grid_surface, grid_color, (i * cell, 0), (i * cell, board.height))
        for i in range(rows + 1):
            pygame.draw.line(grid_surface, grid_color, (0, i * cell), (board.width, i * cell))
        self.screen.blit(grid_surface, board.topleft)
        pygame.draw.rect(self.screen, NEON_PURPLE, board, 3)

    def draw_food(self, board: pygame.Rect, cell: int, food: Tuple[int, int]) -> None:
        """Pulsing glow around the food square"""
        x = board.x + food[0] * cell
        y = board.y + food[1] * cell
        pulse = abs(math.sin(self.animation))

        for i in range(4):
            alpha = int(50 - i * 12)
            grow = int(pulse * 4) + i * 3
            size = cell + grow * 2
            glow_surface = pygame.Surface((size, size), pygame.SRCALPHA)
            pygame.draw.rect(glow_surface, (*NEON_PINK, alpha), (0, 0, size, size), border_radius=4)
            self.screen.blit(glow_surface, (x - grow, y - grow))

        pygame.draw.rect(self.screen, NEON_PINK, (x + 2, y + 2, cell - 4, cell - 4))

    def draw_snake(self, board: pygame.Rect, cell: int, snake: Sequence[Tuple[int, int]]) -> None:
        for i, (gx, gy) in enumerate(snake):
            x = board.x + gx * cell
            y = board.y + gy * cell

            glow_surface = pygame.Surface((cell + 6, cell + 6), pygame.SRCALPHA)
            glow_color = (*(WHITE if i == 0 else NEON_CYAN), 50)
            pygame.draw.rect(glow_surface, glow_color, (0, 0, cell + 6, cell + 6), border_radius=5)
            self.screen.blit(glow_surface, (x - 3, y - 3))

            color = WHITE if i == 0 else NEON_CYAN
            pygame.draw.rect(self.screen, color, (x + 1, y + 1, cell - 2, cell - 2), border_radius=3)

    def draw_radar(self, board: pygame.Rect, vector: MotionVector) -> None:
        """Joystick-style indicator of the smoothed motion vector"""
        center = board.center
        radar_surface = pygame.Surface(board.size, pygame.SRCALPHA)
        local = (board.width // 2, board.height // 2)
        pygame.draw.circle(radar_surface, (255, 255, 255, 50), local, RADAR_DEAD_ZONE, 1)
        pygame.draw.circle(radar_surface, (255, 255, 255, 130), local, 2)

        dot = (int(local[0] + vector.x * RADAR_RANGE), int(local[1] + vector.y * RADAR_RANGE))
        alpha = 200 if vector.intensity > 0 else 50
        pygame.draw.circle(radar_surface, (*NEON_CYAN, alpha // 2), dot, 10)
        pygame.draw.circle(radar_surface, (*NEON_CYAN, alpha), dot, 10, 2)
        self.screen.blit(radar_surface, (center[0] - local[0], center[1] - local[1]))

    def draw_direction(self, board: pygame.Rect, snapshot: RenderSnapshot) -> None:
        text = self.small_font.render(f"CMD: {snapshot.direction.name}", True, NEON_CYAN)
        self.screen.blit(text, (board.right - text.get_width() - 10, board.y + 10))

    def draw_camera(self, frame: Optional[np.ndarray], vector: MotionVector) -> None:
        camera_rect = pygame.Rect(GAME_WIDTH, 0, CAMERA_WIDTH, CAMERA_HEIGHT)
        if frame is not None:
            preview = annotate_preview(frame, vector)
            preview_rgb = cv2.cvtColor(preview, cv2.COLOR_BGR2RGB)
            surface = pygame.surfarray.make_surface(preview_rgb.swapaxes(0, 1))
            self.screen.blit(surface, camera_rect.topleft)
        else:
            text = self.font.render("NO CAMERA SIGNAL", True, GREY)
            self.screen.blit(text, text.get_rect(center=camera_rect.center))
        pygame.draw.rect(self.screen, NEON_BLUE, camera_rect, 3)

    def draw_sidebar(self, snapshot: RenderSnapshot) -> None:
        x = GAME_WIDTH + 20
        y = CAMERA_HEIGHT + 20

        pilot = snapshot.player_name or "UNREGISTERED"
        lines: List[Tuple[str, pygame.font.Font, Tuple[int, int, int]]] = [
            ("NEON SNAKE", self.font, NEON_PINK),
            (f"PILOT: {pilot}", self.small_font, NEON_CYAN),
            (f"SCORE: {snapshot.score}", self.font, NEON_GREEN),
            (f"HIGH: {snapshot.high_score}", self.font, NEON_YELLOW),
            (f"LENGTH: {len(snapshot.snake)}", self.small_font, NEON_ORANGE),
            ("", self.small_font, WHITE),
            ("MOVE BODY TO STEER", self.small_font, NEON_CYAN),
            ("CENTER = NEUTRAL", self.small_font, WHITE),
            ("ESC: Quit", self.small_font, GREY),
        ]
        for text, font, color in lines:
            if text:
                self.screen.blit(font.render(text, True, color), (x, y))
            y += font.get_linesize() + 6

        # Commentary link badge
        live = snapshot.live_state
        dot_color = NEON_GREEN if live.is_connected else NEON_YELLOW if live.is_connecting else NEON_PINK
        badge_y = SCREEN_HEIGHT - 40
        pygame.draw.circle(self.screen, dot_color, (x + 6, badge_y + 8), 6)
        badge = self.small_font.render(f"AI LINK: {live.label}", True, WHITE)
        self.screen.blit(badge, (x + 20, badge_y))

    def draw_overlay(self, board: pygame.Rect, alpha: int) -> None:
        overlay = pygame.Surface(board.size, pygame.SRCALPHA)
        overlay.fill((5, 5, 5, alpha))
        self.screen.blit(overlay, board.topleft)

    def blit_centered(self, text: str, font: pygame.font.Font, color: Tuple[int, int, int],
                      center: Tuple[int, int]) -> None:
        surface = font.render(text, True, color)
        self.screen.blit(surface, surface.get_rect(center=center))

    def draw_menu(self, board: pygame.Rect, snapshot: RenderSnapshot) -> None:
        self.draw_overlay(board, 215)
        cx, cy = board.center
        self.blit_centered("ENTER PILOT ID", self.font, NEON_BLUE, (cx, cy - 90))

        input_rect = pygame.Rect(0, 0, 300, 50)
        input_rect.center = (cx, cy - 30)
        pygame.draw.rect(self.screen, NEON_CYAN, input_rect, 2, border_radius=4)
        cursor = "_" if int(self.animation * 2) % 2 == 0 else " "
        name = snapshot.player_name or ""
        self.blit_centered(name + cursor, self.font, WHITE, input_rect.center)

        hint = "Press ENTER to initiate" if name else "Type a name to begin"
        self.blit_centered(hint, self.small_font, NEON_YELLOW if name else GREY, (cx, cy + 30))
        self.blit_centered("MOVE BODY TO STEER", self.small_font, NEON_CYAN, (cx, cy + 80))
        self.blit_centered("CENTER = NEUTRAL", self.small_font, GREY, (cx, cy + 105))

    def draw_countdown(self, board: pygame.Rect, snapshot: RenderSnapshot) -> None:
        self.draw_overlay(board, 120)
        seconds = max(1, math.ceil(snapshot.countdown_remaining_ms / 1000))
        self.blit_centered(str(seconds), self.big_font, NEON_YELLOW, board.center)

    def draw_game_over(self, board: pygame.Rect, snapshot: RenderSnapshot) -> None:
        self.draw_overlay(board, 240)
        cx = board.centerx
        y = board.y + 60
        self.blit_centered("GAME OVER", self.big_font, NEON_PINK, (cx, y))
        y += 60
        self.blit_centered(f"SCORE: {snapshot.score}", self.font, NEON_GREEN, (cx, y))
        if snapshot.made_leaderboard:
            y += 36
            self.blit_centered("NEW LEADERBOARD ENTRY!", self.small_font, NEON_YELLOW, (cx, y))
        y += 50
        self.blit_centered("HIGH SCORES", self.small_font, NEON_BLUE, (cx, y))
        y += 30

        highlighted = False
        for i, entry in enumerate(snapshot.leaderboard):
            is_current = (not highlighted and entry.score == snapshot.score
                          and entry.name == snapshot.player_name)
            highlighted = highlighted or is_current
            color = NEON_YELLOW if is_current else WHITE
            rank = self.small_font.render(f"#{i + 1} {entry.name}", True, color)
            score = self.small_font.render(str(entry.score), True, color)
            self.screen.blit(rank, (cx - 140, y))
            self.screen.blit(score, (cx + 140 - score.get_width(), y))
            y += 26

        self.blit_centered("Press SPACE to retry", self.font, WHITE, (cx, board.bottom - 50))


class NeonSnakeGame:
    def __init__(self,
                 camera_index: int = 0,
                 player_name: str = "",
                 leaderboard_path: str = LEADERBOARD_FILE,
                 commentary_url: Optional[str] = None,
                 countdown_ms: int = COUNTDOWN_MS,
                 viewport_width: int = GAME_WIDTH):
        pygame.init()
        self.screen: pygame.Surface = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("🐍 NEON SNAKE - Motion Control 🐍")
        self.clock: pygame.time.Clock = pygame.time.Clock()

        self.camera: CameraFrameSource = CameraFrameSource(camera_index)
        self.renderer: NeonRenderer = NeonRenderer(self.screen)

        streamer: Optional[SnapshotStreamer] = None
        if commentary_url:
            streamer = SnapshotStreamer(HttpSnapshotSink(commentary_url))

        cols, rows = configure_grid(viewport_width)
        self.controller: RunController = RunController(
            frame_source=self.camera.read,
            renderer=self.renderer,
            leaderboard=Leaderboard(JsonLeaderboardStore(leaderboard_path)),
            cols=cols,
            rows=rows,
            streamer=streamer,
            countdown_ms=countdown_ms,
        )
        self.name_buffer: str = ""
        if player_name:
            self.name_buffer = player_name[:MAX_NAME_LENGTH]
            self.controller.set_player_name(self.name_buffer)

    def handle_key(self, event: pygame.event.Event) -> bool:
        """Handle one key press, False to quit"""
        if event.key == pygame.K_ESCAPE:
            return False

        state = self.controller.state
        now = pygame.time.get_ticks()

        if state == GameState.IDLE:
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                self.controller.start(now)
            elif event.key == pygame.K_BACKSPACE:
                self.name_buffer = self.name_buffer[:-1]
                self.controller.set_player_name(self.name_buffer)
            elif event.unicode and event.unicode.isprintable() and len(self.name_buffer) < MAX_NAME_LENGTH:
                self.name_buffer += event.unicode
                self.controller.set_player_name(self.name_buffer)
        elif state == GameState.GAME_OVER:
            if event.key in (pygame.K_SPACE, pygame.K_RETURN, pygame.K_KP_ENTER):
                self.controller.start(now)
        return True

    def run(self) -> None:
        """Main game loop"""
        running: bool = True

        print("🐍 NEON SNAKE - Motion Control Edition! 🐍")
        print("📋 Instructions:")
        print("✋ Move your body or hand in front of the camera to steer")
        print("• Move to YOUR right = Snake turns RIGHT")
        print("• Move to YOUR left = Snake turns LEFT")
        print("• Move up / down = Snake turns UP / DOWN")
        print("• Stay centered to keep going straight")
        print("\n🍎 Eat the pink food to grow")
        print("🚀 Speed increases with every point!")
        print("\n⌨️ Controls:")
        print("- Type your pilot name, ENTER: Start")
        print("- SPACE: Retry when game over")
        print("- ESC: Quit")

        try:
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        running = self.handle_key(event) and running

                self.controller.tick(pygame.time.get_ticks())
                pygame.display.flip()
                self.clock.tick(FPS)
        finally:
            # Cleanup
            self.controller.stop()
            self.camera.release()
            cv2.destroyAllWindows()
            pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Snake steered by body motion in front of a webcam.")
    parser.add_argument("--camera", type=int, default=0, help="camera index for cv2.VideoCapture")
    parser.add_argument("--name", default="", help="pilot name (can also be typed in the menu)")
    parser.add_argument("--leaderboard", default=LEADERBOARD_FILE, help="leaderboard JSON file")
    parser.add_argument("--commentary-url", default=None,
                        help="endpoint that receives JPEG snapshots for live commentary")
    parser.add_argument("--countdown", type=float, default=COUNTDOWN_MS / 1000,
                        help="seconds of countdown before each run (0 to disable)")
    parser.add_argument("--viewport-width", type=int, default=GAME_WIDTH,
                        help="viewport width used to pick the grid size")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    game = NeonSnakeGame(
        camera_index=args.camera,
        player_name=args.name,
        leaderboard_path=args.leaderboard,
        commentary_url=args.commentary_url,
        countdown_ms=int(args.countdown * 1000),
        viewport_width=args.viewport_width,
    )
    game.run()


if __name__ == "__main__":
    main()
