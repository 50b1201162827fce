"""Tests for neon_snake_gestures module (drawing runs headless on a plain Surface)."""

import dataclasses
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from commentary import LiveConnectionState
from direction_control import Direction
from leaderboard import ScoreEntry
from motion_tracking import MotionVector
from neon_snake_gestures import NeonRenderer, annotate_preview, build_parser
from run_controller import GameState, RenderSnapshot
from snake_settings import CAMERA_HEIGHT, CAMERA_WIDTH, SCREEN_HEIGHT, SCREEN_WIDTH, WHITE
from snake_simulation import Position


@pytest.fixture
def renderer() -> NeonRenderer:
    pygame.font.init()
    return NeonRenderer(pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT)))


def snapshot(state: GameState, frame: bool = False) -> RenderSnapshot:
    return RenderSnapshot(
        state=state,
        snake=(Position(10, 10), Position(9, 10)),
        food=Position(20, 5),
        cols=30,
        rows=20,
        direction=Direction.RIGHT,
        debug_vector=MotionVector(0.4, -0.2, 30),
        score=3,
        high_score=9,
        player_name="ada",
        leaderboard=(ScoreEntry("bo", 9, 1), ScoreEntry("ada", 3, 2)),
        countdown_remaining_ms=2500,
        live_state=LiveConnectionState(is_connecting=True),
        frame=np.zeros((240, 320, 3), np.uint8) if frame else None,
    )


class TestNeonRenderer:
    @pytest.mark.parametrize("state", list(GameState))
    def test_draws_every_state(self, renderer: NeonRenderer, state: GameState) -> None:
        renderer(snapshot(state, frame=True))

    def test_draws_without_camera_or_food(self, renderer: NeonRenderer) -> None:
        snap = snapshot(GameState.PLAYING)
        renderer(dataclasses.replace(snap, food=None))

    def test_draws_leaderboard_entry_banner(self, renderer: NeonRenderer) -> None:
        renderer.animation = 0
        plain = snapshot(GameState.GAME_OVER)
        renderer(plain)
        before = pygame.image.tostring(renderer.screen, "RGB")
        renderer.animation = 0
        renderer(dataclasses.replace(plain, made_leaderboard=True))
        assert pygame.image.tostring(renderer.screen, "RGB") != before

    def test_head_drawn_at_grid_cell(self, renderer: NeonRenderer) -> None:
        renderer(snapshot(GameState.PLAYING))
        board, cell = renderer.board_rect(30, 20)
        head_pixel = (board.x + 10 * cell + cell // 2, board.y + 10 * cell + cell // 2)
        assert tuple(renderer.screen.get_at(head_pixel))[:3] == WHITE

    def test_board_fits_game_panel(self, renderer: NeonRenderer) -> None:
        for cols, rows in ((30, 20), (15, 15)):
            board, cell = renderer.board_rect(cols, rows)
            assert board.width == cols * cell
            assert board.height == rows * cell
            assert board.left >= 0 and board.top >= 0


def test_annotate_preview_size() -> None:
    preview = annotate_preview(np.zeros((240, 320, 3), np.uint8), MotionVector(1.0, 1.0, 5))
    assert preview.shape == (CAMERA_HEIGHT, CAMERA_WIDTH, 3)


def test_parser_defaults() -> None:
    args = build_parser().parse_args([])
    assert args.camera == 0
    assert args.commentary_url is None
    assert args.countdown == 3.0


def test_parser_overrides() -> None:
    args = build_parser().parse_args(["--name", "ada", "--countdown", "0", "--viewport-width", "480"])
    assert args.name == "ada"
    assert args.countdown == 0.0
    assert args.viewport_width == 480
