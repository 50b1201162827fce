"""Tests for snake_simulation module."""

from random import Random

import pytest

from direction_control import Direction
from snake_settings import BASE_SPEED, MIN_SPEED
from snake_simulation import (
    AdvanceResult,
    Position,
    SnakeSimulation,
    configure_grid,
    move_interval_ms,
)


def make_sim(cols: int = 30, rows: int = 20, seed: int = 0) -> SnakeSimulation:
    return SnakeSimulation(cols, rows, Random(seed))


class TestConfigureGrid:
    def test_narrow_viewport(self) -> None:
        assert configure_grid(375) == (15, 15)

    def test_wide_viewport(self) -> None:
        assert configure_grid(1280) == (30, 20)

    def test_boundary(self) -> None:
        assert configure_grid(639) == (15, 15)
        assert configure_grid(640) == (30, 20)


class TestSpeed:
    def test_base_speed_at_zero(self) -> None:
        assert move_interval_ms(0) == BASE_SPEED

    def test_accelerates_with_score(self) -> None:
        assert move_interval_ms(10) == BASE_SPEED - 20

    def test_non_increasing_and_floored(self) -> None:
        intervals = [move_interval_ms(score) for score in range(200)]
        assert all(a >= b for a, b in zip(intervals, intervals[1:]))
        assert min(intervals) == MIN_SPEED

    def test_simulation_uses_its_score(self) -> None:
        sim = make_sim()
        sim.score = 30
        assert sim.move_interval_ms() == move_interval_ms(30)


class TestReset:
    def test_start_state(self) -> None:
        sim = make_sim()
        assert sim.snake == [Position(10, 10)]
        assert sim.direction is Direction.RIGHT
        assert sim.score == 0
        assert sim.alive
        assert sim.food is not None and sim.food not in sim.snake

    def test_start_clamped_into_small_grid(self) -> None:
        sim = make_sim(cols=5, rows=4)
        assert sim.head == Position(4, 3)

    def test_reset_after_run(self) -> None:
        sim = make_sim()
        sim.snake = [Position(0, 5)]
        sim.direction = Direction.LEFT
        sim.advance()
        sim.reset()
        assert sim.alive
        assert sim.snake == [Position(10, 10)]
        assert sim.direction is Direction.RIGHT

    def test_invalid_grid(self) -> None:
        with pytest.raises(ValueError):
            SnakeSimulation(0, 10)


class TestAdvance:
    def test_eating_food(self) -> None:
        sim = make_sim()
        sim.snake = [Position(5, 5)]
        sim.direction = Direction.RIGHT
        sim.food = Position(6, 5)

        assert sim.advance() is AdvanceResult.ATE
        assert sim.head == Position(6, 5)
        assert sim.score == 1
        assert len(sim.snake) == 2
        assert sim.food is not None
        assert sim.food not in sim.snake

    def test_plain_move_keeps_length(self) -> None:
        sim = make_sim()
        sim.snake = [Position(5, 5), Position(4, 5), Position(3, 5)]
        sim.food = Position(0, 0)
        assert sim.advance() is AdvanceResult.MOVED
        assert sim.snake == [Position(6, 5), Position(5, 5), Position(4, 5)]
        assert sim.score == 0

    def test_wall_collision(self) -> None:
        sim = make_sim(cols=30)
        sim.snake = [Position(0, 5)]
        sim.direction = Direction.LEFT
        assert sim.advance() is AdvanceResult.WALL_COLLISION
        assert not sim.alive
        assert sim.snake == [Position(0, 5)]

    @pytest.mark.parametrize(
        "start, direction",
        [
            (Position(29, 5), Direction.RIGHT),
            (Position(5, 0), Direction.UP),
            (Position(5, 19), Direction.DOWN),
        ],
    )
    def test_every_wall(self, start: Position, direction: Direction) -> None:
        sim = make_sim()
        sim.snake = [start]
        sim.direction = direction
        assert sim.advance() is AdvanceResult.WALL_COLLISION

    def test_self_collision(self) -> None:
        sim = make_sim()
        sim.snake = [Position(5, 5), Position(6, 5), Position(6, 6), Position(5, 6), Position(4, 6)]
        sim.direction = Direction.DOWN
        sim.food = Position(0, 0)
        assert sim.advance() is AdvanceResult.SELF_COLLISION
        assert not sim.alive

    def test_collision_results(self) -> None:
        assert AdvanceResult.WALL_COLLISION.is_collision
        assert AdvanceResult.SELF_COLLISION.is_collision
        assert not AdvanceResult.ATE.is_collision
        assert not AdvanceResult.MOVED.is_collision

    def test_cannot_advance_finished_run(self) -> None:
        sim = make_sim()
        sim.snake = [Position(0, 5)]
        sim.direction = Direction.LEFT
        sim.advance()
        with pytest.raises(RuntimeError):
            sim.advance()

    def test_length_tracks_food_eaten(self) -> None:
        sim = make_sim()
        sim.snake = [Position(0, 10)]
        sim.direction = Direction.RIGHT
        eaten = 0
        for step in range(25):
            head = sim.head
            # Food straight ahead every third move, out of the way otherwise
            sim.food = Position(head.x + 1, head.y) if step % 3 == 0 else Position(0, 0)
            result = sim.advance()
            assert not result.is_collision
            if result is AdvanceResult.ATE:
                eaten += 1
            assert len(sim.snake) == 1 + eaten
            assert sim.score == eaten
        assert eaten == 9

    def test_no_duplicate_segments(self) -> None:
        sim = make_sim()
        for direction in [Direction.UP] * 3 + [Direction.LEFT] * 4 + [Direction.DOWN] * 2:
            sim.steer(direction)
            sim.food = sim.spawn_food()
            if sim.advance().is_collision:
                break
            assert len(set(sim.snake)) == len(sim.snake)


class TestFood:
    def test_food_avoids_snake(self) -> None:
        sim = make_sim(cols=3, rows=3)
        sim.snake = [Position(x, y) for y in range(3) for x in range(3) if (x, y) != (2, 2)]
        assert sim.spawn_food() == Position(2, 2)

    def test_full_board_has_no_food(self) -> None:
        sim = make_sim(cols=2, rows=1)
        sim.snake = [Position(0, 0), Position(1, 0)]
        assert sim.spawn_food() is None

    def test_food_within_grid(self) -> None:
        sim = make_sim(cols=7, rows=4, seed=3)
        for _ in range(200):
            food = sim.spawn_food()
            assert food is not None and sim.in_bounds(food)

    def test_food_is_seeded(self) -> None:
        assert make_sim(seed=7).food == make_sim(seed=7).food


class TestSteer:
    def test_reverse_of_last_move_rejected(self) -> None:
        sim = make_sim()
        assert not sim.steer(Direction.LEFT)
        assert sim.direction is Direction.RIGHT

    def test_two_turns_between_moves_cannot_reverse(self) -> None:
        sim = make_sim()
        assert sim.steer(Direction.UP)
        # Still heading right until the next move
        assert not sim.steer(Direction.LEFT)
        assert sim.direction is Direction.UP

    def test_turn_allowed_after_move(self) -> None:
        sim = make_sim()
        sim.food = Position(0, 0)
        sim.steer(Direction.UP)
        sim.advance()
        assert sim.steer(Direction.LEFT)
        assert sim.direction is Direction.LEFT
